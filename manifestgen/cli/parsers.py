"""CLI argument parsers and validators."""

from __future__ import annotations

import typer


def parse_file_mode(value: str) -> int:
    """Parse octal file mode string."""
    try:
        return int(value, 8)
    except ValueError as e:
        raise typer.BadParameter(f"Invalid octal mode: {value!r}") from e


def parse_selection(values: list[str]) -> list[str] | None:
    """Flatten repeatable, comma-separated ``--only`` values; None selects all."""
    selection = [item.strip() for value in values for item in value.split(",")]
    selection = [item for item in selection if item]
    if values and not selection:
        raise typer.BadParameter("--only needs at least one template or task name")
    return selection or None
