"""Copy-with-expansion primitive: read a template, substitute ``${key}`` tokens, write."""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Callable, Mapping

from jinja2 import Environment, StrictUndefined, Template, nodes
from jinja2.exceptions import TemplateSyntaxError, UndefinedError

from ..core.errors import InvalidConfigError, UndefinedPlaceholderError
from .io import atomic_write_text, read_text

logger = logging.getLogger(__name__)

# Bound by the template runtime itself, not by the expansion mapping.
_RUNTIME_NAMES = frozenset({"self", "loop", "caller", "varargs", "kwargs"})


def detect_newline(text: str) -> str:
    """Return the first line ending used in ``text`` (``\\n`` when there is none)."""
    for index, char in enumerate(text):
        if char == "\r":
            return "\r\n" if text[index + 1 : index + 2] == "\n" else "\r"
        if char == "\n":
            return "\n"
    return "\n"


@lru_cache(maxsize=None)
def create_environment(newline_sequence: str = "\n") -> Environment:
    """Jinja2 environment whose only active syntax is ``${identifier}``.

    Block and comment delimiters are moved behind ``${`` so that ``{{``,
    ``{%`` and ``{#`` in manifests pass through untouched. Globals such as
    ``range`` are removed so every name must come from the expansion mapping.
    """
    env = Environment(
        variable_start_string="${",
        variable_end_string="}",
        block_start_string="${%",
        block_end_string="%}",
        comment_start_string="${#",
        comment_end_string="#}",
        undefined=StrictUndefined,
        autoescape=False,
        keep_trailing_newline=True,
        newline_sequence=newline_sequence,
    )
    env.globals.clear()
    return env


def check_placeholders(tree: nodes.Template, template_path: Path) -> None:
    """Allow only literal text and bare ``${identifier}`` tokens.

    Raises:
        InvalidConfigError: on statements, constants, filters or attribute access
    """
    for node in tree.body:
        if not isinstance(node, nodes.Output):
            raise InvalidConfigError(
                f"Unsupported statement in {template_path} line {node.lineno}: "
                "only ${identifier} placeholders are allowed"
            )
        for child in node.nodes:
            if isinstance(child, nodes.TemplateData):
                continue
            if not isinstance(child, nodes.Name) or child.name in _RUNTIME_NAMES:
                raise InvalidConfigError(
                    f"Invalid placeholder in {template_path} line {child.lineno}: "
                    "only ${identifier} placeholders are allowed"
                )


def load_template(template_path: Path) -> Template:
    """Load and compile a template file.

    Line endings of the source are kept in the output.

    Raises:
        ResourceNotFoundError: if the file is missing or unreadable
        InvalidConfigError: if a ``${...}`` token is not a bare identifier
    """
    text = read_text(template_path)
    env = create_environment(detect_newline(text))
    try:
        tree = env.parse(text)
    except TemplateSyntaxError as e:
        raise InvalidConfigError(
            f"Invalid placeholder in {template_path} line {e.lineno}: {e.message}"
        ) from e

    check_placeholders(tree, template_path)
    return env.from_string(tree)


def expand(template: Template, expansion: Mapping[str, str], source: Path) -> str:
    try:
        return template.render(dict(expansion))
    except UndefinedError as e:
        raise UndefinedPlaceholderError(
            f"{source}: {e.message}; available placeholders: {sorted(expansion)}"
        ) from e


def copy_with_expansion(
    source: Path,
    destination_dir: Path,
    rename: Callable[[str], str],
    expansion: Mapping[str, str],
    file_mode: int = 0o644,
) -> Path:
    """Expand ``source`` and write it into ``destination_dir``.

    Args:
        source: Template file
        destination_dir: Output directory, created if missing
        rename: Maps the source file name to the output file name
        expansion: Placeholder values
        file_mode: File permissions

    Returns:
        Output file path
    """
    logger.debug(f"Expanding template: {source}")

    template = load_template(source)
    rendered_text = expand(template, expansion, source)

    output_path = destination_dir / rename(source.name)
    atomic_write_text(output_path, rendered_text, mode=file_mode)
    logger.debug(f"Wrote {source} → {output_path}")

    return output_path
