"""Load the declarative template processing configuration from YAML."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from ..core.errors import InvalidConfigError, ResourceNotFoundError
from ..core.models import TemplateDefinition, TemplateProcessing

logger = logging.getLogger(__name__)

ROOT_KEY = "templateProcessing"

_TEMPLATE_FIELDS = {
    "templatePath": "template_path",
    "outputDir": "output_dir",
    "outputFilePattern": "output_file_pattern",
}
_BUILDER_KEYS = {"name", "placeholders"}


def _stringify(value: Any, where: str) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    raise InvalidConfigError(f"{where}: expected a string, got {value!r}")


def _is_builder_form(entry: dict[str, Any]) -> bool:
    return set(entry) <= _BUILDER_KEYS and isinstance(
        entry.get("placeholders", {}), dict
    )


def _add_replacement(
    definition: TemplateDefinition, entry: Any, index: int
) -> None:
    where = f"Template {definition.name!r}, replacement #{index}"
    if not isinstance(entry, dict):
        raise InvalidConfigError(f"{where}: expected a mapping, got {entry!r}")

    if _is_builder_form(entry):
        with definition.replacement() as replacement:
            if entry.get("name") is not None:
                replacement.name = _stringify(entry["name"], f"{where} name")
            for key, value in (entry.get("placeholders") or {}).items():
                replacement.placeholder(str(key), _stringify(value, f"{where} {key!r}"))
    else:
        definition.add_replacement_map(
            {
                str(key): _stringify(value, f"{where} {key!r}")
                for key, value in entry.items()
                if value is not None or key != "name"
            }
        )


def _add_template(processing: TemplateProcessing, name: str, body: Any) -> None:
    if not isinstance(body, dict):
        raise InvalidConfigError(f"Template {name!r}: expected a mapping, got {body!r}")

    unknown = set(body) - set(_TEMPLATE_FIELDS) - {"replacements"}
    if unknown:
        raise InvalidConfigError(
            f"Template {name!r}: unknown key(s) {sorted(unknown)}"
        )

    definition = processing.template(
        str(name),
        **{
            attr: _stringify(body[key], f"Template {name!r} {key}")
            for key, attr in _TEMPLATE_FIELDS.items()
            if body.get(key) is not None
        },
    )

    replacements = body.get("replacements") or []
    if not isinstance(replacements, list):
        raise InvalidConfigError(f"Template {name!r}: 'replacements' must be a list")
    for index, entry in enumerate(replacements):
        _add_replacement(definition, entry, index)

    logger.debug(f"Loaded template {name!r} with {len(replacements)} replacement(s)")


def parse_config(data: Any, source: str = "<config>") -> TemplateProcessing:
    """Build an unfinalized configuration from parsed YAML data.

    Accepts the document with or without the ``templateProcessing`` wrapper.
    """
    if isinstance(data, dict) and ROOT_KEY in data:
        data = data[ROOT_KEY]
    if not isinstance(data, dict) or not isinstance(data.get("templates"), dict):
        raise InvalidConfigError(f"{source}: expected a 'templates' mapping")

    processing = TemplateProcessing()
    for name, body in data["templates"].items():
        _add_template(processing, name, body)
    return processing


def load_config(path: Path) -> TemplateProcessing:
    """Load the configuration file at ``path``.

    Raises:
        ResourceNotFoundError: if the file is missing or unreadable
        InvalidConfigError: if the document is malformed
    """
    if not path.is_file():
        raise ResourceNotFoundError(f"Configuration not found: {path}")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ResourceNotFoundError(f"Configuration not readable: {path} ({e})") from e
    except yaml.YAMLError as e:
        raise InvalidConfigError(f"Invalid YAML in {path}: {e}") from e

    logger.debug(f"Loading configuration from {path}")
    return parse_config(data, source=str(path))
