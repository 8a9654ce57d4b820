"""Domain models for template processing configuration and generation plans."""

from __future__ import annotations

import logging
import re
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Mapping

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationError

from .errors import DuplicateNameError, InvalidConfigError

logger = logging.getLogger(__name__)

NAME_TOKEN = "{name}"
TASK_GROUP = "template processing"

_PLACEHOLDER_KEY = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
# Parsed as constants or operators, or bound by the template runtime.
_RESERVED_WORDS = frozenset(
    {"true", "false", "none", "True", "False", "None", "not"}
    | {"self", "loop", "caller", "varargs", "kwargs"}
)


def _is_blank(value: str | None) -> bool:
    return value is None or not str(value).strip()


class ReplacementRecord(BaseModel):
    """A named set of placeholder values; yields one generated file."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Replacement name, bound to ${name}")
    placeholders: dict[str, str] = Field(
        default_factory=dict, description="Placeholder values keyed by token name"
    )


def build_replacement(
    name: str | None, placeholders: Mapping[str, Any] | None, *, template: str
) -> ReplacementRecord:
    """Validate and build a replacement record for ``template``.

    Raises:
        InvalidConfigError: blank name, reserved or malformed placeholder key,
            or a non-string value
    """
    if _is_blank(name):
        raise InvalidConfigError(
            f"Template {template!r}: replacement name cannot be blank"
        )

    values = dict(placeholders or {})
    for key in values:
        if key == "name":
            raise InvalidConfigError(
                f"Template {template!r}, replacement {name!r}: "
                "'name' is reserved and cannot be used as a placeholder"
            )
        if (
            not isinstance(key, str)
            or not _PLACEHOLDER_KEY.match(key)
            or key in _RESERVED_WORDS
        ):
            raise InvalidConfigError(
                f"Template {template!r}, replacement {name!r}: "
                f"invalid placeholder key {key!r}"
            )

    try:
        return ReplacementRecord(name=name, placeholders=values)
    except ValidationError as e:
        raise InvalidConfigError(
            f"Template {template!r}, replacement {name!r}: {e}"
        ) from e


class ReplacementBuilder(BaseModel):
    """Mutable replacement used by the block form of ``replacement()``."""

    name: str = ""
    placeholders: dict[str, str] = Field(default_factory=dict)

    def placeholder(self, key: str, value: str) -> None:
        self.placeholders[key] = value


class TemplateSpec(BaseModel):
    """Frozen view of a template definition, consumed by the generator."""

    model_config = ConfigDict(frozen=True)

    name: str
    template_path: str
    output_dir: str
    output_file_pattern: str
    replacements: tuple[ReplacementRecord, ...] = ()


class ProcessingModel(BaseModel):
    """Finalized configuration model; read-only."""

    model_config = ConfigDict(frozen=True)

    templates: tuple[TemplateSpec, ...] = ()


class TemplateDefinition(BaseModel):
    """A named template with its output settings and replacements."""

    name: str = Field(..., description="Template name, used for task naming")
    template_path: str | None = Field(
        default=None, description="Template file relative to the resources root"
    )
    output_dir: str | None = Field(
        default=None, description="Output directory relative to the build root"
    )
    output_file_pattern: str | None = Field(
        default=None, description="Output file name pattern containing {name}"
    )
    replacements: list[ReplacementRecord] = Field(default_factory=list)

    _finalized: bool = PrivateAttr(default=False)

    def _ensure_mutable(self) -> None:
        if self._finalized:
            raise InvalidConfigError(
                f"Template {self.name!r} is finalized and can no longer be changed"
            )

    def add_replacement(
        self, name: str | None, placeholders: Mapping[str, Any] | None = None
    ) -> ReplacementRecord:
        """Append a replacement record.

        Raises:
            InvalidConfigError: if the name is empty or None
            DuplicateNameError: if a replacement with that name already exists
        """
        self._ensure_mutable()
        record = build_replacement(name, placeholders, template=self.name)
        if any(existing.name == record.name for existing in self.replacements):
            raise DuplicateNameError(
                f"Template {self.name!r}: replacement {record.name!r} is already defined"
            )
        self.replacements.append(record)
        return record

    def add_replacement_map(self, mapping: Mapping[str, Any]) -> ReplacementRecord:
        """Append a replacement from a flat mapping holding ``name`` and placeholders."""
        if "name" not in mapping:
            raise InvalidConfigError(
                f"Template {self.name!r}: 'name' is required in replacement {dict(mapping)!r}"
            )
        placeholders = {k: v for k, v in mapping.items() if k != "name"}
        return self.add_replacement(mapping["name"], placeholders)

    @contextmanager
    def replacement(self, name: str = "") -> Iterator[ReplacementBuilder]:
        """Configure a replacement in a block; it is added when the block exits."""
        self._ensure_mutable()
        builder = ReplacementBuilder(name=name)
        yield builder
        self.add_replacement(builder.name, builder.placeholders)

    def freeze(self) -> TemplateSpec:
        """Validate required fields and return a frozen snapshot."""
        for field, label in (
            ("template_path", "templatePath"),
            ("output_dir", "outputDir"),
            ("output_file_pattern", "outputFilePattern"),
        ):
            if _is_blank(getattr(self, field)):
                raise InvalidConfigError(f"Template {self.name!r}: {label!r} is required")

        if NAME_TOKEN not in self.output_file_pattern:
            logger.warning(
                f"Template {self.name!r}: output file pattern "
                f"{self.output_file_pattern!r} has no {NAME_TOKEN} token; "
                "every replacement writes the same file name"
            )

        return TemplateSpec(
            name=self.name,
            template_path=self.template_path,
            output_dir=self.output_dir,
            output_file_pattern=self.output_file_pattern,
            replacements=tuple(self.replacements),
        )


class TemplateProcessing(BaseModel):
    """Container of template definitions, assembled before generation."""

    templates: dict[str, TemplateDefinition] = Field(default_factory=dict)

    _model: ProcessingModel | None = PrivateAttr(default=None)

    @property
    def finalized(self) -> bool:
        return self._model is not None

    def define_template(self, name: str) -> TemplateDefinition:
        """Register a new template definition under a unique name."""
        if self.finalized:
            raise InvalidConfigError(
                f"Cannot define template {name!r}: configuration is finalized"
            )
        if _is_blank(name):
            raise InvalidConfigError("Template name cannot be blank")
        if name in self.templates:
            raise DuplicateNameError(f"Template {name!r} is already defined")

        definition = TemplateDefinition(name=name)
        self.templates[name] = definition
        logger.debug(f"Defined template {name!r}")
        return definition

    def template(
        self,
        name: str,
        *,
        template_path: str | None = None,
        output_dir: str | None = None,
        output_file_pattern: str | None = None,
    ) -> TemplateDefinition:
        definition = self.define_template(name)
        definition.template_path = template_path
        definition.output_dir = output_dir
        definition.output_file_pattern = output_file_pattern
        return definition

    def finalize(self) -> ProcessingModel:
        """Freeze the configuration; later calls return the same model."""
        if self._model is None:
            specs = tuple(d.freeze() for d in self.templates.values())
            for definition in self.templates.values():
                definition._finalized = True
            self._model = ProcessingModel(templates=specs)
            logger.debug(f"Finalized {len(self._model.templates)} template(s)")
        return self._model


class GenerationUnit(BaseModel):
    """One file-generation unit of work: a (template, replacement) pair."""

    model_config = ConfigDict(frozen=True)

    identifier: str
    description: str
    group: str = TASK_GROUP
    aggregate: str = Field(..., description="Identifier of the owning aggregate")
    template_name: str
    replacement_name: str
    source: Path = Field(..., description="Resolved template file")
    destination_dir: Path = Field(..., description="Resolved output directory")
    output_file_name: str
    expansion: dict[str, str] = Field(default_factory=dict)

    @property
    def output_path(self) -> Path:
        return self.destination_dir / self.output_file_name


class AggregateUnit(BaseModel):
    """Groups every generation unit of one template."""

    model_config = ConfigDict(frozen=True)

    identifier: str
    description: str
    group: str = TASK_GROUP
    template_name: str
    template_file: Path
    output_dir: Path
    units: tuple[GenerationUnit, ...] = ()

    @property
    def replacement_count(self) -> int:
        return len(self.units)


class GenerationPlan(BaseModel):
    """Aggregates registered as prerequisites of ``phase``."""

    model_config = ConfigDict(frozen=True)

    aggregates: tuple[AggregateUnit, ...] = ()
    phase: str = "processResources"

    @property
    def units(self) -> list[GenerationUnit]:
        return [unit for aggregate in self.aggregates for unit in aggregate.units]

    def find(self, key: str) -> AggregateUnit | None:
        """Look up an aggregate by identifier or template name."""
        for aggregate in self.aggregates:
            if key in (aggregate.identifier, aggregate.template_name):
                return aggregate
        return None


class AggregateResult(BaseModel):
    """Outcome of running one aggregate."""

    identifier: str
    template_file_name: str
    output_dir: Path
    replacement_count: int
    outputs: list[Path] = Field(default_factory=list)
