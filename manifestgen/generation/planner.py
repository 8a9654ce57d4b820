"""Translate a finalized configuration model into a generation plan."""

from __future__ import annotations

import logging
from pathlib import Path

from ..core.errors import DuplicateNameError, InvalidConfigError
from ..core.models import (
    NAME_TOKEN,
    AggregateUnit,
    GenerationPlan,
    GenerationUnit,
    ProcessingModel,
    ReplacementRecord,
    TemplateProcessing,
    TemplateSpec,
)
from .resolvers import OutputResolver, ResourceResolver

logger = logging.getLogger(__name__)


def capitalize(value: str) -> str:
    """Title-case the first character only (``destinationRule`` -> ``DestinationRule``)."""
    return value[:1].title() + value[1:]


def base_identifier(template_name: str) -> str:
    return f"process{capitalize(template_name)}Template"


def output_file_name(pattern: str, replacement_name: str) -> str:
    """Replace every ``{name}`` occurrence in ``pattern``."""
    return pattern.replace(NAME_TOKEN, replacement_name)


def expansion_mapping(replacement: ReplacementRecord) -> dict[str, str]:
    """Seed ``name`` then overlay the placeholders.

    A placeholder called ``name`` would win over the seeded value; the model
    rejects such keys so the seeded value is what templates see.
    """
    expansion = {"name": replacement.name}
    expansion.update(replacement.placeholders)
    return expansion


def _plan_template(
    template: TemplateSpec,
    resources: ResourceResolver,
    outputs: OutputResolver,
) -> AggregateUnit:
    aggregate_id = base_identifier(template.name)
    source = resources.resolve(template.template_path)
    destination = outputs.resolve(template.output_dir)

    units: list[GenerationUnit] = []
    for replacement in template.replacements:
        if not replacement.name or not replacement.name.strip():
            raise InvalidConfigError(
                f"Template {template.name!r}: replacement name cannot be blank"
            )

        unit = GenerationUnit(
            identifier=f"{aggregate_id}{capitalize(replacement.name)}",
            description=f"Processes {template.name} template for {replacement.name}",
            aggregate=aggregate_id,
            template_name=template.name,
            replacement_name=replacement.name,
            source=source,
            destination_dir=destination,
            output_file_name=output_file_name(
                template.output_file_pattern, replacement.name
            ),
            expansion=expansion_mapping(replacement),
        )
        logger.debug(f"Planned {unit.identifier} -> {unit.output_path}")
        units.append(unit)

    return AggregateUnit(
        identifier=aggregate_id,
        description=f"Processes {template.name} template with configured replacements",
        template_name=template.name,
        template_file=source,
        output_dir=destination,
        units=tuple(units),
    )


def _check_collisions(aggregates: list[AggregateUnit]) -> None:
    identifiers: dict[str, str] = {}
    output_paths: dict[Path, str] = {}

    for aggregate in aggregates:
        for identifier in [aggregate.identifier] + [u.identifier for u in aggregate.units]:
            if identifier in identifiers:
                raise DuplicateNameError(
                    f"Identifier {identifier!r} produced by template "
                    f"{aggregate.template_name!r} collides with template "
                    f"{identifiers[identifier]!r}"
                )
            identifiers[identifier] = aggregate.template_name

        for unit in aggregate.units:
            if unit.output_path in output_paths:
                raise DuplicateNameError(
                    f"Template {unit.template_name!r}, replacement "
                    f"{unit.replacement_name!r}: output {unit.output_path} is "
                    f"already written by {output_paths[unit.output_path]}"
                )
            output_paths[unit.output_path] = unit.identifier


def generate(
    model: ProcessingModel | TemplateProcessing,
    resources: ResourceResolver,
    outputs: OutputResolver,
    *,
    phase: str = "processResources",
) -> GenerationPlan:
    """Build the generation plan for a finalized model.

    Args:
        model: Finalized configuration model
        resources: Resolves template paths to files
        outputs: Resolves output directories
        phase: Phase the aggregates are registered with

    Returns:
        Plan with one aggregate per template, in declaration order

    Raises:
        InvalidConfigError: model not finalized, or a blank replacement name
        DuplicateNameError: colliding identifiers or output paths
    """
    if isinstance(model, TemplateProcessing):
        if not model.finalized:
            raise InvalidConfigError(
                "Configuration must be finalized before generation"
            )
        model = model.finalize()

    aggregates = [_plan_template(t, resources, outputs) for t in model.templates]
    _check_collisions(aggregates)

    plan = GenerationPlan(aggregates=tuple(aggregates), phase=phase)
    logger.debug(
        f"Planned {len(plan.units)} unit(s) in {len(plan.aggregates)} aggregate(s) "
        f"for phase {phase!r}"
    )
    return plan
