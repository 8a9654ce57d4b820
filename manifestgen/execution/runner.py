"""Run generation units and their aggregates in dependency order."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from ..core.errors import InvalidConfigError
from ..core.models import AggregateResult, AggregateUnit, GenerationPlan, GenerationUnit
from ..rendering import engine

logger = logging.getLogger(__name__)


def execute_unit(unit: GenerationUnit, file_mode: int = 0o644) -> Path:
    """Generate the output file of a single unit."""
    logger.debug(f"Running {unit.identifier}: {unit.description}")

    output_path = engine.copy_with_expansion(
        unit.source,
        unit.destination_dir,
        lambda _: unit.output_file_name,
        unit.expansion,
        file_mode=file_mode,
    )

    logger.info(f"Generated: {unit.output_file_name}")
    return output_path


def report_completion(aggregate: AggregateUnit) -> None:
    logger.info(f"Processing template: {aggregate.template_file.name}")
    logger.info(f"Output directory: {aggregate.output_dir.absolute()}")
    logger.info(
        f"Successfully processed {aggregate.replacement_count} replacement(s)"
    )


def run_aggregate(aggregate: AggregateUnit, file_mode: int = 0o644) -> AggregateResult:
    """Run every unit of ``aggregate``, then its completion report."""
    outputs = [execute_unit(unit, file_mode) for unit in aggregate.units]
    report_completion(aggregate)

    return AggregateResult(
        identifier=aggregate.identifier,
        template_file_name=aggregate.template_file.name,
        output_dir=aggregate.output_dir.absolute(),
        replacement_count=aggregate.replacement_count,
        outputs=outputs,
    )


def select_aggregates(
    plan: GenerationPlan, selection: Iterable[str] | None = None
) -> list[AggregateUnit]:
    """Resolve template names or aggregate identifiers, keeping plan order.

    Raises:
        InvalidConfigError: if a selector matches no aggregate
    """
    if selection is None:
        return list(plan.aggregates)

    selected: set[str] = set()
    for key in selection:
        aggregate = plan.find(key)
        if aggregate is None:
            available = ", ".join(a.template_name for a in plan.aggregates) or "none"
            raise InvalidConfigError(
                f"Unknown template or task {key!r} (available: {available})"
            )
        selected.add(aggregate.identifier)

    return [a for a in plan.aggregates if a.identifier in selected]


def run_phase(
    plan: GenerationPlan,
    selection: Iterable[str] | None = None,
    file_mode: int = 0o644,
) -> list[AggregateResult]:
    """Run the aggregates registered with the plan's phase.

    Args:
        plan: Generation plan
        selection: Template names or aggregate identifiers; all when None
        file_mode: File permissions for generated files

    Returns:
        One result per aggregate run, in plan order
    """
    aggregates = select_aggregates(plan, selection)
    logger.info(f"Running {len(aggregates)} aggregate(s) for {plan.phase}")

    results = [run_aggregate(aggregate, file_mode) for aggregate in aggregates]

    total = sum(r.replacement_count for r in results)
    logger.debug(f"Completed {plan.phase}: {total} file(s) generated")
    return results
