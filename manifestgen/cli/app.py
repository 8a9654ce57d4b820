"""Main CLI application."""

from __future__ import annotations

import logging
from pathlib import Path

import typer
from typing_extensions import Annotated

from ..config.loader import load_config
from ..config.settings import Settings
from ..core.errors import TemplateProcessingError
from ..core.models import GenerationPlan
from ..execution import runner
from ..generation.planner import generate as plan_generation
from ..generation.resolvers import BuildDirectory, ResourcesDirectory
from .parsers import parse_file_mode, parse_selection

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="manifestgen",
    help="Generate one file per configured replacement from a shared template.",
    no_args_is_help=True,
)

ConfigOption = Annotated[
    str,
    typer.Option(
        "--config",
        "-c",
        help="Template processing configuration (default: templates.yaml).",
        metavar="FILE",
    ),
]
ResourcesOption = Annotated[
    str,
    typer.Option(
        "--resources-root",
        help="Directory template paths are relative to (default: src/main/resources).",
        metavar="DIR",
    ),
]
BuildDirOption = Annotated[
    str,
    typer.Option(
        "--build-dir",
        help="Directory output paths are relative to (default: build).",
        metavar="DIR",
    ),
]
VerboseOption = Annotated[
    bool,
    typer.Option(
        "--verbose",
        "-v",
        help="Enable verbose logging.",
    ),
]


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )


def _build_plan(
    settings: Settings, config: str, resources_root: str, build_dir: str
) -> GenerationPlan:
    config_file = Path(config) if config else settings.config_file
    resources = ResourcesDirectory(
        Path(resources_root) if resources_root else settings.resources_root
    )
    outputs = BuildDirectory(Path(build_dir) if build_dir else settings.build_dir)

    logger.debug(f"Config: {config_file}, resources: {resources.root}, build: {outputs.root}")

    processing = load_config(config_file)
    return plan_generation(processing.finalize(), resources, outputs)


@app.command()
def generate(
    config: ConfigOption = "",
    resources_root: ResourcesOption = "",
    build_dir: BuildDirOption = "",
    file_mode: Annotated[
        str,
        typer.Option(
            "--mode",
            help="File permissions in octal (default: 0644).",
            metavar="OCTAL",
        ),
    ] = "",
    only: Annotated[
        list[str],
        typer.Option(
            "--only",
            help="Process only this template name or task identifier. Repeatable.",
            metavar="NAME",
        ),
    ] = [],
    verbose: VerboseOption = False,
) -> None:
    """Generate files for every configured template and replacement."""
    _configure_logging(verbose)

    settings = Settings()
    mode = parse_file_mode(file_mode) if file_mode else settings.file_mode
    selection = parse_selection(only)

    try:
        plan = _build_plan(settings, config, resources_root, build_dir)
        results = runner.run_phase(plan, selection, file_mode=mode)
    except TemplateProcessingError as e:
        logger.error(str(e))
        raise typer.Exit(code=1) from e

    logger.debug(
        f"Completed: {sum(r.replacement_count for r in results)} file(s) generated"
    )


@app.command()
def tasks(
    config: ConfigOption = "",
    resources_root: ResourcesOption = "",
    build_dir: BuildDirOption = "",
    verbose: VerboseOption = False,
) -> None:
    """List the generation tasks the configuration produces."""
    _configure_logging(verbose)

    try:
        plan = _build_plan(Settings(), config, resources_root, build_dir)
    except TemplateProcessingError as e:
        logger.error(str(e))
        raise typer.Exit(code=1) from e

    typer.echo(f"Template processing tasks (required by {plan.phase})")
    for aggregate in plan.aggregates:
        typer.echo(f"{aggregate.identifier} - {aggregate.description}")
        for unit in aggregate.units:
            typer.echo(f"  {unit.identifier} -> {unit.output_path}")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
