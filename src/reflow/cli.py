"""Command-line interface for reflow."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from .exceptions import ReflowError
from .loader import OutputFormat, dump_result, load_reflow_input
from .logger import (
    VERBOSITY_CHANGES,
    VERBOSITY_CHECKS,
    VERBOSITY_DEBUG,
    VERBOSITY_SILENT,
    setup_logger,
)
from .report import format_result, format_violations
from .scenarios import find_scenario, list_scenarios
from .scheduler import ReflowResult, ReflowService, apply_global_exclusions, verify_schedule
from .unified_config import UnifiedConfig, discover_config

app = typer.Typer(
    name="reflow",
    help="Reschedule dependent tasks on serial resources around calendars and blackouts",
    add_completion=False,
)

EXIT_ERROR = 1
EXIT_PROVISIONAL = 2


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose",
            "-v",
            help=(
                f"Verbosity level: {VERBOSITY_SILENT}=silent (default), "
                f"{VERBOSITY_CHANGES}=show changes, {VERBOSITY_CHECKS}=show all checks, "
                f"{VERBOSITY_DEBUG}=debug"
            ),
            min=VERBOSITY_SILENT,
            max=VERBOSITY_DEBUG,
        ),
    ] = VERBOSITY_SILENT,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to config file (default: reflow_config.yaml)",
        ),
    ] = None,
) -> None:
    """Global options for reflow commands."""
    setup_logger(verbose)
    ctx.obj = config


def _load_config(ctx: typer.Context, input_path: Path | None = None) -> UnifiedConfig:
    try:
        return discover_config(input_path, ctx.obj)
    except (FileNotFoundError, ReflowError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(EXIT_ERROR) from None


@app.command()
def run(
    ctx: typer.Context,
    file: Annotated[Path, typer.Argument(help="Path to the schedule input (YAML or JSON)")],
    *,
    output: Annotated[Path | None, typer.Option("--output", "-o", help="Output file path")] = None,
    output_format: Annotated[
        OutputFormat, typer.Option("--format", "-f", help="Output format")
    ] = OutputFormat.TEXT,
    strict: Annotated[
        bool,
        typer.Option("--strict", help="Exit with status 2 when the result has errors"),
    ] = False,
) -> None:
    """Reflow a schedule and print or save the revised plan."""
    config = _load_config(ctx, file)
    try:
        reflow_input = load_reflow_input(file)
    except ReflowError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(EXIT_ERROR) from None

    service = ReflowService(config.scheduler, config.global_exclusions)
    result = service.reflow(reflow_input.tasks, reflow_input.resources, reflow_input.orders)

    _emit(_render(file.name, result, output_format), output)

    if strict and result.errors:
        raise typer.Exit(EXIT_PROVISIONAL)


@app.command()
def verify(
    ctx: typer.Context,
    file: Annotated[Path, typer.Argument(help="Path to the schedule input (YAML or JSON)")],
) -> None:
    """Check a schedule against every hard rule without changing it."""
    config = _load_config(ctx, file)
    try:
        reflow_input = load_reflow_input(file)
    except ReflowError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(EXIT_ERROR) from None

    resources = apply_global_exclusions(reflow_input.resources, config.global_exclusions)
    violations = verify_schedule(reflow_input.tasks, resources, config=config.scheduler)
    typer.echo(format_violations(violations))

    if violations:
        raise typer.Exit(EXIT_ERROR)


@app.command()
def scenarios() -> None:
    """List the built-in example scenarios."""
    for scenario in list_scenarios():
        typer.echo(f"{scenario.key:<22} {scenario.title}: {scenario.description}")


@app.command()
def demo(
    ctx: typer.Context,
    key: Annotated[
        str | None, typer.Argument(help="Scenario to run (default: all of them)")
    ] = None,
    output_format: Annotated[
        OutputFormat, typer.Option("--format", "-f", help="Output format")
    ] = OutputFormat.TEXT,
) -> None:
    """Run built-in scenarios and print their results."""
    config = _load_config(ctx)
    service = ReflowService(config.scheduler, config.global_exclusions)

    if key is None:
        selected = list_scenarios()
    else:
        try:
            selected = [find_scenario(key)]
        except ReflowError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(EXIT_ERROR) from None

    for scenario in selected:
        reflow_input = scenario.build()
        result = service.reflow(reflow_input.tasks, reflow_input.resources, reflow_input.orders)
        typer.echo(_render(scenario.title, result, output_format))


def _render(title: str, result: ReflowResult, output_format: OutputFormat) -> str:
    if output_format == OutputFormat.TEXT:
        return format_result(title, result)
    return dump_result(result, output_format)


def _emit(text: str, output: Path | None) -> None:
    if output:
        output.write_text(text, encoding="utf-8")
        typer.echo(f"Result written to {output}", err=True)
    else:
        typer.echo(text)


def main() -> int:
    """Main entry point."""
    # Typer handles sys.exit() internally
    app()
    return 0


if __name__ == "__main__":
    main()
