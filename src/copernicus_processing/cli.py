"""
Command-line interface for the Copernicus processing core.

Commands:
- request: Acquire, process and export one product
- stages: List registered processing stages
- sources: List acquisition sources
- health-check: Check installed raster libraries and output directory

Example:
    $ copernicus-processing --help
    $ copernicus-processing request 2024-06-01 2024-06-15 "7.0|51.0|7.1|51.1" --type ndvi
    $ copernicus-processing -c config/local.toml stages
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.table import Table

from copernicus_processing import __version__
from copernicus_processing.config import get_settings, load_settings
from copernicus_processing.exceptions import MalformedExtent, ProcessingError
from copernicus_processing.models.requests import PROCESSING_CORRECTION, ProcessingRequest
from copernicus_processing.processing.core import Core
from copernicus_processing.processing.dispatcher import parse_extent
from copernicus_processing.sources import list_sources
from copernicus_processing.utils.logging import get_logger, setup_logging
from copernicus_processing.utils.time import parse_datetime

console = Console()


def _parse_params(values: tuple[str, ...]) -> dict[str, Any]:
    """Parse repeated ``key=value`` options; values are JSON if they parse."""
    params: dict[str, Any] = {}
    for item in values:
        key, sep, raw = item.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected key=value, got {item!r}", param_hint="--param")
        try:
            params[key] = json.loads(raw)
        except ValueError:
            params[key] = raw
    return params


@click.group()
@click.version_option(version=__version__, prog_name="copernicus-processing")
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    help="Configuration file path",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output",
)
@click.pass_context
def main(ctx: click.Context, config: Path | None, verbose: bool) -> None:
    """Copernicus processing core CLI.

    Acquire remote-sensing rasters, run correction and index stages,
    and export the result.
    """
    ctx.ensure_object(dict)

    if config:
        settings = load_settings(config)
    else:
        settings = get_settings()

    ctx.obj["settings"] = settings
    ctx.obj["verbose"] = verbose

    log_level = "DEBUG" if verbose else settings.logging.level
    setup_logging(
        level=log_level,
        format=settings.logging.format,
        include_timestamp=settings.logging.include_timestamp,
        include_location=settings.logging.include_location,
    )


@main.command("request")
@click.argument("start")
@click.argument("end")
@click.argument("extent")
@click.option(
    "--type",
    "-t",
    "selector",
    default=PROCESSING_CORRECTION,
    show_default=True,
    help="Processing type: none, correction or a stage name",
)
@click.option(
    "--param",
    "-p",
    "param_values",
    multiple=True,
    help="Acquisition parameter key=value (repeatable)",
)
@click.option("--source", "-s", help="Acquisition source (overrides config)")
@click.option(
    "--output-dir",
    "-o",
    type=click.Path(file_okay=False, path_type=Path),
    help="Output directory (overrides config)",
)
@click.option("--format", "-f", "format_name", help="Output format: GTiff or npz")
@click.pass_context
def request_cmd(
    ctx: click.Context,
    start: str,
    end: str,
    extent: str,
    selector: str,
    param_values: tuple[str, ...],
    source: str | None,
    output_dir: Path | None,
    format_name: str | None,
) -> None:
    """Process one request.

    START and END are ISO dates/datetimes; EXTENT is "x1|y1|x2|y2".
    """
    settings = ctx.obj["settings"]
    logger = get_logger(__name__)

    overrides: dict[str, Any] = {}
    if source:
        overrides["acquisition"] = settings.acquisition.model_copy(update={"source": source})
    if output_dir:
        overrides["export"] = settings.export.model_copy(update={"output_dir": str(output_dir)})
    if format_name:
        export = overrides.get("export", settings.export)
        overrides["export"] = export.model_copy(update={"format": format_name})
    if overrides:
        settings = settings.model_copy(update=overrides)

    try:
        window_start = parse_datetime(start)
        window_end = parse_datetime(end)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="START/END") from e

    params = _parse_params(param_values)

    try:
        rectangle = parse_extent(extent, settings.dispatch.extent_delimiter)
        core = Core.from_settings(settings)
        with console.status(f"[bold green]Processing ({selector})..."):
            result = core.dispatch(
                ProcessingRequest(
                    start=window_start,
                    end=window_end,
                    extent=rectangle,
                    selector=selector,
                    params=params,
                )
            )
    except MalformedExtent as e:
        raise click.BadParameter(str(e), param_hint="EXTENT") from e
    except (ProcessingError, KeyError, ValueError) as e:
        logger.error("request_failed", error=str(e))
        console.print(f"[red]✗[/red] {type(e).__name__}: {e}")
        ctx.exit(1)
        return

    console.print(f"[green]✓[/green] Exported to [cyan]{result.artifact}[/cyan]")
    console.print(f"  Stages: {', '.join(result.stages_applied) or 'none'}")
    if result.degraded:
        console.print(
            f"  [yellow]Unknown processing type '{selector}': exported corrected product only[/yellow]"
        )
    console.print(f"  Duration: {result.elapsed_seconds:.2f}s")


@main.command("stages")
@click.pass_context
def stages_cmd(ctx: click.Context) -> None:
    """List the default processing stages."""
    settings = ctx.obj["settings"]
    core = Core.from_settings(settings)

    table = Table(title="Processing Stages")
    table.add_column("Name", style="cyan")
    table.add_column("Version", style="green")
    table.add_column("Description")

    for info in core.registry.get_stage_info():
        table.add_row(info["name"], info["version"], info["description"])

    console.print(table)


@main.command("sources")
@click.pass_context
def sources_cmd(ctx: click.Context) -> None:
    """List acquisition sources."""
    configured = ctx.obj["settings"].acquisition.source
    for name in list_sources():
        marker = " [green](configured)[/green]" if name == configured else ""
        console.print(f"  {name}{marker}")


@main.command("health-check")
@click.pass_context
def health_check(ctx: click.Context) -> None:
    """Run system health check."""
    settings = ctx.obj["settings"]

    console.print("[bold]System Health Check[/bold]")
    console.print()

    import sys

    console.print(f"Python: [green]{sys.version.split()[0]}[/green]")

    import numpy as np
    import rasterio

    console.print(f"NumPy: [green]{np.__version__}[/green]")
    console.print(f"rasterio: [green]{rasterio.__version__}[/green] (GDAL {rasterio.__gdal_version__})")

    output_dir = settings.output_dir
    if output_dir.exists():
        console.print(f"Output directory: [green]{output_dir}[/green]")
    else:
        console.print(f"Output directory: [yellow]{output_dir} (created on first export)[/yellow]")

    console.print(f"Acquisition source: [cyan]{settings.acquisition.source}[/cyan]")
    console.print()
    console.print("[green]Health check complete[/green]")


if __name__ == "__main__":
    main()
