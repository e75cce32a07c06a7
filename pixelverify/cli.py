"""CLI entry point for pixelverify."""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from pixelverify.comparator.comparator import PixelDiffComparator
from pixelverify.models.comparison import ComparisonIdentity, ComparisonVerdict
from pixelverify.models.config import ComparisonConfig, VerifierConfig
from pixelverify.orchestrator import Orchestrator

console = Console()


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _verdict_table(verdicts: list[ComparisonVerdict], title: str) -> Table:
    table = Table(title=title)
    table.add_column("Image", style="bold")
    table.add_column("Result")
    table.add_column("Mismatched")
    table.add_column("Detail")
    for v in verdicts:
        result = "[green]pass[/green]" if v.passed else f"[red]{v.error.value if v.error else 'fail'}[/red]"
        detail = "" if v.passed else (v.diff_artifact or v.message)
        table.add_row(v.identity.label, result, str(v.mismatched_pixel_count), detail)
    return table


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Pixel-exact visual regression checks for the image viewer"""
    setup_logging(verbose)


@cli.command()
@click.option("--config", "-c", default="pixelverify.json", help="Config file path")
def run(config: str) -> None:
    """Walk every series in the viewer and compare each image with its fixture."""
    try:
        cfg = VerifierConfig.load(config)
    except FileNotFoundError:
        console.print(f"[red]Config file not found: {config}[/red]")
        console.print("Run 'pixelverify init' to create a default config.")
        sys.exit(1)

    result = Orchestrator(cfg).run()

    console.print(_verdict_table(result.verdicts, f"Run {result.run_id}"))
    for nav in result.navigation_errors:
        console.print(f"[yellow]{nav.series_name} image {nav.image_index}: {nav.action}: {nav.message}[/yellow]")
    console.print(
        f"[bold]{result.passed}[/bold] passed, [bold]{result.failed}[/bold] failed "
        f"in {result.duration_seconds}s"
    )
    if not result.succeeded:
        sys.exit(1)


@cli.command()
@click.argument("rendered", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("fixture_dir", type=click.Path(file_okay=False, path_type=Path))
@click.option("--prefix", "-p", required=True, help="Series prefix, e.g. series_1")
@click.option("--index", "-i", required=True, type=click.IntRange(min=1), help="Image index within the series")
@click.option("--threshold", "-t", default=0, type=click.IntRange(0, 255), help="Per-channel tolerance")
@click.option("--max-mismatched", default=0, type=click.IntRange(min=0), help="Mismatched pixels allowed")
@click.option("--extension", default="jpeg", help="Fixture file extension")
@click.option("--output-dir", "-o", default="./output", help="Where to write artifacts")
def compare(
    rendered: Path,
    fixture_dir: Path,
    prefix: str,
    index: int,
    threshold: int,
    max_mismatched: int,
    extension: str,
    output_dir: str,
) -> None:
    """Compare a captured image file against its fixture."""
    comparator = PixelDiffComparator(
        config=ComparisonConfig(
            threshold=threshold,
            max_mismatched_pixels=max_mismatched,
            fixture_extension=extension,
            output_dir=output_dir,
        )
    )
    identity = ComparisonIdentity(series_prefix=prefix, image_index=index, fixture_directory=str(fixture_dir))
    verdict = asyncio.run(comparator.compare_bytes(rendered.read_bytes(), identity))

    console.print(_verdict_table([verdict], "Comparison"))
    if not verdict.passed:
        console.print(f"[red]{verdict.message}[/red]")
        sys.exit(1)


@cli.command()
@click.option("--target", "-t", prompt="Viewer URL", help="URL of the image viewer")
@click.option("--config", "-c", default="pixelverify.json", help="Config file path")
def init(target: str, config: str) -> None:
    """Create a default configuration file."""
    config_path = Path(config)
    if config_path.exists():
        if not click.confirm(f"{config_path} already exists. Overwrite?"):
            return

    cfg = VerifierConfig(target_url=target)
    cfg.save(config_path)
    console.print(f"[green]Created {config_path}[/green]")
    console.print("\nPut fixtures under the configured fixture_dir of each series, then run:")
    console.print("  [blue]pixelverify run[/blue]")


if __name__ == "__main__":
    cli()
