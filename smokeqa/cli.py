"""CLI entry point for the smoke QA runner."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from smokeqa.models.config import FrameworkConfig
from smokeqa.orchestrator import Orchestrator
from smokeqa.url_utils import normalize_target_url

console = Console()

DEFAULT_CONFIG = "smokeqa-config.json"


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _load_config(config: str, target_url: str, **overrides) -> FrameworkConfig:
    """Use the config file when it exists, defaults otherwise; the target always comes from the CLI."""
    url = normalize_target_url(target_url)
    path = Path(config)
    if path.exists():
        cfg = FrameworkConfig.load(path)
        return cfg.model_copy(update={"target_url": url, **overrides})
    return FrameworkConfig(target_url=url, **overrides)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """AI-generated smoke tests for any web page"""
    setup_logging(verbose)


@cli.command()
@click.argument("url")
@click.argument("count", type=click.IntRange(min=1), default=10, required=False)
@click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path")
def run(url: str, count: int, config: str) -> None:
    """Generate COUNT test cases for URL, execute them and save the report."""
    cfg = _load_config(config, url, target_case_count=count)
    report = Orchestrator(cfg).run()

    if report.error:
        console.print(f"\n[bold red]Run failed:[/bold red] {report.error}")
    else:
        console.print("\n[bold green]Run Complete[/bold green]")

    summary = report.summary
    table = Table(title="Smoke Test Summary")
    table.add_column("Metric", style="bold")
    table.add_column("Value")
    table.add_row("URL", report.url)
    table.add_row("Total", str(summary.total))
    table.add_row("Passed", f"[green]{summary.passed}[/green]")
    table.add_row("Failed", f"[red]{summary.failed}[/red]")
    table.add_row("N/A", f"[yellow]{summary.na}[/yellow]")
    table.add_row("Success rate", f"{summary.success_rate}%")
    table.add_row("Tokens", str(report.usage.total_tokens))
    console.print(table)

    if summary.warning:
        console.print(f"[yellow]{summary.warning}[/yellow]")
    console.print(f"  JSON report: [blue]{Path(cfg.report_output_dir) / cfg.report_filename}[/blue]")
    if report.video_path:
        console.print(f"  Video: [blue]{report.video_path}[/blue]")

    if report.error:
        sys.exit(1)


@cli.command()
@click.argument("url")
@click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path")
def screenshots(url: str, config: str) -> None:
    """Capture desktop, tablet and mobile screenshots of URL."""
    cfg = _load_config(config, url)
    saved = Orchestrator(cfg).run_screenshots()
    if not saved:
        console.print("[red]No screenshots were captured[/red]")
        sys.exit(1)
    for path in saved:
        console.print(f"  Saved [blue]{path}[/blue]")


@cli.command()
@click.option("--target", "-t", prompt="Target URL", help="Website URL to test")
@click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path")
def init(target: str, config: str) -> None:
    """Write a config file with every setting at its default."""
    config_path = Path(config)
    if config_path.exists():
        if not click.confirm(f"{config_path} already exists. Overwrite?"):
            return

    cfg = FrameworkConfig(target_url=normalize_target_url(target))
    cfg.save(config_path)
    console.print(f"[green]Wrote {config_path}[/green]")
    console.print("\nEdit it as needed, then start a run with:")
    console.print(f"  [blue]smokeqa run {cfg.target_url}[/blue]")


if __name__ == "__main__":
    cli()
