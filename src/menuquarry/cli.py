"""Command-line interface for menuquarry."""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import List, Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from menuquarry import __version__
from menuquarry.config import Config, load_config
from menuquarry.container import DependencyContainer
from menuquarry.errors import ExtractionError, MenuNotFoundError
from menuquarry.observability import MetricsManager, configure_logging
from menuquarry.orchestrator import normalize_base_url
from menuquarry.protocols import Candidate, ExtractionResult

console = Console()


def _load(ctx: click.Context) -> Config:
    """Load configuration and set up logging and metrics for a command."""
    config = load_config(ctx.obj.get("config_path"))
    if ctx.obj.get("log_level"):
        config.monitoring.log_level = ctx.obj["log_level"]
    configure_logging(config.monitoring)
    MetricsManager(config.monitoring).start()
    return config


async def _extract(config: Config, url: str) -> ExtractionResult:
    container = DependencyContainer(config=config)
    async with container.lifecycle():
        orchestrator = await container.get_orchestrator()
        return await orchestrator.extract_menu(url)


async def _discover(config: Config, url: str) -> List[Candidate]:
    container = DependencyContainer(config=config)
    async with container.lifecycle():
        discoverer = await container.get_discoverer()
        ranked = await discoverer.ranked_candidates(normalize_base_url(url))
        return ranked.value


def _menu_table(result: ExtractionResult) -> Table:
    table = Table(title=f"Menu ({result.source.value}) from {escape(result.source_url)}")
    table.add_column("Category", style="cyan")
    table.add_column("Item", style="bold")
    table.add_column("Price", style="magenta", justify="right")
    table.add_column("Description", style="dim")
    for category, items in result.menu.categories():
        for item in items:
            table.add_row(category, Text(item.name), Text(item.price), Text(item.description or ""))
    return table


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "-c", type=click.Path(exists=True, dir_okay=False), help="Configuration file path")
@click.option(
    "--log-level",
    default=None,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    help="Logging level (overrides configuration)",
)
@click.pass_context
def cli(ctx: click.Context, config: Optional[str], log_level: Optional[str]) -> None:
    """menuquarry - find and structure a restaurant menu from its website."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = Path(config) if config else None
    ctx.obj["log_level"] = log_level


@cli.command()
@click.argument("url")
@click.option("--output", "-o", type=click.Path(dir_okay=False, writable=True), help="Write the result as JSON")
@click.option("--no-render", is_flag=True, help="Skip the headless browser strategy")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON instead of a table")
@click.pass_context
def extract(ctx: click.Context, url: str, output: Optional[str], no_render: bool, as_json: bool) -> None:
    """Extract the menu reachable from URL."""
    config = _load(ctx)
    if no_render:
        config.render.enabled = False

    try:
        result = asyncio.run(_extract(config, url))
    except ExtractionError as e:
        if as_json:
            click.echo(json.dumps(e.to_dict(), indent=2, ensure_ascii=False))
        else:
            console.print(f"[red]{e.kind.value}[/red]: {escape(e.message)}")
            if isinstance(e, MenuNotFoundError) and e.detail:
                console.print(f"[dim]{escape(e.detail)}[/dim]")
        sys.exit(1)

    payload = result.to_dict()
    if output:
        Path(output).write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")

    if as_json:
        click.echo(json.dumps(payload, indent=2, ensure_ascii=False))
    else:
        console.print(_menu_table(result))
        if output:
            console.print(f"[green]Saved to {output}[/green]")


@cli.command()
@click.argument("url")
@click.option("--limit", default=None, type=click.IntRange(min=1), help="Number of candidates to show")
@click.pass_context
def discover(ctx: click.Context, url: str, limit: Optional[int]) -> None:
    """List ranked candidate menu URLs for URL."""
    config = _load(ctx)
    if limit is not None:
        config.discovery.max_candidates = limit

    candidates = asyncio.run(_discover(config, url))

    table = Table(title=f"Candidates for {escape(url)}")
    table.add_column("#", justify="right")
    table.add_column("Score", style="magenta", justify="right")
    table.add_column("URL", style="cyan")
    for rank, candidate in enumerate(candidates, start=1):
        table.add_row(str(rank), str(candidate.score), Text(candidate.url))
    console.print(table)


@cli.command("validate-config")
@click.pass_context
def validate_config(ctx: click.Context) -> None:
    """Load configuration and print the resolved settings."""
    try:
        config = load_config(ctx.obj.get("config_path"))
    except Exception as e:
        console.print(f"[red]Invalid configuration: {escape(str(e))}[/red]")
        sys.exit(1)

    console.print(
        Panel(
            Text(config.model_dump_json(indent=2)),
            title="Resolved configuration",
            border_style="green",
        )
    )


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
