"""CLI entry point for website visual comparison."""

from __future__ import annotations

import asyncio
import functools
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from webcompare.engine.bulk import BulkComparisonRunner
from webcompare.engine.orchestrator import ComparisonEngine
from webcompare.errors import EngineError
from webcompare.models.config import EngineConfig
from webcompare.models.site import Collaborator

console = Console()


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _load_engine(ctx: click.Context) -> ComparisonEngine:
    config_path = ctx.obj["config_path"]
    try:
        cfg = EngineConfig.load(config_path)
    except FileNotFoundError:
        console.print(f"[red]Config file not found: {config_path}[/red]")
        console.print("Run 'webcompare init' to create a default config.")
        sys.exit(1)
    return ComparisonEngine.from_config(cfg)


def handle_errors(func):
    """Print engine errors in red and exit non-zero instead of dumping a traceback."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (EngineError, ValueError) as e:
            console.print(f"[red]{e}[/red]")
            sys.exit(1)

    return wrapper


def _fmt_pct(value: float | None) -> str:
    return "-" if value is None else f"{value:.3f}%"


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.option("--config", "-c", default="webcompare.json", help="Config file path")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config: str) -> None:
    """Website visual regression monitor"""
    setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config


@cli.command()
@click.option("--data-dir", default=".webcompare", help="Where screenshots and records are stored")
@click.pass_context
def init(ctx: click.Context, data_dir: str) -> None:
    """Create a default configuration file."""
    config_path = Path(ctx.obj["config_path"])
    if config_path.exists():
        if not click.confirm(f"{config_path} already exists. Overwrite?"):
            return
    EngineConfig(data_dir=data_dir).save(config_path)
    console.print(f"[green]Created {config_path}[/green]")
    console.print("\nNext, register a website and its pages:")
    console.print('  [blue]webcompare website add "My Site" https://example.com[/blue]')


# Websites

@cli.group()
def website() -> None:
    """Manage monitored websites."""
    pass


@website.command("add")
@click.argument("name")
@click.argument("url")
@click.option("--owner", "owner_email", default=None, help="Owner email for failure notifications")
@click.option("--editor", "editors", multiple=True, help="Collaborator email with edit permission")
@click.pass_context
@handle_errors
def website_add(ctx: click.Context, name: str, url: str, owner_email: str | None, editors: tuple[str, ...]) -> None:
    """Register a website by name and base URL."""
    engine = _load_engine(ctx)
    site = engine.catalog.add_website(
        name, url,
        owner_email=owner_email,
        collaborators=[Collaborator(email=e, permission="EDIT") for e in editors],
    )
    console.print(f"[green]Added website[/green] {site.name} ({site.url}) id=[bold]{site.website_id}[/bold]")


@website.command("list")
@click.pass_context
def website_list(ctx: click.Context) -> None:
    """List registered websites."""
    engine = _load_engine(ctx)
    sites = engine.catalog.list_websites()
    if not sites:
        console.print("[yellow]No websites registered[/yellow]")
        return
    table = Table(title="Websites")
    table.add_column("ID", style="bold")
    table.add_column("Name")
    table.add_column("URL")
    for s in sites:
        table.add_row(s.website_id, s.name, s.url)
    console.print(table)


# Pages

@cli.group()
def page() -> None:
    """Manage monitored pages."""
    pass


@page.command("add")
@click.argument("website_id")
@click.argument("name")
@click.argument("path")
@click.pass_context
@handle_errors
def page_add(ctx: click.Context, website_id: str, name: str, path: str) -> None:
    """Add a page (path relative to the website URL)."""
    engine = _load_engine(ctx)
    p = engine.catalog.add_page(website_id, name, path)
    console.print(f"[green]Added page[/green] {p.name} ({p.path}) id=[bold]{p.page_id}[/bold]")


@page.command("list")
@click.argument("website_id")
@click.pass_context
@handle_errors
def page_list(ctx: click.Context, website_id: str) -> None:
    """List the pages of a website."""
    engine = _load_engine(ctx)
    pages = engine.catalog.pages_for_website(website_id)
    if not pages:
        console.print("[yellow]No pages for this website[/yellow]")
        return
    table = Table(title="Pages")
    table.add_column("ID", style="bold")
    table.add_column("Name")
    table.add_column("Path")
    for p in pages:
        table.add_row(p.page_id, p.name, p.path)
    console.print(table)


@page.command("remove")
@click.argument("page_id")
@click.pass_context
@handle_errors
def page_remove(ctx: click.Context, page_id: str) -> None:
    """Remove a page and all of its comparisons."""
    engine = _load_engine(ctx)
    engine.catalog.remove_page(page_id)
    console.print(f"[green]Removed page {page_id}[/green]")


# Comparisons

@cli.command()
@click.argument("page_id")
@click.pass_context
@handle_errors
def compare(ctx: click.Context, page_id: str) -> None:
    """Capture a page and compare it with its baseline."""
    engine = _load_engine(ctx)
    outcome = asyncio.run(engine.run_comparison(page_id))

    table = Table(title="Comparison")
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("Comparison ID", outcome.comparison_id)
    table.add_row("Status", f"[green]{outcome.status.value}[/green]")
    if outcome.is_first_comparison:
        table.add_row("Result", "First capture stored as baseline")
    else:
        table.add_row("Difference", _fmt_pct(outcome.diff_percentage))
    console.print(table)


@cli.command("compare-all")
@click.argument("website_id")
@click.pass_context
@handle_errors
def compare_all(ctx: click.Context, website_id: str) -> None:
    """Compare every page of a website, one after another."""
    engine = _load_engine(ctx)

    async def _run():
        runner = BulkComparisonRunner(engine)
        job = await runner.submit(website_id)
        console.print(f"Processing {job.total_pages} pages")
        return await runner.wait(job.job_id)

    job = asyncio.run(_run())

    table = Table(title=f"Bulk comparison {job.job_id}")
    table.add_column("Page", style="bold")
    table.add_column("Path")
    table.add_column("Result")
    for r in job.results:
        if not r.success:
            result = f"[red]failed: {r.error}[/red]"
        elif r.comparison and r.comparison.is_first_comparison:
            result = "[green]baseline captured[/green]"
        else:
            result = f"[green]{_fmt_pct(r.comparison.diff_percentage if r.comparison else None)}[/green]"
        table.add_row(r.page_name, r.page_path, result)
    console.print(table)
    console.print(f"{job.succeeded} succeeded, {job.failed} failed")
    if job.failed:
        sys.exit(1)


@cli.command()
@click.argument("page_id")
@click.pass_context
@handle_errors
def history(ctx: click.Context, page_id: str) -> None:
    """Show the comparisons of a page, newest first."""
    engine = _load_engine(ctx)
    engine.catalog.get_page(page_id)
    rows = engine.comparisons.list_for_page(page_id)
    if not rows:
        console.print("[yellow]No comparisons yet[/yellow]")
        return
    colors = {"completed": "green", "failed": "red", "pending": "yellow"}
    table = Table(title="Comparisons")
    table.add_column("ID", style="bold")
    table.add_column("Created")
    table.add_column("Status")
    table.add_column("Difference")
    table.add_column("Baseline")
    table.add_column("Current")
    for c in rows:
        color = colors[c.status.value]
        table.add_row(
            c.comparison_id,
            c.created_at.strftime("%Y-%m-%d %H:%M:%S"),
            f"[{color}]{c.status.value}[/{color}]",
            _fmt_pct(c.diff_percentage),
            (c.baseline_image or "-")[:16],
            (c.current_image or "-")[:16],
        )
    console.print(table)


@cli.command()
@click.argument("comparison_id")
@click.pass_context
@handle_errors
def baselines(ctx: click.Context, comparison_id: str) -> None:
    """List images that can become the baseline of a comparison."""
    engine = _load_engine(ctx)
    candidates = engine.baseline_registry().list_candidates(comparison_id)
    if not candidates:
        console.print("[yellow]No candidate baselines[/yellow]")
        return
    table = Table(title="Baseline candidates")
    table.add_column("Comparison", style="bold")
    table.add_column("Role")
    table.add_column("Created")
    table.add_column("Difference")
    table.add_column("Image")
    for c in candidates:
        table.add_row(
            c.source_comparison_id, c.role,
            c.created_at.strftime("%Y-%m-%d %H:%M:%S"),
            _fmt_pct(c.diff_percentage), c.image_ref,
        )
    console.print(table)


@cli.command("set-baseline")
@click.argument("comparison_id")
@click.argument("image_ref")
@click.pass_context
@handle_errors
def set_baseline(ctx: click.Context, comparison_id: str, image_ref: str) -> None:
    """Use IMAGE_REF as the baseline for a comparison and all later ones."""
    engine = _load_engine(ctx)
    updated = asyncio.run(engine.baseline_registry().override_baseline(comparison_id, image_ref))
    console.print("[green]Baseline updated successfully[/green]")
    console.print(f"  Difference: {_fmt_pct(updated.diff_percentage)}")


if __name__ == "__main__":
    cli()
