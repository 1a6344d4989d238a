"""Command line interface for the scheduler."""

import asyncio
import logging
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from cms_scheduler.config import settings

app = typer.Typer(
    name="cms-scheduler",
    help="CMS Scheduler - scheduled publishing and unpublishing",
    no_args_is_help=True,
)

console = Console()


@app.callback()
def main() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(levelname)s - %(message)s",
    )


async def _run_cron(nolog: bool):
    from cms_scheduler.database import AsyncSessionLocal
    from cms_scheduler.plugins import plugin_registry
    from cms_scheduler.plugins.loader import initialize_plugins, shutdown_plugins
    from cms_scheduler.scheduler.cron import TRIGGER_COMMAND, run_lightweight_cron

    await initialize_plugins(plugin_registry)
    try:
        async with AsyncSessionLocal() as db:
            return await run_lightweight_cron(db, trigger=TRIGGER_COMMAND, nolog=nolog)
    finally:
        await shutdown_plugins(plugin_registry)


@app.command()
def cron(
    nolog: Annotated[
        bool,
        typer.Option("--nolog", help="Do not write the start and finish messages to the log"),
    ] = False,
    nomsg: Annotated[
        bool,
        typer.Option("--nomsg", help="Do not print a confirmation message when finished"),
    ] = False,
) -> None:
    """Run the lightweight cron: scheduled publishing, then unpublishing.

    Examples:
        cms-scheduler cron
        cms-scheduler cron --nolog --nomsg
    """
    result = asyncio.run(_run_cron(nolog))

    if result.skipped:
        console.print("[yellow]Another scheduler cron run is in progress, nothing done[/yellow]")
        raise typer.Exit(1)

    for error in result.errors:
        console.print(f"[red]Error:[/red] {error}")

    if not nomsg:
        console.print("Message: Scheduler lightweight cron completed")

    if result.errors:
        raise typer.Exit(1)


app.command("sch-cron", hidden=True)(cron)
app.command("sch:cron", hidden=True)(cron)


@app.command("rotate-key")
def rotate_key() -> None:
    """Generate a new lightweight cron access key."""
    from cms_scheduler.scheduler.settings import rotate_access_key

    key = rotate_access_key()
    console.print(f"New access key: [bold]{key}[/bold]")
    console.print(f"Cron URL path: /scheduler/cron/{key}")


@app.command()
def plugins() -> None:
    """List the schedulable content kinds."""
    from cms_scheduler.scheduler.capabilities import capability_registry
    from cms_scheduler.scheduler.settings import load_scheduler_config

    capability_registry.set_enabled_modules(load_scheduler_config().enabled_modules)
    enabled = {plugin.plugin_id for plugin in capability_registry.get_plugins()}

    table = Table(title="Scheduler plugins")
    table.add_column("ID", style="cyan")
    table.add_column("Entity type")
    table.add_column("Revisionable")
    table.add_column("Weight", justify="right")
    table.add_column("Provider")
    table.add_column("Enabled")
    for plugin in capability_registry.get_definitions():
        table.add_row(
            plugin.plugin_id,
            plugin.entity_type,
            "yes" if plugin.revisionable else "no",
            str(plugin.weight),
            plugin.provider,
            "[green]yes[/green]" if plugin.plugin_id in enabled else "[dim]no[/dim]",
        )
    console.print(table)


if __name__ == "__main__":
    app()
