"""paycron CLI — Typer-based command-line interface."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import NoReturn

import typer
from loguru import logger
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from paycron import __version__
from paycron.errors import ConfigurationError

app = typer.Typer(
    name="paycron",
    help="paycron - scheduled Lightning payments",
    no_args_is_help=True,
)

console = Console()


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"paycron v{__version__}")
        raise typer.Exit()


def _fail(error: ConfigurationError) -> NoReturn:
    logger.error(str(error))
    console.print(f"[red]{escape(str(error))}[/red]")
    raise typer.Exit(code=1)


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=_version_callback, is_eager=True
    ),
) -> None:
    """paycron - scheduled Lightning payments."""


# ════════════════════════════════════════════════════════════
# run: start the scheduler
# ════════════════════════════════════════════════════════════


@app.command()
def run(
    config_path: Path | None = typer.Option(None, "--config-path", "-c", help="Config file"),
    log_path: Path | None = typer.Option(None, "--log-path", "-l", help="Also log to this file"),
    log_level: str = typer.Option("INFO", "--log-level", help="Log level"),
) -> None:
    """Check the node, then run every configured job on its schedule."""
    from paycron.core.config.loader import load_job_config
    from paycron.core.cron.job import build_jobs
    from paycron.core.log import setup_logging

    setup_logging(log_path, level=log_level.upper())
    try:
        config = load_job_config(config_path)
        jobs = build_jobs(config.jobs)
        asyncio.run(_run_scheduler(config, jobs))
    except ConfigurationError as e:
        _fail(e)
    except KeyboardInterrupt:
        console.print("\nStopped.")


async def _run_scheduler(config, jobs) -> None:
    from paycron.core.cron.scheduler import PaymentScheduler
    from paycron.nodes.lnd import check_connection

    await check_connection(config.connection)
    scheduler = PaymentScheduler(jobs, config.connection)
    try:
        await scheduler.run()
    finally:
        await scheduler.shutdown()


# ════════════════════════════════════════════════════════════
# jobs: schedule overview
# ════════════════════════════════════════════════════════════


@app.command()
def jobs(
    config_path: Path | None = typer.Option(None, "--config-path", "-c", help="Config file"),
) -> None:
    """List configured jobs and when each runs next."""
    from paycron.core.config.loader import load_config
    from paycron.core.cron.job import build_jobs
    from paycron.nodes.executor import fee_limit

    try:
        config = load_config(config_path)
        built = build_jobs(config.jobs)
    except ConfigurationError as e:
        _fail(e)

    if not built:
        console.print("[dim]No jobs configured.[/dim]")
        return

    table = Table(title="Jobs")
    table.add_column("Name", style="cyan")
    table.add_column("Schedule", style="yellow")
    table.add_column("Amount (sat)", style="green", justify="right")
    table.add_column("Max fee (sat)", justify="right")
    table.add_column("Destination", style="blue")
    table.add_column("Next run", style="white")

    for job in built:
        definition = job.definition
        table.add_row(
            job.name,
            definition.cron_expression,
            str(definition.amount_sats),
            str(fee_limit(definition)),
            job.endpoint or f"[red]{escape(str(job.resolve_error))}[/red]",
            job.next_run.isoformat() if job.next_run else "-",
        )

    console.print(table)


# ════════════════════════════════════════════════════════════
# check: node connectivity
# ════════════════════════════════════════════════════════════


@app.command()
def check(
    config_path: Path | None = typer.Option(None, "--config-path", "-c", help="Config file"),
) -> None:
    """Verify the payment node is reachable with the configured credentials."""
    from paycron.core.config.loader import load_config
    from paycron.nodes.lnd import check_connection

    try:
        config = load_config(config_path)
        info = asyncio.run(check_connection(config.connection))
    except ConfigurationError as e:
        _fail(e)

    table = Table(title="Node")
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Server", config.server_url)
    table.add_row("Alias", str(info.get("alias", "-")))
    table.add_row("Version", str(info.get("version", "-")))
    table.add_row("Synced", str(info.get("synced_to_chain", "-")))
    console.print(table)


# ════════════════════════════════════════════════════════════
# init: default config
# ════════════════════════════════════════════════════════════


@app.command()
def init(
    config_path: Path = typer.Option(Path("config.yaml"), "--config-path", "-c", help="Config file"),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing file"),
) -> None:
    """Write a commented default config file."""
    from paycron.core.config.loader import write_default_config

    if config_path.exists() and not force:
        console.print(f"[yellow]Config already exists:[/yellow] {config_path}")
        raise typer.Exit(code=1)

    write_default_config(config_path)
    console.print(f"[green]Config written:[/green] {config_path}")
