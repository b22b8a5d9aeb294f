"""CLI command: repwatch watch — monitor a fabric and clear rogue endpoints."""

from __future__ import annotations

import asyncio
import signal

import click
from rich.console import Console

from repwatch.cli import configure_logging
from repwatch.config import RepWatchConfig
from repwatch.supervisor import Supervisor

console = Console(stderr=True)


@click.command()
@click.option("--apic", "-a", "host", help="APIC host or IP.")
@click.option("--username", "-u", help="Username.")
@click.option("--password", "-p", help="Password.")
@click.option("--http-timeout", type=float, default=None, help="HTTP timeout in seconds (default: 180).")
@click.option("--clear-delay", type=float, default=None, help="Seconds a fault must stay raised before clearing (default: 30).")
@click.pass_context
def watch(
    ctx: click.Context,
    host: str | None,
    username: str | None,
    password: str | None,
    http_timeout: float | None,
    clear_delay: float | None,
) -> None:
    """Watch for rogue endpoint faults and clear stuck nodes."""
    config = RepWatchConfig.load(ctx.obj.get("config_path"))
    config.update(
        {
            "host": host,
            "username": username,
            "password": password,
            "http_timeout": http_timeout,
            "clear_delay": clear_delay,
            "log_file": ctx.obj.get("log_file"),
        }
    )
    _prompt_missing(config)

    configure_logging(config.log_file, ctx.obj.get("verbose", False))

    console.print(
        f"[bold]repwatch[/bold] watching [cyan]{config.host}[/cyan] "
        f"as [cyan]{config.username}[/cyan]"
    )
    console.print(
        f"  Clear delay: {config.clear_delay:g}s, HTTP timeout: {config.http_timeout:g}s, "
        f"log: {config.log_file}"
    )
    console.print("  Press Ctrl+C to stop.\n")

    asyncio.run(_run(config))
    console.print("[dim]Stopped.[/dim]")


async def _run(config: RepWatchConfig) -> None:
    supervisor = Supervisor(config)

    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, supervisor.stop)
        except NotImplementedError:
            # Windows event loops lack signal handlers; Ctrl+C still raises
            pass

    await supervisor.run()


def _prompt_missing(config: RepWatchConfig) -> None:
    if not config.host:
        config.host = click.prompt("APIC host or IP")
    if not config.username:
        config.username = click.prompt("Username")
    if not config.password:
        config.password = click.prompt("Password", hide_input=True)
