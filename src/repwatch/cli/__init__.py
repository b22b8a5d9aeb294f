"""CLI entry point — Click group with global options."""

from __future__ import annotations

import logging

import click
from rich.logging import RichHandler

from repwatch import __version__


@click.group()
@click.version_option(version=__version__, prog_name="repwatch")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to a YAML config file.",
)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False),
    default=None,
    help="Log file path (default: rep.log).",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.pass_context
def main(
    ctx: click.Context,
    config_path: str | None,
    log_file: str | None,
    verbose: bool,
) -> None:
    """repwatch — rogue endpoint detection monitoring for ACI fabrics."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["log_file"] = log_file
    ctx.obj["verbose"] = verbose


def configure_logging(log_file: str, verbose: bool) -> None:
    """Everything goes to the log file; INFO and up (DEBUG if verbose) to the console."""
    console = RichHandler(show_path=False, rich_tracebacks=True)
    console.setLevel(logging.DEBUG if verbose else logging.INFO)

    file_handler = logging.FileHandler(log_file, mode="w", encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    )

    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        handlers=[console, file_handler],
        force=True,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _register_commands() -> None:
    from repwatch.cli.watch import watch  # noqa: F811

    main.add_command(watch)


_register_commands()
