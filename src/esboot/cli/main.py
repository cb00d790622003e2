"""
esboot CLI

Entry point of the Elasticsearch container. Everything is driven by
environment variables; the commands only select which part runs.

Usage:
    esboot              Same as `esboot start`
    esboot start        Size the heap, prepare the node and exec Elasticsearch
    esboot heap         Print the heap flags that `start` would use
    esboot templates    Wait for Elasticsearch and push the index templates
"""

import asyncio
import logging

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from esboot import __version__
from esboot.core.config import get_settings
from esboot.core.errors import ConfigError
from esboot.launcher import Launcher, poll_then_publish
from esboot.memory import compute_heap_flags, read_cgroup_limit

app = typer.Typer(
    name="esboot",
    help="Elasticsearch container startup wrapper",
    add_completion=False,
)

console = Console(stderr=True)
logger = logging.getLogger("esboot")


def setup_logging(debug: bool) -> None:
    """Install the console handler once. DEBUG also traces httpx requests."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=debug, show_path=debug)],
        force=True,
    )
    if not debug:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)


# =============================================================================
# Commands
# =============================================================================


@app.command()
def start() -> None:
    """Prepare the node and replace this process with Elasticsearch."""
    settings = get_settings()
    try:
        Launcher(settings).run()
    except ConfigError as e:
        logger.error(str(e))
        raise typer.Exit(code=1)


@app.command()
def heap() -> None:
    """Print the heap flags computed from INSTANCE_RAM and the cgroup limit."""
    settings = get_settings()
    cgroup_limit = read_cgroup_limit()
    try:
        flags = compute_heap_flags(settings.instance_ram, cgroup_limit, java_opts=settings.es_java_opts)
    except ConfigError as e:
        logger.error(str(e))
        raise typer.Exit(code=1)

    table = Table(title="Heap Sizing")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_row("INSTANCE_RAM", settings.instance_ram)
    table.add_row("cgroup limit", f"{cgroup_limit} bytes")
    table.add_row("Heap", f"{flags.min_flag} {flags.max_flag}")
    table.add_row("ES_JAVA_OPTS", flags.java_opts)
    console.print(table)


@app.command()
def templates() -> None:
    """Wait for Elasticsearch to be ready, then push the index templates."""
    settings = get_settings()
    code = asyncio.run(poll_then_publish(settings))
    if code:
        raise typer.Exit(code=code)
    logger.info("Index templates published")


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(False, "--version", "-v", help="Show version"),
) -> None:
    """Elasticsearch container startup wrapper."""
    if version:
        console.print(f"esboot version {__version__}")
        raise typer.Exit()

    try:
        settings = get_settings()
    except ValidationError as e:
        setup_logging(False)
        logger.error(f"Invalid configuration: {e}")
        raise typer.Exit(code=1)
    setup_logging(settings.debug)

    if ctx.invoked_subcommand is None:
        start()


def run() -> None:
    """Console script entry point."""
    app()


if __name__ == "__main__":
    run()
