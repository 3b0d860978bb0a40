"""Main CLI application entry point."""

import asyncio
import json
import logging

import typer
import uvicorn
from rich.console import Console
from rich.logging import RichHandler

from courtbook import __version__
from courtbook.core.tools import ToolFacade, build_facade
from courtbook.server.http_app import create_app
from courtbook.server.mcp_app import build_tool_server
from courtbook.utils.config import AppConfig, ConfigLoader
from courtbook.utils.exceptions import ConfigurationError, CourtbookError

console = Console()

app = typer.Typer(
    name="courtbook",
    help="Tennis court availability and booking over browser automation.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"courtbook v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """courtbook - check and book tennis courts from a tool-calling client."""
    pass


def configure_logging(level: str) -> None:
    """Route log records through Rich on stderr."""
    logging.basicConfig(
        level=level,
        format="%(name)s: %(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _load() -> tuple[AppConfig, ToolFacade]:
    try:
        config = ConfigLoader.load()
    except ConfigurationError as e:
        console.print(f"[red]Configuration error: {e}[/red]")
        raise typer.Exit(code=4)
    configure_logging(config.log_level)
    return config, build_facade(config)


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind"),
    port: int = typer.Option(8787, "--port", "-p", help="Port to listen on"),
) -> None:
    """Run the HTTP server with the MCP tools mounted under /mcp."""
    config, facade = _load()
    if not config.redis_url:
        console.print(
            "[dim]No COURTBOOK_REDIS_URL set - authorizations are kept in memory[/dim]"
        )
    uvicorn.run(
        create_app(facade),
        host=host,
        port=port,
        log_level=config.log_level.lower(),
    )


@app.command()
def mcp() -> None:
    """Run the MCP tool server over stdio."""
    _, facade = _load()
    server = build_tool_server(facade)
    try:
        server.run(transport="stdio")
    finally:
        asyncio.run(facade.shutdown())


@app.command()
def check(
    date: str | None = typer.Option(
        None, "--date", "-d", help="YYYY-MM-DD, 'today' or 'tomorrow'"
    ),
    court: str | None = typer.Option(None, "--court", "-c", help="Court name"),
    time: str | None = typer.Option(
        None, "--time", "-t", help="Time to look for, e.g. 2pm"
    ),
) -> None:
    """Check court availability once and print the summary."""
    _, facade = _load()

    async def run():
        try:
            return await facade.availability.check(date=date, court=court, time=time)
        finally:
            await facade.shutdown()

    try:
        result = asyncio.run(run())
    except ConfigurationError as e:
        console.print(f"[red]Configuration error: {e}[/red]")
        raise typer.Exit(code=4)
    except CourtbookError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=3)

    console.print(result.summary)
    if result.error:
        raise typer.Exit(code=1)


@app.command()
def diagnostic() -> None:
    """Smoke-test the automation browser."""
    _, facade = _load()

    async def run():
        try:
            return await facade.diagnostic()
        finally:
            await facade.shutdown()

    report = asyncio.run(run())
    console.print_json(report)
    if not json.loads(report)["success"]:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
