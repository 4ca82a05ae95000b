#!/usr/bin/env python3
"""Command-line interface for ytmproxy.

This CLI is primarily for debugging and development.
For production use, run the API server.
"""

import asyncio
import logging
import sys

import click
import uvicorn
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ytmproxy.config import load_static_config
from ytmproxy.exceptions import YTMProxyError
from ytmproxy.services.auth import AuthService
from ytmproxy.services.configuration import ConfigurationService
from ytmproxy.services.engine import YouTubeSessionEngine
from ytmproxy.settings import get_settings
from ytmproxy.utils.cookies import (
    parse_cookies,
    truncate_for_debug,
    validate_youtube_cookies,
)

logger = logging.getLogger("ytmproxy")


def setup_logging(verbose: bool = False, console: Console | None = None) -> None:
    """Configure logging with Rich handler.

    Args:
        verbose: If True, set log level to DEBUG. Otherwise WARNING.
        console: Optional Console instance to use for RichHandler.
    """
    level = logging.DEBUG if verbose else logging.WARNING

    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    handler = RichHandler(
        rich_tracebacks=True,
        show_path=False,
        console=console,
    )
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))

    root_logger.setLevel(level)
    root_logger.addHandler(handler)


def _configuration() -> ConfigurationService:
    return ConfigurationService(load_static_config(get_settings().config_file))


def _set_or_not(value: str | None) -> str:
    return "[green]Set[/green]" if value else "[dim]Not set[/dim]"


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """ytmproxy - YouTube Music API proxy."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    setup_logging(verbose)


@main.command(name="serve")
@click.option("--host", default=None, help="Bind address (overrides settings).")
@click.option("--port", type=int, default=None, help="Port (overrides settings).")
@click.option("--reload", is_flag=True, help="Enable auto-reload.")
def serve_cmd(host: str | None, port: int | None, reload: bool) -> None:
    """Run the API server."""
    settings = get_settings()
    uvicorn.run(
        "ytmproxy.api.app:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload or settings.reload,
    )


@main.command(name="cookies")
@click.argument("cookie_string", metavar="COOKIE_STRING")
def cookies_cmd(cookie_string: str) -> None:
    """Validate a raw Cookie header against the essential cookie set.

    \b
    Examples:
      ytmproxy cookies "SID=...; HSID=...; SAPISID=..."
    """
    console = Console()
    cookies = parse_cookies(cookie_string)
    result = validate_youtube_cookies(cookies)

    table = Table(title="Cookie validation", title_justify="left")
    table.add_column("Cookie", style="bold cyan")
    table.add_column("Status")
    for name in result.present_cookies:
        table.add_row(name, "[green]present[/green]")
    for name in result.missing_cookies:
        table.add_row(name, "[red]missing[/red]")

    console.print(table)
    console.print(f"\nParsed {len(cookies)} cookies. {result.summary}")
    if not result.is_valid:
        sys.exit(1)


@main.command(name="session")
@click.option("--cookies", default=None, help="Raw Cookie header.")
@click.option("--server", default=None, help="PoToken server URL.")
@click.pass_context
def session_cmd(ctx: click.Context, cookies: str | None, server: str | None) -> None:
    """Generate visitor data and a PoToken.

    Uses the configured cookies and token server unless overridden.
    """
    console = Console()
    config = _configuration()
    cookies = config.get_cookies(cookies)
    server = config.get_po_token_server(server)

    async def _generate() -> tuple[str, str]:
        engine = YouTubeSessionEngine(
            user_agent=config.get_user_agent(),
            po_token_command=get_settings().po_token_command,
            timeout=float(config.get_timeout_seconds()),
        )
        auth = AuthService(engine=engine)
        try:
            data = await auth.generate_session_data(cookies, server)
        finally:
            await auth.aclose()
            await engine.aclose()
        return data.visitor_data, data.po_token

    try:
        visitor_data, po_token = asyncio.run(_generate())
    except YTMProxyError as e:
        raise click.ClickException(e.message) from e

    show_full = ctx.obj.get("verbose", False)
    table = Table(show_header=False, padding=(0, 1))
    table.add_column("Field", style="bold cyan", width=14)
    table.add_column("Value", overflow="fold")
    table.add_row(
        "Visitor data", visitor_data if show_full else truncate_for_debug(visitor_data)
    )
    table.add_row("PoToken", po_token if show_full else truncate_for_debug(po_token))
    table.add_row("Server", server or "[dim]local[/dim]")
    console.print(table)


@main.command(name="config")
def config_cmd() -> None:
    """Show the resolved configuration. Secrets are shown as Set/Not set."""
    console = Console()
    try:
        config = _configuration()
    except ValueError as e:
        raise click.ClickException(str(e)) from e
    resolved = config.get_youtube_music_config()

    table = Table(show_header=False, padding=(0, 1), title="Configuration")
    table.add_column("Setting", style="bold cyan")
    table.add_column("Value")
    table.add_row("Cookies", _set_or_not(resolved.cookies))
    table.add_row("Visitor data", _set_or_not(resolved.visitor_data))
    table.add_row("PoToken", _set_or_not(resolved.po_token))
    table.add_row("PoToken server", resolved.po_token_server or "[dim]Not set[/dim]")
    table.add_row("Location", resolved.geographical_location or "")
    table.add_row("User agent", resolved.user_agent or "")
    table.add_row("Timeout", f"{resolved.timeout_seconds}s")
    table.add_row("Max retries", str(resolved.max_retries))
    table.add_row("Debug", str(resolved.debug))
    table.add_row("Lyrics in song", str(config.get_add_lyrics_to_song_response()))
    table.add_row("HTTPS redirect", str(config.get_enable_https_redirection()))
    console.print(table)


if __name__ == "__main__":
    main()
