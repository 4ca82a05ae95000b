"""FastAPI application factory and configuration."""

import logging
import mimetypes
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import PackageNotFoundError, version

import httpx
from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from rich.console import Console
from rich.logging import RichHandler
from starlette.middleware.httpsredirect import HTTPSRedirectMiddleware
from starlette.staticfiles import StaticFiles

from ytmproxy.api.container import Services
from ytmproxy.api.exceptions import register_exception_handlers
from ytmproxy.api.routes import (
    albums,
    artists,
    auth,
    health,
    library,
    playlists,
    search,
    songs,
)
from ytmproxy.config import load_static_config
from ytmproxy.services.auth import AuthService
from ytmproxy.services.configuration import ConfigurationService
from ytmproxy.services.engine import YouTubeSessionEngine
from ytmproxy.services.http_clients import HttpClientService
from ytmproxy.services.lyrics import LyricsService
from ytmproxy.services.ytmusic import YouTubeMusicService
from ytmproxy.settings import get_settings


def setup_logging() -> None:
    """Configure logging with Rich handler for all loggers including uvicorn."""
    settings = get_settings()
    console = Console(force_terminal=True)

    handler = RichHandler(
        console=console, rich_tracebacks=True, show_path=False, markup=True
    )
    handler.setFormatter(logging.Formatter("%(name)s - %(message)s", datefmt="[%X]"))

    # Configure root logger
    logging.root.handlers = [handler]
    logging.root.setLevel(settings.log_level)

    # Configure uvicorn loggers to use Rich
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers = [handler]
        uvicorn_logger.propagate = False


setup_logging()
logger = logging.getLogger(__name__)


def create_configuration() -> ConfigurationService:
    """Load the static configuration file and wrap it in the resolver."""
    settings = get_settings()
    return ConfigurationService(load_static_config(settings.config_file))


def create_services(config: ConfigurationService) -> Services:
    """Create all application services with proper dependency wiring.

    Args:
        config: Resolved configuration service.

    Returns:
        Services container with all application services.
    """
    settings = get_settings()
    timeout = float(config.get_timeout_seconds())

    engine = YouTubeSessionEngine(
        user_agent=config.get_user_agent(),
        po_token_command=settings.po_token_command,
        timeout=timeout,
    )
    auth_service = AuthService(engine=engine, timeout=timeout)
    http_clients = HttpClientService(config)
    lyrics = LyricsService(base_url=settings.lyrics_base_url)
    ytmusic = YouTubeMusicService(
        config=config,
        auth=auth_service,
        http_clients=http_clients,
        lyrics=lyrics,
    )
    stream_client = httpx.AsyncClient(
        timeout=httpx.Timeout(timeout, read=None), follow_redirects=True
    )

    return Services(
        config=config,
        auth=auth_service,
        http_clients=http_clients,
        lyrics=lyrics,
        ytmusic=ytmusic,
        engine=engine,
        stream_client=stream_client,
    )


def create_api_router() -> APIRouter:
    """Create the API router with all routes under /api prefix."""
    api_router = APIRouter()
    # Health lives at /api itself, so the prefix is applied per include
    for module in (health, search, songs, albums, artists, library, playlists, auth):
        api_router.include_router(module.router, prefix="/api")
    return api_router


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    logger.info("Starting application...")
    config: ConfigurationService = app.state.config

    if config.get_debug():
        logging.root.setLevel(logging.DEBUG)
    config.log_resolved_configuration()

    services = create_services(config)
    app.state.services = services
    logger.info("Services initialized")

    yield

    await services.close()


def _app_version() -> str:
    try:
        return version("ytmproxy")
    except PackageNotFoundError:
        return "0.0.0"


def create_app(config: ConfigurationService | None = None) -> FastAPI:
    """Create and configure the main FastAPI application."""
    settings = get_settings()
    config = config or create_configuration()

    app = FastAPI(
        title="ytmproxy",
        description="YouTube Music API Proxy",
        version=_app_version(),
        lifespan=lifespan,
    )
    app.state.config = config

    # Register exception handlers
    register_exception_handlers(app)

    # CORS middleware (type ignore needed due to Starlette typing limitations)
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if config.get_enable_https_redirection():
        logger.info("HTTPS redirection enabled")
        app.add_middleware(HTTPSRedirectMiddleware)  # type: ignore[arg-type]

    # API routes under /api prefix
    app.include_router(create_api_router())

    # Fix MIME types for Windows (registry defaults .js to text/plain)
    mimetypes.add_type("application/javascript", ".js")
    mimetypes.add_type("text/css", ".css")

    if settings.static_dir.exists():
        app.mount(
            "/", StaticFiles(directory=settings.static_dir, html=True), name="web"
        )

    return app


# Create app instance for uvicorn
app = create_app()
