"""Services container for dependency injection.

This module provides the Services container and dependency injection
utilities for accessing services from FastAPI routes via app.state.
"""

import logging
from dataclasses import dataclass

import httpx
from fastapi import Request

from ytmproxy.services.auth import AuthService
from ytmproxy.services.configuration import ConfigurationService
from ytmproxy.services.engine import YouTubeSessionEngine
from ytmproxy.services.http_clients import HttpClientService
from ytmproxy.services.lyrics import LyricsService
from ytmproxy.services.ytmusic import YouTubeMusicService

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Container for application services with proper lifecycle management.

    All services are created at startup and cleaned up at shutdown.
    Stored in FastAPI's app.state for proper request scoping.
    """

    config: ConfigurationService
    auth: AuthService
    http_clients: HttpClientService
    lyrics: LyricsService
    ytmusic: YouTubeMusicService
    engine: YouTubeSessionEngine
    stream_client: httpx.AsyncClient

    async def close(self) -> None:
        """Clean up resources. Called at application shutdown."""
        self.http_clients.close()
        await self.lyrics.aclose()
        await self.auth.aclose()
        await self.engine.aclose()
        await self.stream_client.aclose()
        logger.info("Services cleaned up")


def get_services(request: Request) -> Services:
    """Get services from request's app state (dependency injection).

    Raises:
        RuntimeError: If services not initialized (app not running).
    """
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise RuntimeError("Services not initialized. Is the app running?")
    return services
