"""FastAPI dependency injection factories.

Dependencies are defined as Annotated types for clean, reusable injection.

Usage in routes:
    from ytmproxy.api.deps import SessionConfigDep, YouTubeMusicDep

    @router.get("/song/{video_id}")
    async def get_song(video_id: str, ytmusic: YouTubeMusicDep,
                       session: SessionConfigDep) -> ...:
        ...
"""

from typing import Annotated

import httpx
from fastapi import Depends, Query

from ytmproxy.api.container import Services, get_services
from ytmproxy.models.session import SessionConfig
from ytmproxy.services.auth import AuthService
from ytmproxy.services.configuration import ConfigurationService
from ytmproxy.services.ytmusic import YouTubeMusicService
from ytmproxy.settings import Settings, get_settings

# -- Settings --

SettingsDep = Annotated[Settings, Depends(get_settings)]

# -- Service dependencies (request-scoped via app.state) --

ServicesDep = Annotated[Services, Depends(get_services)]


def _get_config(services: ServicesDep) -> ConfigurationService:
    """Get configuration service from services container."""
    return services.config


def _get_auth(services: ServicesDep) -> AuthService:
    """Get auth service from services container."""
    return services.auth


def _get_ytmusic(services: ServicesDep) -> YouTubeMusicService:
    """Get YouTube Music facade from services container."""
    return services.ytmusic


def _get_stream_client(services: ServicesDep) -> httpx.AsyncClient:
    return services.stream_client


ConfigDep = Annotated[ConfigurationService, Depends(_get_config)]
AuthServiceDep = Annotated[AuthService, Depends(_get_auth)]
YouTubeMusicDep = Annotated[YouTubeMusicService, Depends(_get_ytmusic)]
StreamClientDep = Annotated[httpx.AsyncClient, Depends(_get_stream_client)]

# -- Per-request session --


def _get_session_config(
    config: ConfigDep,
    cookies: Annotated[
        str | None,
        Query(include_in_schema=False, description="Raw or base64 Cookie header"),
    ] = None,
    location: Annotated[
        str | None, Query(description="Geographical location, e.g. US")
    ] = None,
) -> SessionConfig:
    """Resolve the session for this request. Query values beat configuration."""
    return SessionConfig.create(
        config.get_youtube_music_config(),
        cookies=config.get_cookies(cookies),
        geographical_location=config.get_geographical_location(location),
        visitor_data=config.get_visitor_data(),
        po_token=config.get_po_token(),
        po_token_server=config.get_po_token_server(),
    )


SessionConfigDep = Annotated[SessionConfig, Depends(_get_session_config)]
