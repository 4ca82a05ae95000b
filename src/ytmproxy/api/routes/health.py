"""Health check endpoint."""

import logging
import os
import platform
import time

from fastapi import APIRouter, Request

from ytmproxy.api.deps import AuthServiceDep, ConfigDep, SettingsDep
from ytmproxy.models.responses import EnvironmentInfo, HealthResponse, RuntimeInfo
from ytmproxy.models.session import SessionConfig

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])

_STARTED_AT = time.monotonic()


@router.get("")
async def health(
    request: Request, config: ConfigDep, auth: AuthServiceDep, settings: SettingsDep
) -> HealthResponse:
    """Health, version and authentication status."""
    session = SessionConfig.from_main_config(config.get_youtube_music_config())
    auth_status = await auth.get_auth_status(session)

    return HealthResponse(
        version=request.app.version,
        runtime=RuntimeInfo(
            python=platform.python_version(),
            os=f"{platform.system()} {platform.release()} (pid {os.getpid()})",
            uptime_seconds=round(time.monotonic() - _STARTED_AT, 3),
        ),
        environment=EnvironmentInfo(
            environment=settings.environment,
            cookies_configured=bool(session.cookies),
            auth_status=auth_status,
        ),
    )
