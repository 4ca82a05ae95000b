"""Authentication diagnostics endpoints."""

from fastapi import APIRouter
from pydantic import BaseModel

from ytmproxy.api.deps import AuthServiceDep, SessionConfigDep
from ytmproxy.models.auth import AuthStatus
from ytmproxy.models.responses import SessionCacheStatsResponse

router = APIRouter(prefix="/auth", tags=["auth"])


class ClearCacheResponse(BaseModel):
    """Response for clearing the session cache."""

    cleared: int
    message: str


@router.get("/status")
async def get_auth_status(
    auth: AuthServiceDep, session: SessionConfigDep
) -> AuthStatus:
    """Validate cookies, probe the token server and generate a fresh session."""
    return await auth.get_auth_status(session)


@router.post("/session-cache/clear")
async def clear_session_cache(auth: AuthServiceDep) -> ClearCacheResponse:
    """Drop every cached visitor data / PoToken pair."""
    cleared = auth.clear_session_cache()
    return ClearCacheResponse(
        cleared=cleared, message=f"Cleared {cleared} cached sessions"
    )


@router.get("/session-cache")
async def get_session_cache_stats(auth: AuthServiceDep) -> SessionCacheStatsResponse:
    """Session cache counters."""
    stats = auth.get_session_cache_stats()
    return SessionCacheStatsResponse(
        total_entries=stats.total_entries,
        valid_entries=stats.valid_entries,
        expired_entries=stats.expired_entries,
    )
