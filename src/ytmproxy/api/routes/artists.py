"""Artist API endpoints."""

from typing import Any

from fastapi import APIRouter

from ytmproxy.api.deps import SessionConfigDep, YouTubeMusicDep

router = APIRouter(prefix="/artist", tags=["artists"])


@router.get("/{browse_id}")
async def get_artist(
    browse_id: str, ytmusic: YouTubeMusicDep, session: SessionConfigDep
) -> dict[str, Any]:
    """Get artist details by channel browse ID."""
    return await ytmusic.get_artist_info(browse_id, session)
