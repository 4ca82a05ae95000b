"""Album API endpoints."""

from typing import Any

from fastapi import APIRouter

from ytmproxy.api.deps import SessionConfigDep, YouTubeMusicDep

router = APIRouter(prefix="/album", tags=["albums"])


@router.get("/{browse_id}")
async def get_album(
    browse_id: str, ytmusic: YouTubeMusicDep, session: SessionConfigDep
) -> dict[str, Any]:
    """Get album details and tracks by browse ID."""
    return await ytmusic.get_album_info(browse_id, session)
