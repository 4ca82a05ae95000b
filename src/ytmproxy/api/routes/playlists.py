"""Playlist API endpoints."""

from fastapi import APIRouter

from ytmproxy.api.deps import SessionConfigDep, YouTubeMusicDep
from ytmproxy.api.exceptions import ErrorResponse
from ytmproxy.models.responses import PlaylistResponse

router = APIRouter(prefix="/playlist", tags=["playlists"])


@router.get(
    "/{playlist_id}",
    responses={
        400: {"model": ErrorResponse, "description": "Not a PL playlist ID"},
        404: {"model": ErrorResponse, "description": "Missing or private"},
    },
)
async def get_playlist(
    playlist_id: str, ytmusic: YouTubeMusicDep, session: SessionConfigDep
) -> PlaylistResponse:
    """Get a playlist and all of its songs."""
    return await ytmusic.get_playlist(playlist_id, session)
