"""Search API endpoints."""

from fastapi import APIRouter, Query

from ytmproxy.api.deps import SessionConfigDep, YouTubeMusicDep
from ytmproxy.api.exceptions import ErrorResponse
from ytmproxy.models.responses import SearchResponse

router = APIRouter(prefix="/search", tags=["search"])


@router.get(
    "",
    responses={400: {"model": ErrorResponse, "description": "Missing query"}},
)
async def search(
    ytmusic: YouTubeMusicDep,
    session: SessionConfigDep,
    query: str = Query("", description="Search query"),
    category: str | None = Query(
        None,
        description=(
            "Optional category: Songs, Videos, Albums, CommunityPlaylists, "
            "Artists, Podcasts, Episodes, Profiles"
        ),
    ),
) -> SearchResponse:
    """Search YouTube Music."""
    return await ytmusic.search(query, category, session)
