"""Library API endpoints. All require authentication cookies."""

from fastapi import APIRouter

from ytmproxy.api.deps import SessionConfigDep, YouTubeMusicDep
from ytmproxy.api.exceptions import ErrorResponse
from ytmproxy.models.responses import (
    LibraryCategory,
    LibraryCategoryResponse,
    LibraryResponse,
)

router = APIRouter(
    prefix="/library",
    tags=["library"],
    responses={401: {"model": ErrorResponse, "description": "No cookies"}},
)


@router.get("")
async def get_library(
    ytmusic: YouTubeMusicDep, session: SessionConfigDep
) -> LibraryResponse:
    """Get every section of the user's library."""
    return await ytmusic.get_library(session)


@router.get("/{category}")
async def get_library_category(
    category: LibraryCategory, ytmusic: YouTubeMusicDep, session: SessionConfigDep
) -> LibraryCategoryResponse:
    """Get one section of the user's library."""
    return await ytmusic.get_library_category(category, session)
