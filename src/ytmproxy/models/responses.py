"""API response models."""

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import Field

from ytmproxy.models.auth import AuthStatus
from ytmproxy.models.base import CamelModel
from ytmproxy.models.lyrics import LyricsApiResponse

__all__ = [
    "EnvironmentInfo",
    "HealthResponse",
    "LibraryCategory",
    "LibraryCategoryResponse",
    "LibraryResponse",
    "PlaylistResponse",
    "RuntimeInfo",
    "SearchResponse",
    "SessionCacheStatsResponse",
    "SongVideoInfoResponse",
]


class LibraryCategory(StrEnum):
    """Sections of a user's YouTube Music library."""

    SONGS = "songs"
    ALBUMS = "albums"
    ARTISTS = "artists"
    SUBSCRIPTIONS = "subscriptions"
    PODCASTS = "podcasts"
    PLAYLISTS = "playlists"


class SongVideoInfoResponse(CamelModel):
    """Song or video metadata with optional streaming data and lyrics."""

    id: str
    name: str = ""
    description: str | None = None
    author: str | None = None
    channel_id: str | None = None
    duration_seconds: int = 0
    view_count: int = 0
    is_private: bool = False
    is_unlisted: bool = False
    is_live_content: bool = False
    is_family_friendly: bool = True
    is_ratings_allowed: bool = False
    music_video_type: str | None = None
    published_at: str | None = None
    uploaded_at: str | None = None
    playability_status: str | None = None
    thumbnails: list[dict[str, Any]] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    streaming_data: dict[str, Any] | None = None
    lyrics: LyricsApiResponse | None = None

    @classmethod
    def from_song(cls, song: dict[str, Any]) -> "SongVideoInfoResponse":
        """Build from a ytmusicapi get_song() payload."""
        details = song.get("videoDetails") or {}
        microformat = (song.get("microformat") or {}).get(
            "microformatDataRenderer"
        ) or {}
        playability = song.get("playabilityStatus") or {}
        return cls(
            id=details.get("videoId", ""),
            name=details.get("title", ""),
            description=microformat.get("description"),
            author=details.get("author"),
            channel_id=details.get("channelId"),
            duration_seconds=_to_int(details.get("lengthSeconds")),
            view_count=_to_int(details.get("viewCount")),
            is_private=bool(details.get("isPrivate", False)),
            is_unlisted=bool(microformat.get("unlisted", False)),
            is_live_content=bool(details.get("isLiveContent", False)),
            is_family_friendly=bool(microformat.get("familySafe", True)),
            is_ratings_allowed=bool(details.get("allowRatings", False)),
            music_video_type=details.get("musicVideoType"),
            published_at=microformat.get("publishDate"),
            uploaded_at=microformat.get("uploadDate"),
            playability_status=playability.get("status"),
            thumbnails=(details.get("thumbnail") or {}).get("thumbnails") or [],
            tags=microformat.get("tags") or [],
        )


def _to_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


class SearchResponse(CamelModel):
    """Search results for a query."""

    results: list[dict[str, Any]] = Field(default_factory=list)
    total_count: int = 0
    query: str = ""
    category: str | None = None


class PlaylistResponse(CamelModel):
    """Playlist metadata with every track drained from pagination."""

    id: str
    browse_id: str
    playlist: dict[str, Any] | None = None
    songs: list[dict[str, Any]] = Field(default_factory=list)
    total_songs: int = 0


class LibraryCategoryResponse(CamelModel):
    """Items of a single library section."""

    category: LibraryCategory
    items: list[dict[str, Any]] = Field(default_factory=list)
    total_count: int = 0


class LibraryResponse(CamelModel):
    """The whole library, fetched concurrently."""

    songs: list[dict[str, Any]] = Field(default_factory=list)
    albums: list[dict[str, Any]] = Field(default_factory=list)
    artists: list[dict[str, Any]] = Field(default_factory=list)
    subscriptions: list[dict[str, Any]] = Field(default_factory=list)
    podcasts: list[dict[str, Any]] = Field(default_factory=list)
    playlists: list[dict[str, Any]] = Field(default_factory=list)


class RuntimeInfo(CamelModel):
    """Process runtime details."""

    python: str = ""
    os: str = ""
    uptime_seconds: float = 0.0


class EnvironmentInfo(CamelModel):
    """Deployment details and an authentication snapshot."""

    environment: str = "production"
    cookies_configured: bool = False
    auth_status: AuthStatus | None = None


class HealthResponse(CamelModel):
    """Health and version information."""

    status: str = "healthy"
    version: str = ""
    name: str = "YouTube Music API Proxy"
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    runtime: RuntimeInfo = Field(default_factory=RuntimeInfo)
    environment: EnvironmentInfo = Field(default_factory=EnvironmentInfo)


class SessionCacheStatsResponse(CamelModel):
    """Session cache counters."""

    total_entries: int
    valid_entries: int
    expired_entries: int
