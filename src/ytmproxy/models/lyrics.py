"""Models for the SimpMusic lyrics API.

Field aliases mirror the camelCase wire format so payloads can be validated
and re-emitted unchanged.
"""

from pydantic import BaseModel, ConfigDict, Field

__all__ = [
    "LyricsApiResponse",
    "LyricsData",
    "LyricsError",
    "LyricsProcessing",
]


class LyricsModel(BaseModel):
    """Base model for lyrics API payloads."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class LyricsData(LyricsModel):
    """A single lyrics record."""

    id: str = ""
    video_id: str = Field(default="", alias="videoId")
    song_title: str = Field(default="", alias="songTitle")
    artist_name: str = Field(default="", alias="artistName")
    album_name: str = Field(default="", alias="albumName")
    duration_seconds: int = Field(default=0, alias="durationSeconds")
    plain_lyric: str = Field(default="", alias="plainLyric")
    synced_lyrics: str | None = Field(default="", alias="syncedLyrics")
    rich_sync_lyrics: str | None = Field(default="", alias="richSyncLyrics")
    vote: int = 0
    contributor: str = ""
    contributor_email: str = Field(default="", alias="contributorEmail")


class LyricsError(LyricsModel):
    """Error payload, either from the API or synthesized on lookup failure."""

    error: bool = True
    code: int = 500
    reason: str = ""
    timeout: float | None = None
    video_id: str | None = Field(default=None, alias="videoId")
    url: str | None = None


class LyricsProcessing(LyricsModel):
    """Returned while the lyrics API is still preparing a result."""

    code: int = 0
    message: str = ""


class LyricsApiResponse(LyricsModel):
    """Wrapper for every shape the lyrics API can return."""

    data: list[LyricsData] | None = None
    error: LyricsError | None = None
    processing: LyricsProcessing | None = None
    success: bool = False
