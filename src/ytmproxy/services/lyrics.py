"""Lyrics lookup against the SimpMusic lyrics API.

Lookups never raise: every failure is logged and reported as None so
callers can treat lyrics as optional.
"""

import logging

import httpx
from pydantic import ValidationError

from ytmproxy.models.lyrics import LyricsApiResponse

logger = logging.getLogger(__name__)

LYRICS_BASE_URL = "https://api-lyrics.simpmusic.org/v1"
DEFAULT_TIMEOUT = 1.0


class LyricsService:
    """Fetch lyrics for a video ID."""

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        base_url: str = LYRICS_BASE_URL,
    ) -> None:
        self._client = client or httpx.AsyncClient()
        self._owns_client = client is None
        self._base_url = base_url.rstrip("/")

    def lyrics_url(self, video_id: str) -> str:
        return f"{self._base_url}/{video_id}"

    async def get_lyrics(
        self, video_id: str, timeout: float = DEFAULT_TIMEOUT
    ) -> LyricsApiResponse | None:
        """Fetch lyrics with the shared async client.

        Args:
            video_id: YouTube video ID.
            timeout: Seconds before the request is abandoned.

        Returns:
            Parsed lyrics payload, or None on any failure.
        """
        url = self.lyrics_url(video_id)
        logger.debug("Fetching lyrics for %s (timeout %.1fs)", video_id, timeout)
        try:
            response = await self._client.get(url, timeout=timeout)
        except httpx.TimeoutException:
            logger.warning(
                "Lyrics request timed out for %s after %ss", video_id, timeout
            )
            return None
        except httpx.HTTPError as e:
            logger.warning("HTTP error fetching lyrics for %s: %s", video_id, e)
            return None

        if not response.is_success:
            logger.warning(
                "Lyrics API returned status %d for %s", response.status_code, video_id
            )
            return None
        return self._parse(video_id, response.text)

    def _parse(self, video_id: str, body: str) -> LyricsApiResponse | None:
        try:
            result = LyricsApiResponse.model_validate_json(body)
        except ValidationError as e:
            logger.warning("Invalid lyrics response for %s: %s", video_id, e)
            return None
        logger.debug("Retrieved lyrics response for %s", video_id)
        return result

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
