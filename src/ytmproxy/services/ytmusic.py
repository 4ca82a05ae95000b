"""YouTube Music facade.

Builds a per-request upstream client from the resolved session, fills in
generated session artifacts when cookies are present, and shapes upstream
payloads into API responses.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import requests

from ytmproxy.client import YTMusicClient, YTMusicProtocol
from ytmproxy.exceptions import (
    AuthenticationRequiredError,
    GenerationError,
    InvalidArgumentError,
    NotFoundOrPrivateError,
    UpstreamError,
    UpstreamParseError,
)
from ytmproxy.models.auth import CacheStats, Cookie
from ytmproxy.models.lyrics import LyricsApiResponse, LyricsError
from ytmproxy.models.responses import (
    LibraryCategory,
    LibraryCategoryResponse,
    LibraryResponse,
    PlaylistResponse,
    SearchResponse,
    SongVideoInfoResponse,
)
from ytmproxy.models.session import SessionConfig
from ytmproxy.services.auth import AuthService
from ytmproxy.services.configuration import ConfigurationService
from ytmproxy.services.http_clients import HttpClientService
from ytmproxy.services.lyrics import LyricsService
from ytmproxy.utils.concurrency import with_fallback
from ytmproxy.utils.cookies import parse_cookies

logger = logging.getLogger(__name__)

T = TypeVar("T")

LYRICS_RACE_TIMEOUT = 2.0
PLAYLIST_PREFIX = "PL"
BROWSE_PREFIX = "VL"

ClientFactory = Callable[
    [SessionConfig, requests.Session, list[Cookie]], YTMusicProtocol
]


def default_client_factory(
    session_config: SessionConfig, session: requests.Session, cookies: list[Cookie]
) -> YTMusicProtocol:
    return YTMusicClient(
        cookies=cookies,
        location=session_config.geographical_location,
        visitor_data=session_config.visitor_data,
        session=session,
    )


def append_po_token(url: str, po_token: str) -> str:
    """Return url with its pot query parameter set to po_token."""
    parts = urlsplit(url)
    query = [
        (k, v)
        for k, v in parse_qsl(parts.query, keep_blank_values=True)
        if k != "pot"
    ]
    query.append(("pot", po_token))
    return urlunsplit(parts._replace(query=urlencode(query)))


def apply_po_token(
    streaming_data: dict[str, Any], po_token: str | None
) -> dict[str, Any]:
    """Attach the PoToken to every directly addressable format URL."""
    if not po_token:
        return streaming_data
    result = dict(streaming_data)
    for key in ("formats", "adaptiveFormats"):
        formats = streaming_data.get(key)
        if not formats:
            continue
        result[key] = [
            {**fmt, "url": append_po_token(fmt["url"], po_token)}
            if fmt.get("url")
            else fmt
            for fmt in formats
        ]
    return result


def select_audio_format(
    streaming_data: dict[str, Any], quality: str | None = None
) -> dict[str, Any] | None:
    """Pick an audio-only format: highest bitrate, or lowest for quality "low"."""
    candidates = [
        fmt
        for fmt in streaming_data.get("adaptiveFormats") or []
        if str(fmt.get("mimeType", "")).startswith("audio/")
    ]
    if not candidates:
        return None
    pick = min if (quality or "").lower() == "low" else max
    return pick(candidates, key=lambda fmt: fmt.get("bitrate") or 0)


def lyrics_error_response(
    video_id: str, reason: str, timeout: float | None = None
) -> LyricsApiResponse:
    """Synthesize the payload reported when lyrics could not be fetched."""
    return LyricsApiResponse(
        success=False,
        error=LyricsError(
            error=True,
            code=500,
            reason=reason,
            timeout=timeout,
            video_id=video_id,
            url=f"https://api-lyrics.simpmusic.org/v1/{video_id}",
        ),
    )


def _generation_hint(message: str) -> str:
    lowered = message.lower()
    if "bot" in lowered or "sign in" in lowered:
        return (
            "YouTube requested a bot check. Provide valid authentication "
            "cookies or configure a PoToken server."
        )
    if any(word in lowered for word in ("connect", "timeout", "timed out", "network")):
        return "Check network connectivity to YouTube and the PoToken server."
    return "Session data could not be generated."


class YouTubeMusicService:
    """Async facade over ytmusicapi and the lyrics API."""

    def __init__(
        self,
        config: ConfigurationService,
        auth: AuthService,
        http_clients: HttpClientService,
        lyrics: LyricsService,
        client_factory: ClientFactory = default_client_factory,
    ) -> None:
        self._config = config
        self._auth = auth
        self._http_clients = http_clients
        self._lyrics = lyrics
        self._client_factory = client_factory

    # -------------------------------------------------------------------------
    # Client construction
    # -------------------------------------------------------------------------

    def default_session(self) -> SessionConfig:
        return SessionConfig.from_main_config(self._config.get_youtube_music_config())

    async def create_client(
        self, session_config: SessionConfig | None = None
    ) -> tuple[YTMusicProtocol, SessionConfig]:
        """Build an upstream client for the given session.

        Cookies are parsed once here and handed to the client factory.
        Missing visitor data or PoToken are generated when cookies are
        present; explicitly supplied values always win.

        Returns:
            The client and the final session configuration it uses.

        Raises:
            GenerationError: If session data generation fails.
            AuthenticationRequiredError: If cookies cannot authenticate.
            UpstreamError: If building the upstream client fails.
        """
        config = session_config or self.default_session()

        cookies = parse_cookies(config.cookies)

        if config.needs_session_data_generation():
            try:
                data = await self._auth.generate_session_data(
                    config.cookies, config.po_token_server
                )
            except GenerationError as e:
                raise GenerationError(
                    f"Failed to generate session data: {e.message}. "
                    f"{_generation_hint(e.message)}"
                ) from e
            config = config.with_(
                visitor_data=None if config.visitor_data else data.visitor_data,
                po_token=None if config.po_token else data.po_token,
            )

        session = self._http_clients.get_youtube_music_client(config)
        client = await asyncio.to_thread(
            self._client_factory, config, session, cookies
        )
        return client, config

    async def _run(self, func: Callable[..., T], *args: Any) -> T:
        return await asyncio.to_thread(func, *args)

    # -------------------------------------------------------------------------
    # Catalog
    # -------------------------------------------------------------------------

    async def search(
        self,
        query: str,
        category: str | None = None,
        session_config: SessionConfig | None = None,
    ) -> SearchResponse:
        if not query or not query.strip():
            raise InvalidArgumentError("Query parameter is required")
        client, _ = await self.create_client(session_config)
        results = await self._run(client.search, query, category)
        logger.debug("Search '%s' returned %d results", query, len(results))
        return SearchResponse(
            results=results,
            total_count=len(results),
            query=query,
            category=category,
        )

    async def get_song_video_info(
        self, video_id: str, session_config: SessionConfig | None = None
    ) -> SongVideoInfoResponse:
        """Song metadata, streaming data and (optionally) lyrics.

        Streaming data problems are logged and leave the field empty.
        Lyrics are raced against a short timer so they never hold up the
        response.
        """
        if not video_id or not video_id.strip():
            raise InvalidArgumentError("ID parameter is required")
        client, config = await self.create_client(session_config)
        song = await self._fetch_or_not_found(client.get_song, video_id, "Song")
        response = SongVideoInfoResponse.from_song(song)
        if not response.id:
            response.id = video_id

        try:
            response.streaming_data = self._streaming_data_from_song(
                video_id, song, config.po_token
            )
        except UpstreamError as e:
            logger.warning("Streaming data unavailable for %s: %s", video_id, e)

        if self._config.get_add_lyrics_to_song_response():
            response.lyrics = await self.get_lyrics_for_song(video_id)
        else:
            logger.debug("Lyrics disabled, skipping lyrics for %s", video_id)

        return response

    async def get_lyrics_for_song(self, video_id: str) -> LyricsApiResponse:
        """Lyrics payload, or a structured error when lookup fails or is slow."""

        async def _fetch() -> LyricsApiResponse:
            lyrics = await self._lyrics.get_lyrics(video_id, LYRICS_RACE_TIMEOUT)
            if lyrics is None:
                return lyrics_error_response(
                    video_id,
                    f"Lyrics request failed for videoId: {video_id} "
                    "- client-side error",
                )
            return lyrics

        async def _on_failure(error: Exception) -> LyricsApiResponse:
            if isinstance(error, TimeoutError):
                logger.debug("Lyrics request timed out for %s", video_id)
                return lyrics_error_response(
                    video_id,
                    f"Lyrics response took too long for videoId: {video_id}",
                    timeout=LYRICS_RACE_TIMEOUT,
                )
            logger.warning("Error during lyrics fetch for %s: %s", video_id, error)
            return lyrics_error_response(
                video_id, f"Lyrics request failed for videoId: {video_id} - {error}"
            )

        return await with_fallback(_fetch, _on_failure, timeout=LYRICS_RACE_TIMEOUT)

    async def get_streaming_data(
        self, video_id: str, session_config: SessionConfig | None = None
    ) -> dict[str, Any]:
        """Streaming formats for a video, with the PoToken applied.

        Raises:
            NotFoundOrPrivateError: If the video is missing or unplayable.
        """
        if not video_id or not video_id.strip():
            raise InvalidArgumentError("ID parameter is required")
        client, config = await self.create_client(session_config)
        song = await self._fetch_or_not_found(client.get_song, video_id, "Song")
        try:
            return self._streaming_data_from_song(video_id, song, config.po_token)
        except UpstreamError as e:
            raise NotFoundOrPrivateError(e.message, resource_id=video_id) from e

    def _streaming_data_from_song(
        self, video_id: str, song: dict[str, Any], po_token: str | None
    ) -> dict[str, Any]:
        status = (song.get("playabilityStatus") or {}).get("status")
        streaming_data = song.get("streamingData")
        if status not in (None, "OK") or not streaming_data:
            reason = (song.get("playabilityStatus") or {}).get("reason") or status
            raise UpstreamError(
                f"No streaming data for {video_id}: {reason}", "get streaming data"
            )
        return apply_po_token(streaming_data, po_token)

    async def get_album_info(
        self, browse_id: str, session_config: SessionConfig | None = None
    ) -> dict[str, Any]:
        if not browse_id or not browse_id.strip():
            raise InvalidArgumentError("Browse ID parameter is required")
        client, _ = await self.create_client(session_config)
        return await self._fetch_or_not_found(client.get_album, browse_id, "Album")

    async def get_artist_info(
        self, browse_id: str, session_config: SessionConfig | None = None
    ) -> dict[str, Any]:
        if not browse_id or not browse_id.strip():
            raise InvalidArgumentError("Browse ID parameter is required")
        client, _ = await self.create_client(session_config)
        return await self._fetch_or_not_found(client.get_artist, browse_id, "Artist")

    async def get_playlist(
        self, playlist_id: str, session_config: SessionConfig | None = None
    ) -> PlaylistResponse:
        """Playlist metadata and every track.

        Raises:
            InvalidArgumentError: If the ID is empty or not a PL playlist.
                Checked before any network call.
            NotFoundOrPrivateError: If YouTube answers with HTML.
            UpstreamError: For other upstream failures.
        """
        if not playlist_id or not playlist_id.strip():
            raise InvalidArgumentError("Playlist ID parameter is required")
        if not playlist_id.upper().startswith(PLAYLIST_PREFIX):
            raise InvalidArgumentError(
                f"Invalid playlist ID '{playlist_id}'. "
                f"Playlist IDs must start with '{PLAYLIST_PREFIX}'."
            )

        browse_id = f"{BROWSE_PREFIX}{playlist_id}"
        client, _ = await self.create_client(session_config)
        try:
            playlist = await self._run(client.get_playlist, browse_id)
        except UpstreamParseError as e:
            raise NotFoundOrPrivateError(
                f"Playlist '{playlist_id}' was not found or is private",
                resource_id=playlist_id,
            ) from e
        except UpstreamError as e:
            raise UpstreamError(
                f"Failed to fetch playlist {playlist_id}: {e.message}", "get playlist"
            ) from e

        songs = list(playlist.get("tracks") or [])
        metadata = {k: v for k, v in playlist.items() if k != "tracks"}
        logger.debug("Fetched playlist %s with %d songs", playlist_id, len(songs))
        return PlaylistResponse(
            id=playlist_id,
            browse_id=browse_id,
            playlist=metadata,
            songs=songs,
            total_songs=len(songs),
        )

    async def _fetch_or_not_found(
        self, func: Callable[[str], T], resource_id: str, kind: str
    ) -> T:
        try:
            return await self._run(func, resource_id)
        except UpstreamParseError as e:
            raise NotFoundOrPrivateError(
                f"{kind} '{resource_id}' was not found or is private",
                resource_id=resource_id,
            ) from e

    # -------------------------------------------------------------------------
    # Library
    # -------------------------------------------------------------------------

    async def _library_client(
        self, session_config: SessionConfig | None
    ) -> YTMusicProtocol:
        config = session_config or self.default_session()
        if not config.cookies:
            raise AuthenticationRequiredError(
                "Authentication required. Please provide cookies parameter, "
                "set 'YTM_COOKIES' environment variable, or configure in "
                "the configuration file."
            )
        client, _ = await self.create_client(config)
        return client

    async def get_library_category(
        self, category: LibraryCategory, session_config: SessionConfig | None = None
    ) -> LibraryCategoryResponse:
        client = await self._library_client(session_config)
        items = await self._run(client.get_library, category.value)
        return LibraryCategoryResponse(
            category=category, items=items, total_count=len(items)
        )

    async def get_library_songs(
        self, session_config: SessionConfig | None = None
    ) -> LibraryCategoryResponse:
        return await self.get_library_category(LibraryCategory.SONGS, session_config)

    async def get_library_albums(
        self, session_config: SessionConfig | None = None
    ) -> LibraryCategoryResponse:
        return await self.get_library_category(LibraryCategory.ALBUMS, session_config)

    async def get_library_artists(
        self, session_config: SessionConfig | None = None
    ) -> LibraryCategoryResponse:
        return await self.get_library_category(LibraryCategory.ARTISTS, session_config)

    async def get_library_subscriptions(
        self, session_config: SessionConfig | None = None
    ) -> LibraryCategoryResponse:
        return await self.get_library_category(
            LibraryCategory.SUBSCRIPTIONS, session_config
        )

    async def get_library_podcasts(
        self, session_config: SessionConfig | None = None
    ) -> LibraryCategoryResponse:
        return await self.get_library_category(
            LibraryCategory.PODCASTS, session_config
        )

    async def get_library_playlists(
        self, session_config: SessionConfig | None = None
    ) -> LibraryCategoryResponse:
        return await self.get_library_category(
            LibraryCategory.PLAYLISTS, session_config
        )

    async def get_library(
        self, session_config: SessionConfig | None = None
    ) -> LibraryResponse:
        """Every library section, fetched concurrently. Fails as a whole."""
        client = await self._library_client(session_config)
        fetches: list[Awaitable[list[dict[str, Any]]]] = [
            self._run(client.get_library, category.value)
            for category in LibraryCategory
        ]
        results = await asyncio.gather(*fetches)
        sections = dict(zip((c.value for c in LibraryCategory), results, strict=True))
        return LibraryResponse(**sections)

    # -------------------------------------------------------------------------
    # Session cache
    # -------------------------------------------------------------------------

    def clear_session_cache(self) -> int:
        return self._auth.clear_session_cache()

    def get_session_cache_stats(self) -> CacheStats:
        return self._auth.get_session_cache_stats()
