"""YouTube Music API client wrapper."""

import json
import logging
from collections.abc import Callable
from typing import Any, Protocol, TypeVar

import requests
from ytmusicapi import YTMusic
from ytmusicapi.exceptions import YTMusicError, YTMusicServerError, YTMusicUserError

from ytmproxy.exceptions import (
    AuthenticationRequiredError,
    InvalidArgumentError,
    UpstreamError,
    UpstreamParseError,
    YTMProxyError,
)
from ytmproxy.models.auth import Cookie
from ytmproxy.utils.cookies import cookies_to_ytmusic_auth

logger = logging.getLogger(__name__)

T = TypeVar("T")

# ytmusicapi rejects unknown location codes with this message
_UNSUPPORTED_LOCATION = "location not supported"

# Search categories accepted by the API, mapped to ytmusicapi filters
SEARCH_FILTERS = {
    "songs": "songs",
    "videos": "videos",
    "albums": "albums",
    "artists": "artists",
    "playlists": "playlists",
    "communityplaylists": "community_playlists",
    "featuredplaylists": "featured_playlists",
    "podcasts": "podcasts",
    "episodes": "episodes",
    "profiles": "profiles",
}


def search_filter_for(category: str | None) -> str | None:
    """Map a category name (any casing, with or without underscores).

    Raises:
        InvalidArgumentError: If the category is unknown.
    """
    if category is None or not category.strip():
        return None
    normalized = category.strip().lower().replace("_", "")
    if normalized not in SEARCH_FILTERS:
        allowed = ", ".join(sorted(SEARCH_FILTERS))
        raise InvalidArgumentError(
            f"Unknown search category '{category}'. Allowed: {allowed}"
        )
    return SEARCH_FILTERS[normalized]


class YTMusicProtocol(Protocol):
    """Protocol for YouTube Music API clients.

    This protocol enables dependency injection and testing.
    Implement this protocol to create mock clients for testing.
    """

    def search(self, query: str, category: str | None = None) -> list[dict[str, Any]]:
        """Search YouTube Music."""
        ...

    def get_song(self, video_id: str) -> dict[str, Any]:
        """Fetch song metadata and streaming data."""
        ...

    def get_album(self, browse_id: str) -> dict[str, Any]:
        """Fetch an album by browse ID."""
        ...

    def get_artist(self, browse_id: str) -> dict[str, Any]:
        """Fetch an artist by channel ID."""
        ...

    def get_playlist(self, browse_id: str) -> dict[str, Any]:
        """Fetch a playlist with all its tracks."""
        ...

    def get_library(self, category: str) -> list[dict[str, Any]]:
        """Fetch every item of a library section."""
        ...


class YTMusicClient:
    """Production YouTube Music API client.

    Wraps ytmusicapi with consistent error handling. Calls are blocking;
    async callers should run them in a worker thread.
    """

    def __init__(
        self,
        ytmusic: YTMusic | None = None,
        cookies: list[Cookie] | None = None,
        location: str | None = None,
        visitor_data: str | None = None,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            ytmusic: Optional YTMusic instance. Creates one if not provided.
            cookies: Parsed cookies enabling authenticated calls.
            location: Geographical location code for results.
            visitor_data: Visitor ID sent with authenticated requests.
            session: Optional requests session to send calls through.
        """
        if ytmusic:
            self._ytm = ytmusic
        else:
            self._ytm = self._create_ytmusic(cookies, location, visitor_data, session)

    def _create_ytmusic(
        self,
        cookies: list[Cookie] | None,
        location: str | None,
        visitor_data: str | None,
        session: requests.Session | None,
    ) -> YTMusic:
        """Build the ytmusicapi client.

        Construction may hit the network (ytmusicapi fetches a visitor ID
        when none is sent), so it is classified like any other call. Only an
        unsupported location is retried, without the location.

        Raises:
            AuthenticationRequiredError: If cookies lack __Secure-3PAPISID.
            InvalidArgumentError: If ytmusicapi rejects the arguments.
            UpstreamError: On network or server failures.
        """
        auth = cookies_to_ytmusic_auth(cookies or [])
        if auth is not None and visitor_data:
            auth["X-Goog-Visitor-Id"] = visitor_data

        try:
            return self._call(
                "create client",
                YTMusic,
                auth=auth,
                requests_session=session,
                location=location or "",
            )
        except InvalidArgumentError as e:
            if not location or _UNSUPPORTED_LOCATION not in e.message.lower():
                raise
            logger.warning("Location %r rejected (%s), using default", location, e)
        return self._call(
            "create client", YTMusic, auth=auth, requests_session=session
        )

    def _call(
        self, operation: str, func: Callable[..., T], *args: Any, **kwargs: Any
    ) -> T:
        """Invoke a ytmusicapi function and classify its failures."""
        logger.debug("YTMusic %s %s", operation, args)
        try:
            return func(*args, **kwargs)
        except YTMProxyError:
            raise
        except (json.JSONDecodeError, requests.JSONDecodeError) as e:
            logger.warning("Non-JSON response for %s: %s", operation, e)
            raise UpstreamParseError(
                f"YouTube Music returned a non-JSON response for {operation}",
                operation=operation,
            ) from e
        except YTMusicUserError as e:
            raise InvalidArgumentError(str(e)) from e
        except YTMusicServerError as e:
            logger.warning("YTMusic API error for %s: %s", operation, e)
            raise UpstreamError(f"Failed to {operation}: {e}", operation) from e
        except YTMusicError as e:
            logger.warning("YTMusic error for %s: %s", operation, e)
            raise UpstreamError(f"Failed to {operation}: {e}", operation) from e
        except KeyError as e:
            if self._is_sign_in_response(str(e)):
                raise AuthenticationRequiredError(
                    "Authentication failed. YouTube returned a 'Sign in' page. "
                    "Your cookies may be invalid or expired."
                ) from e
            raise UpstreamError(
                f"Unexpected response shape for {operation}: {e}", operation
            ) from e
        except requests.RequestException as e:
            logger.warning("Network error for %s: %s", operation, e)
            raise UpstreamError(f"Failed to {operation}: {e}", operation) from e

    def _is_sign_in_response(self, error_msg: str) -> bool:
        """Check if a KeyError shows YouTube served a 'Sign in' page."""
        sign_in_indicators = [
            "'Sign in'",
            "Sign in to listen",
            "signInEndpoint",
        ]
        return any(indicator in error_msg for indicator in sign_in_indicators)

    def search(self, query: str, category: str | None = None) -> list[dict[str, Any]]:
        """Search YouTube Music.

        Raises:
            InvalidArgumentError: If query is empty or category unknown.
            UpstreamError: If the API request fails.
        """
        if not query or not query.strip():
            raise InvalidArgumentError("Query cannot be empty")
        search_filter = search_filter_for(category)
        return self._call("search", self._ytm.search, query, filter=search_filter)

    def get_song(self, video_id: str) -> dict[str, Any]:
        if not video_id or not video_id.strip():
            raise InvalidArgumentError("Video ID cannot be empty")
        return self._call("get song", self._ytm.get_song, video_id)

    def get_album(self, browse_id: str) -> dict[str, Any]:
        if not browse_id or not browse_id.strip():
            raise InvalidArgumentError("Browse ID cannot be empty")
        return self._call("get album", self._ytm.get_album, browse_id)

    def get_artist(self, browse_id: str) -> dict[str, Any]:
        if not browse_id or not browse_id.strip():
            raise InvalidArgumentError("Browse ID cannot be empty")
        return self._call("get artist", self._ytm.get_artist, browse_id)

    def get_playlist(self, browse_id: str) -> dict[str, Any]:
        """Fetch a playlist, following continuations until every track is read."""
        return self._call(
            "get playlist", self._ytm.get_playlist, browse_id, limit=None
        )

    def get_library(self, category: str) -> list[dict[str, Any]]:
        """Fetch every item of a library section.

        Args:
            category: One of songs, albums, artists, subscriptions,
                podcasts, playlists.
        """
        func = getattr(self._ytm, f"get_library_{category}", None)
        if func is None:
            raise InvalidArgumentError(f"Unknown library category '{category}'")
        return self._call(f"get library {category}", func, limit=None)
