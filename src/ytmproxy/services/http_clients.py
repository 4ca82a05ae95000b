"""Cache of configured outbound HTTP sessions.

Sessions are keyed by the full SessionConfig fingerprint so that requests
sharing cookies, location and tokens reuse one connection pool.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ytmproxy.models.session import SessionConfig
from ytmproxy.services.cache import Clock, TTLCache, utc_now
from ytmproxy.services.configuration import ConfigurationService

logger = logging.getLogger(__name__)

CLIENT_TTL = timedelta(minutes=30)

DEFAULT_HEADERS = {
    "Accept": "*/*",
    "Accept-Language": "en-US,en;q=0.9",
    "Accept-Encoding": "gzip, deflate",
    "Connection": "keep-alive",
    "Sec-Fetch-Dest": "empty",
    "Sec-Fetch-Mode": "cors",
    "Sec-Fetch-Site": "same-origin",
}


class TimeoutHTTPAdapter(HTTPAdapter):
    """HTTPAdapter applying a default timeout to requests that set none."""

    def __init__(self, *args: Any, timeout: float, **kwargs: Any) -> None:
        self.timeout = timeout
        super().__init__(*args, **kwargs)

    def send(  # type: ignore[override]
        self, request: requests.PreparedRequest, **kwargs: Any
    ) -> requests.Response:
        if kwargs.get("timeout") is None:
            kwargs["timeout"] = self.timeout
        return super().send(request, **kwargs)


def _close_session(session: requests.Session) -> None:
    session.close()


class HttpClientService:
    """Hands out cached requests.Session objects per session configuration."""

    def __init__(
        self,
        config: ConfigurationService,
        clock: Clock = utc_now,
    ) -> None:
        self._config = config
        self._cache: TTLCache[requests.Session] = TTLCache(
            "http client", clock=clock, on_evict=_close_session
        )

    def get_client(self, session_config: SessionConfig) -> requests.Session:
        """Return the cached session for session_config, building it on a miss."""
        key = session_config.create_cache_key()
        if (session := self._cache.get(key)) is not None:
            return session

        self._cache.sweep_expired()
        session = self._build_session(session_config)
        self._cache.put(key, session, CLIENT_TTL)
        logger.debug("Created HTTP session (%d cached)", len(self._cache))
        return session

    def get_youtube_music_client(
        self, session_config: SessionConfig
    ) -> requests.Session:
        return self.get_client(session_config)

    def get_auth_client(self, session_config: SessionConfig) -> requests.Session:
        return self.get_client(session_config)

    def clear_cache(self) -> int:
        """Close and drop every cached session."""
        return self._cache.clear()

    def close(self) -> None:
        self.clear_cache()

    def _build_session(self, session_config: SessionConfig) -> requests.Session:
        session = requests.Session()
        session.headers.update(DEFAULT_HEADERS)
        session.headers["User-Agent"] = self._config.get_user_agent()

        if session_config.cookies:
            session.headers["Cookie"] = session_config.cookies
        if session_config.visitor_data:
            session.headers["X-Goog-Visitor-Id"] = session_config.visitor_data
        if session_config.po_token:
            session.headers["X-Goog-PoToken"] = session_config.po_token
        if session_config.geographical_location:
            session.headers["X-Geo-Location"] = session_config.geographical_location

        retry = Retry(
            total=self._config.get_max_retries(),
            backoff_factor=0.5,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["GET", "POST"],
            raise_on_status=False,
        )
        adapter = TimeoutHTTPAdapter(
            max_retries=retry, timeout=self._config.get_timeout_seconds()
        )
        session.mount("https://", adapter)
        session.mount("http://", adapter)
        return session
