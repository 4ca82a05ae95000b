"""Test fixtures and configuration for ytmproxy tests.

This module provides shared fixtures organized into:
- Fakes: In-memory session engine and YouTube Music client
- Service fixtures: Services wired with fakes and an isolated environment
- Time utilities: A controllable clock for TTL tests
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest
import requests

from ytmproxy.models.auth import Cookie
from ytmproxy.models.session import SessionConfig
from ytmproxy.services.auth import AuthService
from ytmproxy.services.configuration import ConfigurationService
from ytmproxy.services.http_clients import HttpClientService
from ytmproxy.services.lyrics import LyricsService
from ytmproxy.services.ytmusic import YouTubeMusicService

# A complete, well-formed set of essential cookies
VALID_COOKIES = (
    "SID=g.a000abcdefghijklmnop; HSID=AbCdEf; SSID=GhIjKl; APISID=mnop/qrst; "
    "SAPISID=uvwx/yz12; __Secure-1PSID=g.a000one; __Secure-3PSID=g.a000three; "
    "LOGIN_INFO=AFmmF2swRQIh:QUQ3MjNm; SIDCC=AKEyXzW; __Secure-1PSIDCC=AKEyXzX; "
    "__Secure-3PSIDCC=AKEyXzY; __Secure-3PAPISID=uvwx/yz12"
)


# =============================================================================
# Time Utilities
# =============================================================================


class MockClock:
    """Mock clock for deterministic time-based testing.

    Usage:
        clock = MockClock()
        clock.advance(60)  # Advance by 60 seconds
    """

    def __init__(self, initial: datetime | None = None) -> None:
        self._time = initial or datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self._time

    def advance(self, seconds: float) -> None:
        """Advance the clock by the specified seconds."""
        self._time += timedelta(seconds=seconds)


@pytest.fixture
def clock() -> MockClock:
    """Provide a mock clock."""
    return MockClock()


# =============================================================================
# Fakes
# =============================================================================


class FakeEngine:
    """SessionEngine returning fixed artifacts and counting calls."""

    def __init__(
        self,
        visitor_data: str = "CgtWaXNpdG9yRGF0YQ%3D%3D",
        po_token: str = "local-po-token",
    ) -> None:
        self.visitor_data_value = visitor_data
        self.po_token_value = po_token
        self.visitor_data_error: Exception | None = None
        self.po_token_error: Exception | None = None
        self.visitor_data_calls = 0
        self.po_token_calls = 0

    async def visitor_data(self, cookies: str | None = None) -> str:
        self.visitor_data_calls += 1
        if self.visitor_data_error is not None:
            raise self.visitor_data_error
        return self.visitor_data_value

    async def po_token(self, visitor_data: str, cookies: str | None = None) -> str:
        self.po_token_calls += 1
        if self.po_token_error is not None:
            raise self.po_token_error
        return self.po_token_value


class FakeYTMusic:
    """YTMusicProtocol implementation backed by canned responses.

    Set errors[method] to make a method raise.
    """

    def __init__(self) -> None:
        self.responses: dict[str, Any] = {}
        self.errors: dict[str, Exception] = {}
        self.calls: list[tuple[str, tuple[Any, ...]]] = []

    def _respond(self, method: str, *args: Any) -> Any:
        self.calls.append((method, args))
        if method in self.errors:
            raise self.errors[method]
        return self.responses.get(method)

    def search(self, query: str, category: str | None = None) -> list[dict[str, Any]]:
        return self._respond("search", query, category) or []

    def get_song(self, video_id: str) -> dict[str, Any]:
        return self._respond("get_song", video_id) or {}

    def get_album(self, browse_id: str) -> dict[str, Any]:
        return self._respond("get_album", browse_id) or {}

    def get_artist(self, browse_id: str) -> dict[str, Any]:
        return self._respond("get_artist", browse_id) or {}

    def get_playlist(self, browse_id: str) -> dict[str, Any]:
        return self._respond("get_playlist", browse_id) or {}

    def get_library(self, category: str) -> list[dict[str, Any]]:
        self.calls.append(("get_library", (category,)))
        if "get_library" in self.errors:
            raise self.errors["get_library"]
        return [{"title": f"{category} item"}]


class FakeLyrics:
    """LyricsService stand-in with a scripted result."""

    def __init__(self, result: Any = None, delay: float = 0.0) -> None:
        self.result = result
        self.delay = delay
        self.calls: list[str] = []

    async def get_lyrics(self, video_id: str, timeout: float = 1.0) -> Any:
        self.calls.append(video_id)
        if self.delay:
            await asyncio.sleep(self.delay)
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


@pytest.fixture
def engine() -> FakeEngine:
    """Provide a fake session engine."""
    return FakeEngine()


@pytest.fixture
def fake_ytmusic() -> FakeYTMusic:
    """Provide a fake upstream client."""
    return FakeYTMusic()


# =============================================================================
# Service Fixtures
# =============================================================================


@pytest.fixture
def environ() -> dict[str, str]:
    """Isolated environment mapping for configuration tests."""
    return {}


@pytest.fixture
def config(environ: dict[str, str]) -> ConfigurationService:
    """Configuration resolved against the isolated environment only."""
    return ConfigurationService(environ=environ)


@pytest.fixture
def auth_service(engine: FakeEngine, clock: MockClock) -> AuthService:
    """AuthService using the fake engine and mock clock."""
    return AuthService(engine=engine, clock=clock)


@pytest.fixture
def make_ytmusic_service(
    config: ConfigurationService,
    auth_service: AuthService,
    fake_ytmusic: FakeYTMusic,
) -> Callable[..., YouTubeMusicService]:
    """Factory for a facade whose upstream client is fake_ytmusic."""

    def _make(
        lyrics: Any = None, add_lyrics: bool = False
    ) -> YouTubeMusicService:
        def _factory(
            session_config: SessionConfig,
            session: requests.Session,
            cookies: list[Cookie],
        ) -> FakeYTMusic:
            return fake_ytmusic

        setattr(config, "get_add_lyrics_to_song_response", lambda: add_lyrics)
        return YouTubeMusicService(
            config=config,
            auth=auth_service,
            http_clients=HttpClientService(config),
            lyrics=lyrics or LyricsService(),
            client_factory=_factory,
        )

    return _make
