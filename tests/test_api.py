"""Tests for the HTTP API routes and error handlers."""

import httpx
import pytest
import requests
from conftest import VALID_COOKIES, FakeEngine, FakeLyrics, FakeYTMusic, MockClock
from fastapi import FastAPI
from fastapi.testclient import TestClient
from test_ytmusic_service import VIDEO_ID, _song

from ytmproxy.api.app import create_app
from ytmproxy.api.container import Services
from ytmproxy.exceptions import UpstreamParseError
from ytmproxy.models.auth import Cookie
from ytmproxy.models.session import SessionConfig
from ytmproxy.services.auth import AuthService
from ytmproxy.services.configuration import ConfigurationService
from ytmproxy.services.http_clients import HttpClientService
from ytmproxy.services.ytmusic import YouTubeMusicService


class StreamUpstream:
    """Records audio stream requests and answers with fixed bytes."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if "range" in request.headers:
            return httpx.Response(
                206,
                content=b"audi",
                headers={"Content-Range": "bytes 0-3/11"},
            )
        return httpx.Response(200, content=b"audio-bytes")


@pytest.fixture
def sessions() -> list[SessionConfig]:
    """Session configs seen by the upstream client factory."""
    return []


@pytest.fixture
def upstream() -> StreamUpstream:
    return StreamUpstream()


@pytest.fixture
def app(
    engine: FakeEngine,
    clock: MockClock,
    fake_ytmusic: FakeYTMusic,
    sessions: list[SessionConfig],
    upstream: StreamUpstream,
) -> FastAPI:
    """App wired with fakes. The lifespan is not run."""
    config = ConfigurationService(environ={})
    setattr(config, "get_add_lyrics_to_song_response", lambda: False)

    def _factory(
        session_config: SessionConfig,
        session: requests.Session,
        cookies: list[Cookie],
    ) -> FakeYTMusic:
        sessions.append(session_config)
        return fake_ytmusic

    auth = AuthService(engine=engine, clock=clock)
    http_clients = HttpClientService(config, clock=clock)
    lyrics = FakeLyrics()
    app = create_app(config)
    app.state.services = Services(
        config=config,
        auth=auth,
        http_clients=http_clients,
        lyrics=lyrics,  # type: ignore[arg-type]
        ytmusic=YouTubeMusicService(
            config=config,
            auth=auth,
            http_clients=http_clients,
            lyrics=lyrics,  # type: ignore[arg-type]
            client_factory=_factory,
        ),
        engine=engine,  # type: ignore[arg-type]
        stream_client=httpx.AsyncClient(transport=httpx.MockTransport(upstream)),
    )
    return app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app, raise_server_exceptions=False)


class TestHealth:
    """Tests for GET /api."""

    def test_reports_health_and_auth(self, client: TestClient) -> None:
        response = client.get("/api")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["name"] == "YouTube Music API Proxy"
        assert body["environment"]["cookiesConfigured"] is False
        assert body["environment"]["authStatus"]["poToken"] == "local-po-token"
        assert "python" in body["runtime"]


class TestSearchRoute:
    """Tests for GET /api/search."""

    def test_returns_camel_case_results(
        self, client: TestClient, fake_ytmusic: FakeYTMusic
    ) -> None:
        fake_ytmusic.responses["search"] = [{"title": "Song"}]

        response = client.get("/api/search", params={"query": "rick"})

        assert response.status_code == 200
        assert response.json() == {
            "results": [{"title": "Song"}],
            "totalCount": 1,
            "query": "rick",
            "category": None,
        }

    def test_missing_query_is_bad_request(self, client: TestClient) -> None:
        response = client.get("/api/search")

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_argument"

    def test_location_query_overrides_default(
        self, client: TestClient, sessions: list[SessionConfig]
    ) -> None:
        client.get("/api/search", params={"query": "rick", "location": "DE"})

        assert sessions[0].geographical_location == "DE"


class TestSongRoutes:
    """Tests for song and streaming data routes."""

    def test_song(self, client: TestClient, fake_ytmusic: FakeYTMusic) -> None:
        fake_ytmusic.responses["get_song"] = _song()

        response = client.get(f"/api/song/{VIDEO_ID}")

        assert response.status_code == 200
        body = response.json()
        assert body["id"] == VIDEO_ID
        assert body["durationSeconds"] == 213
        assert body["streamingData"]["adaptiveFormats"]

    def test_private_song_is_not_found(
        self, client: TestClient, fake_ytmusic: FakeYTMusic
    ) -> None:
        fake_ytmusic.errors["get_song"] = UpstreamParseError("html", "get song")

        response = client.get(f"/api/song/{VIDEO_ID}")

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"
        assert response.json()["resource_id"] == VIDEO_ID

    def test_streaming_data(
        self, client: TestClient, fake_ytmusic: FakeYTMusic
    ) -> None:
        fake_ytmusic.responses["get_song"] = _song()

        response = client.get(f"/api/streaming/{VIDEO_ID}")

        assert response.status_code == 200
        assert len(response.json()["adaptiveFormats"]) == 3


class TestStreamRoute:
    """Tests for the audio stream proxy."""

    def test_proxies_best_audio(
        self,
        client: TestClient,
        fake_ytmusic: FakeYTMusic,
        upstream: StreamUpstream,
    ) -> None:
        fake_ytmusic.responses["get_song"] = _song()

        response = client.get(f"/api/stream/{VIDEO_ID}")

        assert response.status_code == 200
        assert response.content == b"audio-bytes"
        assert response.headers["content-type"].startswith("audio/mp4")
        assert "itag=140" in str(upstream.requests[0].url)

    def test_m4a_suffix_and_range(
        self,
        client: TestClient,
        fake_ytmusic: FakeYTMusic,
        upstream: StreamUpstream,
    ) -> None:
        fake_ytmusic.responses["get_song"] = _song()

        response = client.get(
            f"/api/stream/{VIDEO_ID}.m4a",
            params={"quality": "low"},
            headers={"Range": "bytes=0-3"},
        )

        assert response.status_code == 206
        assert response.headers["content-range"] == "bytes 0-3/11"
        assert fake_ytmusic.calls[0] == ("get_song", (VIDEO_ID,))
        assert "itag=249" in str(upstream.requests[0].url)
        assert upstream.requests[0].headers["range"] == "bytes=0-3"

    def test_unplayable_is_not_found(
        self, client: TestClient, fake_ytmusic: FakeYTMusic
    ) -> None:
        fake_ytmusic.responses["get_song"] = _song(playable=False)

        response = client.get(f"/api/stream/{VIDEO_ID}")

        assert response.status_code == 404


class TestPlaylistRoute:
    """Tests for GET /api/playlist/{id}."""

    def test_invalid_id(self, client: TestClient, fake_ytmusic: FakeYTMusic) -> None:
        response = client.get("/api/playlist/notaplaylist")

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_argument"
        assert fake_ytmusic.calls == []

    def test_playlist(self, client: TestClient, fake_ytmusic: FakeYTMusic) -> None:
        fake_ytmusic.responses["get_playlist"] = {
            "title": "Mix",
            "tracks": [{"videoId": "a"}, {"videoId": "b"}],
        }

        response = client.get("/api/playlist/PLabc")

        assert response.status_code == 200
        body = response.json()
        assert body["browseId"] == "VLPLabc"
        assert body["totalSongs"] == 2


class TestLibraryRoutes:
    """Tests for library routes."""

    def test_requires_cookies(self, client: TestClient) -> None:
        response = client.get("/api/library")

        assert response.status_code == 401
        assert response.json()["error"] == "authentication_required"

    def test_category_with_cookie_query(
        self, client: TestClient, sessions: list[SessionConfig]
    ) -> None:
        response = client.get("/api/library/songs", params={"cookies": VALID_COOKIES})

        assert response.status_code == 200
        assert response.json()["category"] == "songs"
        assert sessions[0].cookies == VALID_COOKIES
        assert sessions[0].visitor_data is not None

    def test_combined_library(self, client: TestClient) -> None:
        response = client.get("/api/library", params={"cookies": VALID_COOKIES})

        assert response.status_code == 200
        assert set(response.json()) == {
            "songs",
            "albums",
            "artists",
            "subscriptions",
            "podcasts",
            "playlists",
        }

    def test_unknown_category(self, client: TestClient) -> None:
        response = client.get("/api/library/videos", params={"cookies": VALID_COOKIES})

        assert response.status_code == 422


class TestAuthRoutes:
    """Tests for auth diagnostics routes."""

    def test_status(self, client: TestClient) -> None:
        response = client.get("/api/auth/status", params={"cookies": VALID_COOKIES})

        assert response.status_code == 200
        body = response.json()
        assert body["cookiesConfigured"] is True
        assert body["cookiesValid"] is True
        assert body["cookieValidationResult"]["summary"].startswith("All essential")

    def test_session_cache_stats_and_clear(self, client: TestClient) -> None:
        client.get("/api/library/songs", params={"cookies": VALID_COOKIES})

        stats = client.get("/api/auth/session-cache").json()
        cleared = client.post("/api/auth/session-cache/clear").json()

        assert stats == {"totalEntries": 1, "validEntries": 1, "expiredEntries": 0}
        assert cleared["cleared"] == 1


class TestErrorHandling:
    """Tests for the exception handlers."""

    def test_unhandled_error_is_generic_500(
        self, client: TestClient, fake_ytmusic: FakeYTMusic
    ) -> None:
        fake_ytmusic.errors["get_album"] = RuntimeError("secret detail")

        response = client.get("/api/album/MPREb_x")

        assert response.status_code == 500
        assert response.json() == {
            "error": "internal_error",
            "message": "Internal server error",
        }
