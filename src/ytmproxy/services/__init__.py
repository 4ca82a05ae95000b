"""Services for ytmproxy."""

from ytmproxy.services.auth import AuthService
from ytmproxy.services.cache import TTLCache
from ytmproxy.services.configuration import ConfigurationService, resolve
from ytmproxy.services.engine import SessionEngine, YouTubeSessionEngine
from ytmproxy.services.http_clients import HttpClientService
from ytmproxy.services.lyrics import LyricsService
from ytmproxy.services.ytmusic import YouTubeMusicService

__all__ = [
    "AuthService",
    "ConfigurationService",
    "HttpClientService",
    "LyricsService",
    "SessionEngine",
    "TTLCache",
    "YouTubeMusicService",
    "YouTubeSessionEngine",
    "resolve",
]
