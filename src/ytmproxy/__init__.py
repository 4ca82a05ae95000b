"""ytmproxy - A YouTube Music API proxy.

This library wraps ytmusicapi behind layered configuration, cookie
validation, session token generation (visitor data and PoTokens) and TTL
caches, and exposes it as a FastAPI backend.

Designed for use as a web service with a CLI for debugging and
development.

Examples:
    Run the API server:
    ```bash
    python -m ytmproxy
    ```

    Use the facade directly:
    ```python
    from ytmproxy import create_youtube_music_service

    ytmusic = create_youtube_music_service()
    results = await ytmusic.search("daft punk", "songs")
    ```
"""

from ytmproxy.config import StaticConfig, load_static_config
from ytmproxy.exceptions import (
    AuthenticationRequiredError,
    GenerationError,
    InvalidArgumentError,
    NotFoundOrPrivateError,
    UpstreamError,
    UpstreamParseError,
    YTMProxyError,
)
from ytmproxy.models import (
    AuthStatus,
    CacheStats,
    Cookie,
    CookieValidationResult,
    LyricsApiResponse,
    SessionConfig,
    SessionData,
)
from ytmproxy.services import (
    AuthService,
    ConfigurationService,
    HttpClientService,
    LyricsService,
    YouTubeMusicService,
    YouTubeSessionEngine,
)
from ytmproxy.utils import parse_cookies, validate_youtube_cookies


def create_youtube_music_service(
    config: ConfigurationService | None = None,
    po_token_command: str | None = None,
) -> YouTubeMusicService:
    """Create a fully wired YouTube Music facade.

    Args:
        config: Resolved configuration. Reads the environment when omitted.
        po_token_command: Optional local PoToken runner command.

    Returns:
        A YouTubeMusicService sharing one auth service and HTTP client cache.
    """
    config = config or ConfigurationService()
    timeout = float(config.get_timeout_seconds())
    engine = YouTubeSessionEngine(
        user_agent=config.get_user_agent(),
        po_token_command=po_token_command,
        timeout=timeout,
    )
    http_clients = HttpClientService(config)
    return YouTubeMusicService(
        config=config,
        auth=AuthService(engine=engine, timeout=timeout),
        http_clients=http_clients,
        lyrics=LyricsService(),
    )


__all__ = [
    "AuthService",
    "AuthStatus",
    "AuthenticationRequiredError",
    "CacheStats",
    "ConfigurationService",
    "Cookie",
    "CookieValidationResult",
    "GenerationError",
    "HttpClientService",
    "InvalidArgumentError",
    "LyricsApiResponse",
    "LyricsService",
    "NotFoundOrPrivateError",
    "SessionConfig",
    "SessionData",
    "StaticConfig",
    "UpstreamError",
    "UpstreamParseError",
    "YTMProxyError",
    "YouTubeMusicService",
    "YouTubeSessionEngine",
    "create_youtube_music_service",
    "load_static_config",
    "parse_cookies",
    "validate_youtube_cookies",
]
