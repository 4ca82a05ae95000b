"""Session artifact generation with remote-to-local fallback and caching."""

from __future__ import annotations

import json
import logging
from datetime import timedelta
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from ytmproxy.exceptions import GenerationError, InvalidArgumentError
from ytmproxy.models.auth import AuthStatus, CacheStats, PoTokenResponse, SessionData
from ytmproxy.services.cache import Clock, TTLCache, utc_now
from ytmproxy.utils.concurrency import with_fallback
from ytmproxy.utils.cookies import (
    parse_cookies,
    truncate_for_debug,
    validate_youtube_cookies,
)

if TYPE_CHECKING:
    from ytmproxy.models.session import SessionConfig
    from ytmproxy.services.engine import SessionEngine

logger = logging.getLogger(__name__)

SESSION_TTL = timedelta(hours=1)
SERVER_TEST_TIMEOUT = 10.0
PO_TOKEN_CONTEXT = "gvs"


def session_cache_key(cookies: str | None, server_url: str | None) -> str:
    """Fingerprint used for the session cache."""
    return f"cookies:{cookies or 'none'}|server:{server_url or 'local'}"


def parse_po_token_response(body: str) -> str | None:
    """Extract a PoToken from a token server response body.

    Tries, in order: the typed response model, a JSON "poToken" field,
    a JSON "token" field, a JSON string, then the trimmed raw body.

    Returns:
        The token, or None for an empty body.
    """
    if not body or not body.strip():
        return None

    try:
        typed = PoTokenResponse.model_validate_json(body)
    except ValidationError:
        typed = None
    if typed is not None and typed.po_token:
        return typed.po_token

    try:
        data = json.loads(body)
    except json.JSONDecodeError:
        logger.debug("PoToken response is not JSON, treating as plain text")
        data = None

    if isinstance(data, dict):
        for field in ("poToken", "token"):
            token = data.get(field)
            if isinstance(token, str) and token:
                return token
    elif isinstance(data, str) and data:
        return data

    return body.strip()


class AuthService:
    """Generates visitor data and PoTokens.

    Tokens come from a remote token server when one is configured, falling
    back once to the local engine on any remote failure. Generated pairs
    are cached per (cookies, server) for an hour.
    """

    def __init__(
        self,
        engine: SessionEngine,
        client: httpx.AsyncClient | None = None,
        clock: Clock = utc_now,
        timeout: float = 30.0,
    ) -> None:
        """Initialize the service.

        Args:
            engine: Local visitor data / PoToken generator.
            client: HTTP client for token servers. Created if omitted.
            clock: Function returning the current time (enables testing).
            timeout: Seconds allowed for token server requests.
        """
        self._engine = engine
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = client is None
        self._clock = clock
        self._session_cache: TTLCache[SessionData] = TTLCache("session", clock=clock)

    # -------------------------------------------------------------------------
    # Generation
    # -------------------------------------------------------------------------

    async def generate_visitor_data(self, cookies: str | None = None) -> str:
        """Generate visitor data with the local engine.

        Raises:
            GenerationError: If generation fails or yields nothing.
        """
        try:
            visitor_data = await self._engine.visitor_data(cookies)
        except GenerationError:
            raise
        except Exception as e:
            raise GenerationError(f"Failed to generate visitor data: {e}") from e

        if not visitor_data:
            raise GenerationError("Generated visitor data is empty")
        logger.debug("Generated visitor data: %s", truncate_for_debug(visitor_data))
        return visitor_data

    async def generate_po_token_local(
        self, visitor_data: str, cookies: str | None = None
    ) -> str:
        """Generate a PoToken bound to visitor_data with the local engine.

        Raises:
            InvalidArgumentError: If visitor_data is empty.
            GenerationError: If generation fails or yields nothing.
        """
        if not visitor_data or not visitor_data.strip():
            raise InvalidArgumentError("Visitor data cannot be empty")

        try:
            po_token = await self._engine.po_token(visitor_data, cookies)
        except GenerationError:
            raise
        except Exception as e:
            raise GenerationError(f"Failed to generate PoToken locally: {e}") from e

        if not po_token:
            raise GenerationError("Generated PoToken is empty")
        logger.debug("Generated PoToken locally: %s", truncate_for_debug(po_token))
        return po_token

    async def generate_po_token_remote(self, visitor_data: str, server_url: str) -> str:
        """Request a PoToken from a remote token server.

        Raises:
            InvalidArgumentError: If visitor_data or server_url is empty.
            GenerationError: On non-2xx responses, empty bodies, timeouts
                and transport failures.
        """
        if not visitor_data or not visitor_data.strip():
            raise InvalidArgumentError("Visitor data cannot be empty")
        if not server_url or not server_url.strip():
            raise InvalidArgumentError("PoToken server URL cannot be empty")

        payload = {"content_binding": visitor_data, "context": PO_TOKEN_CONTEXT}
        logger.debug("Requesting PoToken from server: %s", server_url)
        try:
            response = await self._client.post(server_url, json=payload)
        except httpx.TimeoutException as e:
            raise GenerationError(
                f"Timeout while connecting to PoToken server at {server_url}"
            ) from e
        except httpx.HTTPError as e:
            raise GenerationError(
                f"Failed to connect to PoToken server at {server_url}: {e}"
            ) from e

        if not response.is_success:
            raise GenerationError(
                "PoToken server returned error status "
                f"{response.status_code}: {response.text}"
            )

        token = parse_po_token_response(response.text)
        if not token:
            raise GenerationError("PoToken server returned empty or invalid response")
        return token

    async def generate_po_token(
        self,
        visitor_data: str,
        server_url: str | None = None,
        cookies: str | None = None,
    ) -> str:
        """Generate a PoToken, preferring the remote server when given.

        A remote failure of any kind triggers exactly one local attempt.
        """
        if not server_url:
            return await self.generate_po_token_local(visitor_data, cookies)

        async def _local(error: Exception) -> str:
            logger.warning(
                "Remote PoToken generation failed, falling back to local: %s", error
            )
            return await self.generate_po_token_local(visitor_data, cookies)

        return await with_fallback(
            lambda: self.generate_po_token_remote(visitor_data, server_url), _local
        )

    async def generate_session_data(
        self, cookies: str | None = None, server_url: str | None = None
    ) -> SessionData:
        """Return cached or freshly generated visitor data and PoToken."""
        key = session_cache_key(cookies, server_url)
        if (cached := self._session_cache.get(key)) is not None:
            logger.debug("Using cached session data")
            return cached

        self._session_cache.sweep_expired()

        visitor_data = await self.generate_visitor_data(cookies)
        po_token = await self.generate_po_token(visitor_data, server_url, cookies)
        session = SessionData(visitor_data=visitor_data, po_token=po_token)
        self._session_cache.put(key, session, SESSION_TTL)
        logger.info("Generated new session data")
        return session

    # -------------------------------------------------------------------------
    # Diagnostics
    # -------------------------------------------------------------------------

    async def test_po_token_server(self, server_url: str) -> bool:
        """Return whether the token server answers a test request with 2xx."""
        payload = {"content_binding": "test", "context": PO_TOKEN_CONTEXT}
        try:
            response = await self._client.post(
                server_url, json=payload, timeout=SERVER_TEST_TIMEOUT
            )
        except Exception as e:
            logger.debug("PoToken server test failed for %s: %s", server_url, e)
            return False
        logger.debug("PoToken server test status: %d", response.status_code)
        return response.is_success

    async def get_auth_status(self, session_config: SessionConfig) -> AuthStatus:
        """Build a diagnostic snapshot. Errors are recorded, never raised."""
        cookies = session_config.cookies
        server_url = session_config.po_token_server
        status = AuthStatus(
            cookies_configured=bool(cookies),
            po_token_server_configured=bool(server_url),
            last_generated=self._clock(),
        )

        try:
            if cookies:
                validation = validate_youtube_cookies(parse_cookies(cookies))
                status.cookie_validation_result = validation
                status.cookies_valid = validation.is_valid

            if server_url:
                status.po_token_server_reachable = await self.test_po_token_server(
                    server_url
                )

            visitor_data = await self.generate_visitor_data(cookies)
            status.visitor_data = truncate_for_debug(visitor_data)
            status.content_binding = truncate_for_debug(visitor_data)

            reachable_server = server_url if status.po_token_server_reachable else None
            po_token = await self.generate_po_token(
                visitor_data, reachable_server, cookies
            )
            status.po_token = truncate_for_debug(po_token)
        except Exception as e:
            logger.warning("Error while getting auth status: %s", e)
            status.error_message = str(e)

        return status

    # -------------------------------------------------------------------------
    # Cache management
    # -------------------------------------------------------------------------

    def clear_session_cache(self) -> int:
        """Drop every cached session. Returns the number removed."""
        return self._session_cache.clear()

    def get_session_cache_stats(self) -> CacheStats:
        return self._session_cache.stats()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
