"""Layered configuration resolution.

Every tunable is resolved from, in order: an explicit request parameter,
the static configuration file, the environment, then the source default.
"""

import base64
import binascii
import logging
import os
import re
from collections.abc import Mapping
from typing import TypeVar

from ytmproxy.config import (
    DEFAULT_LOCATION,
    AppSources,
    ConfigurationSource,
    LyricsSources,
    StaticConfig,
    YouTubeMusicConfig,
    YouTubeMusicSources,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

_BASE64_ALPHABET = re.compile(r"^[A-Za-z0-9+/=]+$")


def try_decode_base64(value: str) -> str | None:
    """Decode value when it looks like base64 of UTF-8 text.

    Returns:
        Decoded text, or None when value is not base64, fails to decode,
        or decodes to bytes that are not valid UTF-8.
    """
    if not value or not value.strip() or not _BASE64_ALPHABET.match(value):
        return None
    try:
        return base64.b64decode(value, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None


def resolve(
    source: ConfigurationSource[T],
    explicit: T | None = None,
    static: T | None = None,
    environ: Mapping[str, str] | None = None,
    *,
    log: bool = False,
) -> T:
    """Resolve one configuration value.

    Args:
        source: Descriptor naming the env var, default and acceptance rule.
        explicit: Request-level override (highest priority).
        static: Value from the static configuration file.
        environ: Environment mapping; os.environ when None.
        log: Log which layer supplied the value at DEBUG level.

    Returns:
        The first accepted candidate (optionally base64-decoded), or the
        source default. Never raises.
    """
    env = os.environ if environ is None else environ
    raw_env = env.get(source.env_var)
    env_value = source.parse(raw_env) if raw_env is not None else None

    for origin, candidate in (
        ("parameter", explicit),
        ("static config", static),
        ("environment", env_value),
    ):
        if candidate is None or not source.accept(candidate):
            continue
        if log:
            logger.debug("%s resolved from %s", source.env_var, origin)
        if source.supports_base64_decoding and isinstance(candidate, str):
            decoded = try_decode_base64(candidate)
            if decoded is not None:
                return decoded  # type: ignore[return-value]
        return candidate

    if log:
        logger.debug("%s using default", source.env_var)
    return source.default


class ConfigurationService:
    """Typed accessors over the resolver for every known tunable.

    Query-capable accessors take the request value as their only argument.
    """

    def __init__(
        self,
        static: StaticConfig | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._static = static or StaticConfig()
        self._environ = environ
        self._debug = bool(
            resolve(YouTubeMusicSources.DEBUG, None, self._ytm.debug, environ)
        )

    @property
    def _ytm(self) -> YouTubeMusicConfig:
        return self._static.youtube_music

    def _resolve(
        self, source: ConfigurationSource[T], explicit: T | None, static: T | None
    ) -> T:
        return resolve(source, explicit, static, self._environ, log=self._debug)

    def get_cookies(self, query: str | None = None) -> str | None:
        return self._resolve(YouTubeMusicSources.COOKIES, query, self._ytm.cookies)

    def get_po_token_server(self, query: str | None = None) -> str | None:
        return self._resolve(
            YouTubeMusicSources.PO_TOKEN_SERVER, query, self._ytm.po_token_server
        )

    def get_geographical_location(self, query: str | None = None) -> str:
        return self._resolve(
            YouTubeMusicSources.GEOGRAPHICAL_LOCATION,
            query,
            self._ytm.geographical_location,
        ) or DEFAULT_LOCATION

    def get_visitor_data(self, query: str | None = None) -> str | None:
        return self._resolve(
            YouTubeMusicSources.VISITOR_DATA, query, self._ytm.visitor_data
        )

    def get_po_token(self, query: str | None = None) -> str | None:
        return self._resolve(YouTubeMusicSources.PO_TOKEN, query, self._ytm.po_token)

    def get_user_agent(self) -> str:
        value = self._resolve(
            YouTubeMusicSources.USER_AGENT, None, self._ytm.user_agent
        )
        return value or ""

    def get_timeout_seconds(self) -> int:
        return self._resolve(
            YouTubeMusicSources.TIMEOUT_SECONDS, None, self._ytm.timeout_seconds
        )

    def get_max_retries(self) -> int:
        return self._resolve(
            YouTubeMusicSources.MAX_RETRIES, None, self._ytm.max_retries
        )

    def get_debug(self) -> bool:
        return self._debug

    def get_add_lyrics_to_song_response(self) -> bool:
        return self._resolve(
            LyricsSources.ADD_TO_SONG_RESPONSE,
            None,
            self._static.lyrics.add_to_song_response,
        )

    def get_enable_https_redirection(self) -> bool:
        return self._resolve(
            AppSources.ENABLE_HTTPS_REDIRECTION,
            None,
            self._static.app.enable_https_redirection,
        )

    def get_youtube_music_config(self) -> YouTubeMusicConfig:
        """Snapshot of the fully resolved YouTube Music configuration."""
        return YouTubeMusicConfig(
            cookies=self.get_cookies(),
            visitor_data=self.get_visitor_data(),
            po_token=self.get_po_token(),
            po_token_server=self.get_po_token_server(),
            geographical_location=self.get_geographical_location(),
            user_agent=self.get_user_agent(),
            timeout_seconds=self.get_timeout_seconds(),
            max_retries=self.get_max_retries(),
            debug=self.get_debug(),
        )

    def log_resolved_configuration(self) -> None:
        """Log a startup summary. Secrets are reported as set or not set."""
        config = self.get_youtube_music_config()

        def _is_set(value: str | None) -> str:
            return "Set" if value else "Not set"

        logger.info("YouTube Music configuration:")
        logger.info("  Cookies: %s", _is_set(config.cookies))
        logger.info("  Visitor data: %s", _is_set(config.visitor_data))
        logger.info("  PoToken: %s", _is_set(config.po_token))
        logger.info("  PoToken server: %s", _is_set(config.po_token_server))
        logger.info("  Location: %s", config.geographical_location)
        logger.info("  Timeout: %ss", config.timeout_seconds)
        logger.info("  Max retries: %s", config.max_retries)
        logger.info("  Debug: %s", config.debug)
        logger.info(
            "  Lyrics in song response: %s", self.get_add_lyrics_to_song_response()
        )
        logger.info("  HTTPS redirection: %s", self.get_enable_https_redirection())
