"""Configuration for ytmproxy.

Holds the static application configuration models (the "appsettings" layer)
and the ConfigurationSource descriptors naming the environment variable and
default behind every tunable.
"""

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
DEFAULT_LOCATION = "US"


def _parse_str(value: str) -> str | None:
    return value


def _parse_int(value: str) -> int | None:
    try:
        return int(value.strip())
    except ValueError:
        return None


def _parse_bool(value: str) -> bool | None:
    normalized = value.strip().lower()
    if normalized == "true":
        return True
    if normalized == "false":
        return False
    return None


def _accept_str(value: object) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _accept_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _accept_bool(value: object) -> bool:
    return value is True


@dataclass(frozen=True)
class ConfigurationSource(Generic[T]):
    """Describes where a configuration value comes from.

    Attributes:
        env_var: Environment variable consulted after static config.
        default: Value used when no source provides an accepted value.
        parse: Converts a raw environment string into the typed value
            (returns None when unparseable).
        accept: Decides whether a candidate counts as "provided".
        supports_base64_decoding: Try transparent base64 decoding of the
            selected value (string sources only).
    """

    env_var: str
    default: T
    parse: Callable[[str], T | None]
    accept: Callable[[object], bool]
    supports_base64_decoding: bool = False


def string_source(
    env_var: str, default: str | None = None, *, base64: bool = True
) -> ConfigurationSource[str | None]:
    """Create a string source. Non-blank values count as provided."""
    return ConfigurationSource(
        env_var=env_var,
        default=default,
        parse=_parse_str,
        accept=_accept_str,
        supports_base64_decoding=base64,
    )


def int_source(env_var: str, default: int) -> ConfigurationSource[int]:
    """Create an integer source. Positive values count as provided."""
    return ConfigurationSource(
        env_var=env_var, default=default, parse=_parse_int, accept=_accept_int
    )


def bool_source(env_var: str, default: bool) -> ConfigurationSource[bool]:
    """Create a boolean source. Only True counts as provided."""
    return ConfigurationSource(
        env_var=env_var, default=default, parse=_parse_bool, accept=_accept_bool
    )


class YouTubeMusicSources:
    """Configuration sources for the YouTube Music client."""

    COOKIES = string_source("YTM_COOKIES")
    VISITOR_DATA = string_source("YTM_VISITORDATA")
    PO_TOKEN = string_source("YTM_POTOKEN")
    PO_TOKEN_SERVER = string_source("YTM_POTOKEN_SERVER")
    GEOGRAPHICAL_LOCATION = string_source(
        "YTM_GEOGRAPHICAL_LOCATION", DEFAULT_LOCATION
    )
    USER_AGENT = string_source("YTM_USER_AGENT", DEFAULT_USER_AGENT)
    TIMEOUT_SECONDS = int_source("YTM_TIMEOUT", 30)
    MAX_RETRIES = int_source("YTM_MAX_RETRIES", 3)
    DEBUG = bool_source("YTM_DEBUG", False)


class LyricsSources:
    """Configuration sources for the lyrics integration."""

    ADD_TO_SONG_RESPONSE = bool_source("LYRICS_ADD_TO_SONG_RESPONSE", True)


class AppSources:
    """Configuration sources for the web application."""

    ENABLE_HTTPS_REDIRECTION = bool_source("ENABLE_HTTPS_REDIRECTION", False)


# -- Static configuration (appsettings layer) --


class YouTubeMusicConfig(BaseModel):
    """YouTube Music settings from the static configuration file.

    Unset fields fall through to environment variables and defaults.
    Numeric and boolean fields use 0/False as "not configured".
    """

    model_config = ConfigDict(extra="ignore")

    cookies: str | None = None
    visitor_data: str | None = None
    po_token: str | None = None
    po_token_server: str | None = None
    geographical_location: str | None = None
    user_agent: str | None = None
    timeout_seconds: int = 0
    max_retries: int = 0
    debug: bool = False


class LyricsConfig(BaseModel):
    """Lyrics settings from the static configuration file."""

    model_config = ConfigDict(extra="ignore")

    add_to_song_response: bool = False


class AppConfig(BaseModel):
    """Web application settings from the static configuration file."""

    model_config = ConfigDict(extra="ignore")

    http_port: int = 80
    https_port: int = 443
    enable_https_redirection: bool = False


class StaticConfig(BaseModel):
    """Root of the static configuration file."""

    model_config = ConfigDict(extra="ignore")

    youtube_music: YouTubeMusicConfig = Field(default_factory=YouTubeMusicConfig)
    lyrics: LyricsConfig = Field(default_factory=LyricsConfig)
    app: AppConfig = Field(default_factory=AppConfig)


def load_static_config(path: Path | None) -> StaticConfig:
    """Load the static configuration file.

    A missing path or file yields an empty configuration so every value
    falls through to the environment.

    Args:
        path: Path to a JSON configuration file.

    Returns:
        Parsed StaticConfig.

    Raises:
        ValueError: If the file exists but is not valid configuration.
    """
    if path is None or not path.exists():
        logger.debug("No static configuration file, using environment only")
        return StaticConfig()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid configuration file {path}: {e}") from e

    logger.info("Loaded static configuration from %s", path)
    return StaticConfig.model_validate(data)
