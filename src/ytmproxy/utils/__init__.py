"""Utility functions for ytmproxy."""

from ytmproxy.utils.concurrency import with_fallback
from ytmproxy.utils.cookies import (
    build_cookie_header,
    cookies_to_ytmusic_auth,
    generate_sapisidhash,
    get_sapisid,
    parse_cookies,
    validate_youtube_cookies,
)

__all__ = [
    "build_cookie_header",
    "cookies_to_ytmusic_auth",
    "generate_sapisidhash",
    "get_sapisid",
    "parse_cookies",
    "validate_youtube_cookies",
    "with_fallback",
]
