"""Data models for ytmproxy.

Public API:
    SessionConfig - Per-request session parameters
    Cookie, CookieValidationResult, AuthStatus - Authentication models
    LyricsApiResponse - Lyrics API payload

Internal (not exported):
    responses.py - HTTP API response shapes
"""

from ytmproxy.models.auth import (
    AuthStatus,
    CacheStats,
    Cookie,
    CookieValidationResult,
    PoTokenResponse,
    SessionData,
)
from ytmproxy.models.lyrics import LyricsApiResponse, LyricsData, LyricsError
from ytmproxy.models.session import SessionConfig

__all__ = [
    "AuthStatus",
    "CacheStats",
    "Cookie",
    "CookieValidationResult",
    "LyricsApiResponse",
    "LyricsData",
    "LyricsError",
    "PoTokenResponse",
    "SessionConfig",
    "SessionData",
]
