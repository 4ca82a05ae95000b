"""Per-request YouTube Music session configuration."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from ytmproxy.config import DEFAULT_LOCATION

if TYPE_CHECKING:
    from ytmproxy.config import YouTubeMusicConfig

_NONE = "none"


@dataclass(frozen=True)
class SessionConfig:
    """Session parameters for a single upstream request.

    Instances are never mutated; use with_() or create() to derive new ones.
    """

    cookies: str | None = None
    geographical_location: str | None = DEFAULT_LOCATION
    visitor_data: str | None = None
    po_token: str | None = None
    po_token_server: str | None = None

    @classmethod
    def from_main_config(cls, config: YouTubeMusicConfig) -> SessionConfig:
        """Build a session config from the resolved main configuration."""
        return cls(
            cookies=config.cookies,
            geographical_location=config.geographical_location or DEFAULT_LOCATION,
            visitor_data=config.visitor_data,
            po_token=config.po_token,
            po_token_server=config.po_token_server,
        )

    @classmethod
    def create(
        cls,
        config: YouTubeMusicConfig,
        cookies: str | None = None,
        geographical_location: str | None = None,
        visitor_data: str | None = None,
        po_token: str | None = None,
        po_token_server: str | None = None,
    ) -> SessionConfig:
        """Build a session config from the main configuration plus overrides.

        Overrides win when not None. Visitor data and PoToken are only
        taken from the overrides.
        """
        return cls(
            cookies=cookies if cookies is not None else config.cookies,
            geographical_location=(
                geographical_location
                or config.geographical_location
                or DEFAULT_LOCATION
            ),
            visitor_data=visitor_data,
            po_token=po_token,
            po_token_server=(
                po_token_server
                if po_token_server is not None
                else config.po_token_server
            ),
        )

    def with_(
        self,
        cookies: str | None = None,
        geographical_location: str | None = None,
        visitor_data: str | None = None,
        po_token: str | None = None,
        po_token_server: str | None = None,
    ) -> SessionConfig:
        """Return a copy where every non-None argument replaces the field."""
        updates = {
            "cookies": cookies,
            "geographical_location": geographical_location,
            "visitor_data": visitor_data,
            "po_token": po_token,
            "po_token_server": po_token_server,
        }
        return replace(self, **{k: v for k, v in updates.items() if v is not None})

    def create_cache_key(self) -> str:
        """Deterministic fingerprint of all five fields."""
        parts = (
            f"cookies:{_or_none(self.cookies)}",
            f"location:{_or_none(self.geographical_location)}",
            f"visitor:{_or_none(self.visitor_data)}",
            f"poToken:{_or_none(self.po_token)}",
            f"server:{_or_none(self.po_token_server)}",
        )
        return "|".join(parts)

    def has_session_data(self) -> bool:
        """Cookies present and at least one of visitor data or PoToken."""
        return bool(self.cookies) and (bool(self.visitor_data) or bool(self.po_token))

    def needs_session_data_generation(self) -> bool:
        """Cookies present but visitor data or PoToken missing."""
        return bool(self.cookies) and (
            not self.visitor_data or not self.po_token
        )


def _or_none(value: str | None) -> str:
    return value if value is not None else _NONE
