"""Authentication models: cookies, validation results and status snapshots."""

from dataclasses import dataclass
from datetime import datetime

from pydantic import ConfigDict, Field, computed_field

from ytmproxy.models.base import CamelModel


@dataclass
class Cookie:
    """A single cookie parsed from a Cookie header."""

    name: str
    value: str
    secure: bool = False


class CookieValidationResult(CamelModel):
    """Result of validating YouTube Music authentication cookies."""

    is_valid: bool = True
    missing_cookies: list[str] = Field(default_factory=list)
    present_cookies: list[str] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def summary(self) -> str:
        if self.is_valid:
            return (
                "All essential cookies present "
                f"({len(self.present_cookies)} cookies validated)"
            )
        return (
            f"Missing {len(self.missing_cookies)} essential cookies: "
            f"{', '.join(self.missing_cookies)}"
        )


class AuthStatus(CamelModel):
    """Diagnostic snapshot of the authentication setup. Never persisted."""

    model_config = ConfigDict(validate_assignment=True)

    cookies_configured: bool = False
    cookies_valid: bool = False
    cookie_validation_result: CookieValidationResult | None = None
    po_token_server_configured: bool = False
    po_token_server_reachable: bool = False
    visitor_data: str | None = None
    po_token: str | None = None
    content_binding: str | None = None
    last_generated: datetime | None = None
    error_message: str | None = None
    expires_at: str | None = None


@dataclass(frozen=True)
class SessionData:
    """Generated visitor data and PoToken pair."""

    visitor_data: str
    po_token: str


@dataclass(frozen=True)
class CacheStats:
    """Point-in-time counts for a TTL cache."""

    total_entries: int
    valid_entries: int
    expired_entries: int


class PoTokenResponse(CamelModel):
    """Typed response body of a remote PoToken server."""

    content_binding: str | None = None
    po_token: str | None = None
    expires_at: str | None = None
