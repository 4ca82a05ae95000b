"""Cookie utilities for YouTube Music authentication.

Parses raw Cookie header strings, validates that the cookies needed for an
authenticated YouTube Music session are present, and converts them into the
browser-auth headers ytmusicapi expects.
"""

import hashlib
import logging
import time

from ytmproxy.exceptions import AuthenticationRequiredError
from ytmproxy.models.auth import Cookie, CookieValidationResult

logger = logging.getLogger(__name__)

# Origin for SAPISIDHASH calculation
YTM_ORIGIN = "https://music.youtube.com"

SECURE_PREFIX = "__Secure-"

# Cookie ytmusicapi derives the SAPISIDHASH from
AUTH_SAPISID_COOKIE = "__Secure-3PAPISID"

ESSENTIAL_COOKIES = (
    "SID",
    "HSID",
    "SSID",
    "APISID",
    "SAPISID",
    "__Secure-1PSID",
    "__Secure-3PSID",
    "LOGIN_INFO",
    "SIDCC",
    "__Secure-1PSIDCC",
    "__Secure-3PSIDCC",
)

# Minimum plausible length of a SID value
_MIN_SID_LENGTH = 10


def parse_cookies(raw: object) -> list[Cookie]:
    """Parse a raw Cookie header string into cookie records.

    Segments are split on ';' and then on the first '='. Segments without
    '=' or with an empty name are skipped. Duplicates are kept in order.

    Args:
        raw: Cookie header string. Anything else yields no cookies.

    Returns:
        Parsed cookies, in header order.
    """
    if not isinstance(raw, str) or not raw.strip():
        return []

    cookies: list[Cookie] = []
    for segment in raw.split(";"):
        segment = segment.strip()
        name, sep, value = segment.partition("=")
        name = name.strip()
        if not sep or not name:
            continue
        cookies.append(
            Cookie(
                name=name,
                value=value.strip(),
                secure=name.lower().startswith(SECURE_PREFIX.lower()),
            )
        )

    result = validate_youtube_cookies(cookies)
    if result.is_valid:
        logger.debug("Parsed %d cookies: %s", len(cookies), result.summary)
    else:
        absent = [name for name in result.missing_cookies if " (" not in name]
        if absent:
            logger.error("Essential cookies missing: %s", ", ".join(absent))
        logger.warning("Cookie validation failed: %s", result.summary)

    return cookies


def find_cookie(cookies: list[Cookie], name: str) -> Cookie | None:
    """Return the first cookie matching name, case-insensitively."""
    lowered = name.lower()
    return next((c for c in cookies if c.name.lower() == lowered), None)


def validate_youtube_cookies(cookies: list[Cookie]) -> CookieValidationResult:
    """Check cookies against the essential YouTube Music set.

    Absent cookies are reported by name. Present cookies with problems are
    reported with an issue suffix, e.g. "LOGIN_INFO (empty value)".

    Args:
        cookies: Parsed cookies.

    Returns:
        Validation result with ordered missing and present lists.
    """
    missing: list[str] = []
    present: list[str] = []

    for name in ESSENTIAL_COOKIES:
        cookie = find_cookie(cookies, name)
        if cookie is None:
            missing.append(name)
            continue

        present.append(name)
        if name == "LOGIN_INFO" and not cookie.value:
            missing.append(f"{name} (empty value)")
        if name.startswith(SECURE_PREFIX) and not cookie.secure:
            missing.append(f"{name} (not secure)")

    sid = find_cookie(cookies, "SID")
    if sid is not None and len(sid.value) < _MIN_SID_LENGTH:
        missing.append("SID (invalid value)")

    login_info = find_cookie(cookies, "LOGIN_INFO")
    if login_info is not None and (
        not login_info.value or ":" not in login_info.value
    ):
        missing.append("LOGIN_INFO (invalid format)")

    return CookieValidationResult(
        is_valid=not missing,
        missing_cookies=missing,
        present_cookies=present,
    )


def cookies_to_dict(cookies: list[Cookie]) -> dict[str, str]:
    """Collapse cookies into a name -> value dict, first occurrence wins."""
    result: dict[str, str] = {}
    for cookie in cookies:
        result.setdefault(cookie.name, cookie.value)
    return result


def build_cookie_header(cookies: dict[str, str]) -> str:
    """Build Cookie header string from cookie dict.

    Args:
        cookies: Dict mapping cookie name to value.

    Returns:
        Cookie header string (name=value; name2=value2; ...).
    """
    return "; ".join(f"{name}={value}" for name, value in cookies.items())


def get_sapisid(cookies: dict[str, str]) -> str | None:
    """Extract the SAPISID value ytmusicapi signs requests with.

    Only __Secure-3PAPISID counts. ytmusicapi rejects browser auth whose
    Cookie header lacks it, even when a bare SAPISID is present.
    """
    return cookies.get(AUTH_SAPISID_COOKIE) or None


def generate_sapisidhash(sapisid: str, origin: str = YTM_ORIGIN) -> str:
    """Generate SAPISIDHASH authorization value.

    See: https://stackoverflow.com/a/32065323/5726546

    Args:
        sapisid: SAPISID cookie value.
        origin: Origin URL for the hash.

    Returns:
        SAPISIDHASH authorization header value.
    """
    timestamp = str(int(time.time()))
    hash_input = f"{timestamp} {sapisid} {origin}"
    sha1_hash = hashlib.sha1(hash_input.encode("utf-8")).hexdigest()
    return f"SAPISIDHASH {timestamp}_{sha1_hash}"


def cookies_to_ytmusic_auth(parsed: list[Cookie]) -> dict[str, str] | None:
    """Convert parsed cookies into ytmusicapi authentication headers.

    Args:
        parsed: Cookies from parse_cookies().

    Returns:
        Headers that can be passed as YTMusic(auth=...), or None when there
        are no cookies at all.

    Raises:
        AuthenticationRequiredError: If cookies are present but lack
            __Secure-3PAPISID, without which ytmusicapi cannot authenticate.
    """
    cookies = cookies_to_dict(parsed)
    if not cookies:
        return None

    sapisid = get_sapisid(cookies)
    if not sapisid:
        logger.warning(
            "No %s cookie found, authentication not possible", AUTH_SAPISID_COOKIE
        )
        raise AuthenticationRequiredError(
            f"Cookies are missing {AUTH_SAPISID_COOKIE}, which YouTube Music "
            "needs for authenticated requests. Export the full cookie set "
            "from a signed-in browser session."
        )

    return {
        "Accept": "*/*",
        "Authorization": generate_sapisidhash(sapisid),
        "Content-Type": "application/json",
        "X-Goog-AuthUser": "0",
        "x-origin": YTM_ORIGIN,
        "Cookie": build_cookie_header(cookies),
    }


def truncate_for_debug(value: str | None, limit: int = 50) -> str | None:
    """Shorten a secret for logs and diagnostics."""
    if value is None:
        return None
    return value if len(value) <= limit else f"{value[:limit]}..."
