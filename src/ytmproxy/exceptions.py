"""Custom exceptions for ytmproxy.

All exceptions include an HTTP status_code attribute for easy
integration with web frameworks like FastAPI.
"""


class YTMProxyError(Exception):
    """Base exception for ytmproxy.

    Attributes:
        status_code: HTTP status code for API error responses.
    """

    status_code: int = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidArgumentError(YTMProxyError):
    """Caller-supplied precondition violated.

    Raised for empty visitor data, malformed playlist IDs, empty token
    server URLs and similar input problems. Never retried.
    """

    status_code: int = 400  # Bad Request


class AuthenticationRequiredError(YTMProxyError):
    """Authentication data is required for this operation.

    Raised when library endpoints are called without cookies.
    """

    status_code: int = 401  # Unauthorized


class NotFoundOrPrivateError(YTMProxyError):
    """Resource missing, private or otherwise inaccessible.

    Raised when YouTube Music answers with HTML where JSON was expected.
    """

    status_code: int = 404  # Not Found

    def __init__(self, message: str, resource_id: str | None = None) -> None:
        self.resource_id = resource_id
        super().__init__(message)


class GenerationError(YTMProxyError):
    """Visitor data or PoToken generation failed.

    Covers local engine faults, remote token server errors and
    network timeouts.
    """

    status_code: int = 502  # Bad Gateway (upstream failure)


class UpstreamError(YTMProxyError):
    """YouTube Music API error not otherwise classified.

    Raised when the underlying API request fails.
    """

    status_code: int = 502  # Bad Gateway (upstream failure)

    def __init__(self, message: str, operation: str | None = None) -> None:
        self.operation = operation
        super().__init__(message)


class UpstreamParseError(UpstreamError):
    """YouTube Music returned content that is not JSON.

    Usually an HTML error or consent page served in place of the API
    payload.
    """
