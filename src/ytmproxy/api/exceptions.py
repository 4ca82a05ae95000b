"""Error handlers for the API.

All API errors use a consistent response format:
{
    "error": "error_code",
    "message": "Human-readable description",
    ...additional context fields
}
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ytmproxy.exceptions import (
    AuthenticationRequiredError,
    GenerationError,
    InvalidArgumentError,
    NotFoundOrPrivateError,
    UpstreamError,
    UpstreamParseError,
    YTMProxyError,
)

logger = logging.getLogger(__name__)


class ErrorResponse(BaseModel):
    """Standard error response format."""

    error: str
    message: str


# Machine-readable codes for core exceptions (most specific first)
ERROR_CODES: dict[type[YTMProxyError], str] = {
    InvalidArgumentError: "invalid_argument",
    AuthenticationRequiredError: "authentication_required",
    NotFoundOrPrivateError: "not_found",
    GenerationError: "session_generation_failed",
    UpstreamParseError: "upstream_parse_error",
    UpstreamError: "upstream_error",
}


def error_code_for(exc: YTMProxyError) -> str:
    for exc_class in type(exc).__mro__:
        if code := ERROR_CODES.get(exc_class):  # type: ignore[call-overload]
            return code
    return "internal_error"


def register_exception_handlers(app: FastAPI) -> None:
    """Register custom exception handlers on the FastAPI app."""

    @app.exception_handler(YTMProxyError)
    async def ytmproxy_error_handler(
        request: Request, exc: YTMProxyError
    ) -> JSONResponse:
        """Generic handler for all YTMProxyError subclasses."""
        content: dict[str, str | None] = {
            "error": error_code_for(exc),
            "message": exc.message,
        }

        # Add context fields if present on the exception
        for field in ("resource_id", "operation"):
            value = getattr(exc, field, None)
            if value is not None:
                content[field] = str(value)

        if exc.status_code >= 500:
            logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error for %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "internal_error", "message": "Internal server error"},
        )
