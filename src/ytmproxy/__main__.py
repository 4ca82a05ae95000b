"""Entry point for running ytmproxy as a module: python -m ytmproxy."""

import sys

import uvicorn
from pydantic import ValidationError

from ytmproxy.settings import get_settings


def main() -> None:
    """Start the FastAPI server."""
    try:
        settings = get_settings()
    except ValidationError as e:
        print(f"Configuration error: {e.errors()[0]['msg']}", file=sys.stderr)
        sys.exit(1)
    uvicorn.run(
        "ytmproxy.api.app:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
    )


if __name__ == "__main__":
    main()
