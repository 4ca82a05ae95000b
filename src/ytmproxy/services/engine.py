"""Local session artifact generation.

Visitor data is scraped from the YouTube Music home page configuration.
Proof-of-origin tokens need a BotGuard challenge solved in a JavaScript
runtime, which is delegated to an external runner command.
"""

import asyncio
import json
import logging
import re
import shlex
from typing import Protocol

import httpx

from ytmproxy.config import DEFAULT_USER_AGENT
from ytmproxy.exceptions import GenerationError

logger = logging.getLogger(__name__)

YTM_URL = "https://music.youtube.com"
VISITOR_DATA_KEY = "VISITOR_DATA"
_YTCFG_PATTERN = re.compile(r"ytcfg\.set\s*\(\s*(\{.*?\})\s*\)\s*;?", re.DOTALL)


class SessionEngine(Protocol):
    """Produces visitor data and PoTokens without a remote token server."""

    async def visitor_data(self, cookies: str | None = None) -> str:
        """Return fresh visitor data."""
        ...

    async def po_token(self, visitor_data: str, cookies: str | None = None) -> str:
        """Return a PoToken bound to visitor_data."""
        ...


def extract_visitor_data(html: str) -> str | None:
    """Find VISITOR_DATA in the ytcfg.set({...}) blocks of a page."""
    for match in _YTCFG_PATTERN.findall(html):
        try:
            ytcfg = json.loads(match)
        except json.JSONDecodeError:
            continue
        if visitor_data := ytcfg.get(VISITOR_DATA_KEY):
            return visitor_data
    return None


def parse_runner_output(output: str) -> str:
    """Read a PoToken from runner stdout: {"poToken": ...} JSON or a bare token."""
    text = output.strip()
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        return text
    if isinstance(data, dict):
        return str(data.get("poToken") or data.get("po_token") or "")
    if isinstance(data, str):
        return data.strip()
    return text


class YouTubeSessionEngine:
    """Default SessionEngine backed by httpx and an external token runner."""

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        user_agent: str = DEFAULT_USER_AGENT,
        po_token_command: str | None = None,
        timeout: float = 30.0,
    ) -> None:
        """Initialize the engine.

        Args:
            client: Shared HTTP client. A private one is created if omitted.
            user_agent: User-Agent sent when fetching the home page.
            po_token_command: Runner command line. The content binding is
                appended as the last argument.
            timeout: Seconds allowed for each network call or runner run.
        """
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = client is None
        self._user_agent = user_agent
        self._command = shlex.split(po_token_command) if po_token_command else []
        self._timeout = timeout

    async def visitor_data(self, cookies: str | None = None) -> str:
        headers = {"User-Agent": self._user_agent, "Accept-Language": "en-US,en"}
        if cookies:
            headers["Cookie"] = cookies

        response = await self._client.get(YTM_URL, headers=headers)
        response.raise_for_status()

        visitor_data = extract_visitor_data(response.text)
        if not visitor_data:
            raise GenerationError("VISITOR_DATA not found in YouTube Music page")
        return visitor_data

    async def po_token(self, visitor_data: str, cookies: str | None = None) -> str:
        if not self._command:
            raise GenerationError(
                "No local PoToken runner configured. "
                "Set YTMPROXY_PO_TOKEN_COMMAND or configure a PoToken server."
            )

        process = await asyncio.create_subprocess_exec(
            *self._command,
            visitor_data,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=self._timeout
            )
        except TimeoutError:
            process.kill()
            await process.wait()
            raise GenerationError(
                f"PoToken runner timed out after {self._timeout}s"
            ) from None

        if process.returncode != 0:
            detail = stderr.decode("utf-8", errors="replace").strip()
            raise GenerationError(
                f"PoToken runner exited with {process.returncode}: {detail}"
            )

        return parse_runner_output(stdout.decode("utf-8", errors="replace"))

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
