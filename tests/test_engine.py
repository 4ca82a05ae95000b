"""Tests for the local visitor data / PoToken engine."""

import shlex
import sys

import httpx
import pytest

from ytmproxy.exceptions import GenerationError
from ytmproxy.services.engine import (
    YTM_URL,
    YouTubeSessionEngine,
    extract_visitor_data,
    parse_runner_output,
)

HOME_PAGE = """
<html><head><script>
ytcfg.set({"INNERTUBE_API_KEY": "key", "CONTEXT": {"client": {"hl": "en"}}});
ytcfg.set({"VISITOR_DATA": "CgtWaXNpdG9y", "LOGGED_IN": false});
</script></head><body></body></html>
"""


def _runner(code: str) -> str:
    """Command line running a Python snippet; the visitor data is argv[1]."""
    return shlex.join([sys.executable, "-c", code])


def _engine(
    po_token_command: str | None = None,
    timeout: float = 10.0,
    handler: httpx.MockTransport | None = None,
) -> YouTubeSessionEngine:
    transport = handler or httpx.MockTransport(
        lambda request: httpx.Response(200, text=HOME_PAGE)
    )
    return YouTubeSessionEngine(
        client=httpx.AsyncClient(transport=transport),
        user_agent="test-agent",
        po_token_command=po_token_command,
        timeout=timeout,
    )


class TestExtractVisitorData:
    """Tests for reading VISITOR_DATA out of page configuration."""

    def test_finds_value_in_later_block(self) -> None:
        assert extract_visitor_data(HOME_PAGE) == "CgtWaXNpdG9y"

    def test_skips_malformed_blocks(self) -> None:
        html = 'ytcfg.set({not json}); ytcfg.set({"VISITOR_DATA": "vd"});'
        assert extract_visitor_data(html) == "vd"

    @pytest.mark.parametrize(
        "html",
        ["<html></html>", 'ytcfg.set({"LOGGED_IN": true});', ""],
        ids=["no_config", "no_key", "empty"],
    )
    def test_missing_returns_none(self, html: str) -> None:
        assert extract_visitor_data(html) is None


class TestParseRunnerOutput:
    """Tests for reading a PoToken from runner stdout."""

    @pytest.mark.parametrize(
        ("output", "expected"),
        [
            ('{"poToken": "typed"}\n', "typed"),
            ('{"po_token": "snake"}', "snake"),
            ('"quoted"', "quoted"),
            ("  bare-token \n", "bare-token"),
            ("42", "42"),
            ('{"other": 1}', ""),
        ],
        ids=["camel", "snake", "json_string", "bare", "json_number", "no_token"],
    )
    def test_parse(self, output: str, expected: str) -> None:
        assert parse_runner_output(output) == expected


class TestVisitorData:
    """Tests for YouTubeSessionEngine.visitor_data."""

    @pytest.mark.asyncio
    async def test_scrapes_home_page_with_cookies(self) -> None:
        requests: list[httpx.Request] = []

        def _handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, text=HOME_PAGE)

        engine = _engine(handler=httpx.MockTransport(_handler))

        assert await engine.visitor_data("SID=abc") == "CgtWaXNpdG9y"
        assert str(requests[0].url).rstrip("/") == YTM_URL
        assert requests[0].headers["User-Agent"] == "test-agent"
        assert requests[0].headers["Cookie"] == "SID=abc"

    @pytest.mark.asyncio
    async def test_no_cookie_header_without_cookies(self) -> None:
        requests: list[httpx.Request] = []

        def _handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, text=HOME_PAGE)

        engine = _engine(handler=httpx.MockTransport(_handler))
        await engine.visitor_data()

        assert "cookie" not in requests[0].headers

    @pytest.mark.asyncio
    async def test_page_without_visitor_data(self) -> None:
        engine = _engine(
            handler=httpx.MockTransport(
                lambda request: httpx.Response(200, text="<html></html>")
            )
        )

        with pytest.raises(GenerationError, match="VISITOR_DATA not found"):
            await engine.visitor_data()

    @pytest.mark.asyncio
    async def test_error_status_raises(self) -> None:
        engine = _engine(
            handler=httpx.MockTransport(lambda request: httpx.Response(503))
        )

        with pytest.raises(httpx.HTTPStatusError):
            await engine.visitor_data()


class TestPoToken:
    """Tests for YouTubeSessionEngine.po_token via an external runner."""

    @pytest.mark.asyncio
    async def test_without_command_raises(self) -> None:
        with pytest.raises(GenerationError, match="No local PoToken runner"):
            await _engine().po_token("CgtWaXNpdG9y")

    @pytest.mark.asyncio
    async def test_json_output(self) -> None:
        engine = _engine(
            _runner(
                "import json, sys; "
                "print(json.dumps({'poToken': 'pot-' + sys.argv[1]}))"
            )
        )

        assert await engine.po_token("CgtWaXNpdG9y") == "pot-CgtWaXNpdG9y"

    @pytest.mark.asyncio
    async def test_bare_output(self) -> None:
        engine = _engine(_runner("import sys; print(sys.argv[1][::-1])"))

        assert await engine.po_token("abc") == "cba"

    @pytest.mark.asyncio
    async def test_non_zero_exit(self) -> None:
        engine = _engine(
            _runner("import sys; sys.stderr.write('no botguard'); sys.exit(3)")
        )

        with pytest.raises(GenerationError, match="exited with 3: no botguard"):
            await engine.po_token("CgtWaXNpdG9y")

    @pytest.mark.asyncio
    async def test_slow_runner_is_killed(self) -> None:
        engine = _engine(_runner("import time; time.sleep(30)"), timeout=0.5)

        with pytest.raises(GenerationError, match="timed out after 0.5s"):
            await engine.po_token("CgtWaXNpdG9y")
