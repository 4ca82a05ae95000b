"""Tests for the with_fallback combinator."""

import asyncio

import pytest

from ytmproxy.utils.concurrency import with_fallback


class TestWithFallback:
    """Tests for with_fallback."""

    @pytest.mark.asyncio
    async def test_returns_primary_result(self) -> None:
        async def _primary() -> str:
            return "primary"

        async def _fallback(error: Exception) -> str:
            raise AssertionError("fallback must not run")

        assert await with_fallback(_primary, _fallback) == "primary"

    @pytest.mark.asyncio
    async def test_fallback_receives_error(self) -> None:
        received: list[Exception] = []

        async def _primary() -> str:
            raise ValueError("remote down")

        async def _fallback(error: Exception) -> str:
            received.append(error)
            return "fallback"

        assert await with_fallback(_primary, _fallback) == "fallback"
        assert isinstance(received[0], ValueError)

    @pytest.mark.asyncio
    async def test_fallback_error_propagates(self) -> None:
        async def _primary() -> str:
            raise ValueError("first")

        async def _fallback(error: Exception) -> str:
            raise RuntimeError("second")

        with pytest.raises(RuntimeError, match="second"):
            await with_fallback(_primary, _fallback)

    @pytest.mark.asyncio
    async def test_timeout_cancels_primary(self) -> None:
        cancelled = asyncio.Event()

        async def _primary() -> str:
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.set()
                raise
            return "late"

        async def _fallback(error: Exception) -> str:
            assert isinstance(error, TimeoutError)
            return "timed out"

        result = await with_fallback(_primary, _fallback, timeout=0.05)

        assert result == "timed out"
        assert cancelled.is_set()
