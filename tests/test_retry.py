"""Tests for the async retry decorator."""

from unittest.mock import AsyncMock, patch

import pytest

from tokscrape.utils.retry import RetryPolicy, retry_async


def test_backoff_is_capped() -> None:
    policy = RetryPolicy(max_retries=4, delay=1.0, backoff_factor=3.0, max_delay=5.0)
    assert list(policy.backoff()) == [1.0, 3.0, 5.0, 5.0]


@pytest.mark.asyncio
async def test_retries_listed_errors_then_succeeds() -> None:
    calls = []

    @retry_async(max_retries=2, delay=0.5, exceptions=(ConnectionError,))
    async def flaky() -> str:
        calls.append(1)
        if len(calls) < 3:
            raise ConnectionError("reset")
        return "ok"

    with patch("tokscrape.utils.retry.asyncio.sleep", new=AsyncMock()) as sleep:
        assert await flaky() == "ok"

    assert len(calls) == 3
    assert [c.args[0] for c in sleep.await_args_list] == [0.5, 1.0]


@pytest.mark.asyncio
async def test_gives_up_and_reraises() -> None:
    @retry_async(max_retries=1, exceptions=(ConnectionError,))
    async def broken() -> None:
        raise ConnectionError("down")

    with patch("tokscrape.utils.retry.asyncio.sleep", new=AsyncMock()):
        with pytest.raises(ConnectionError):
            await broken()


@pytest.mark.asyncio
async def test_other_errors_are_not_retried() -> None:
    calls = []

    @retry_async(max_retries=3, exceptions=(ConnectionError,))
    async def wrong() -> None:
        calls.append(1)
        raise ValueError("bad input")

    with pytest.raises(ValueError):
        await wrong()
    assert len(calls) == 1
