import asyncio

import pytest

from app.core.concurrency import gather_fail_fast


@pytest.mark.asyncio
async def test_results_keep_argument_order():
    async def value(v, delay):
        await asyncio.sleep(delay)
        return v

    assert await gather_fail_fast(value("a", 0.02), value("b", 0.0)) == ["a", "b"]


@pytest.mark.asyncio
async def test_first_failure_cancels_the_rest():
    cancelled = asyncio.Event()

    async def slow():
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            cancelled.set()
            raise

    async def boom():
        raise ValueError("boom")

    with pytest.raises(ValueError, match="boom"):
        await gather_fail_fast(slow(), boom())
    assert cancelled.is_set()


@pytest.mark.asyncio
async def test_no_awaitables():
    assert await gather_fail_fast() == []
