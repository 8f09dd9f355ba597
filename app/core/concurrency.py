import asyncio
from collections.abc import Awaitable
from typing import Any


async def gather_fail_fast(*aws: Awaitable[Any]) -> list[Any]:
    """Run awaitables concurrently and return their results in order.

    On the first failure the remaining tasks are cancelled and that exception
    is re-raised as is.
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    if not tasks:
        return []
    try:
        await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        for task in tasks:
            if task.done() and not task.cancelled() and task.exception() is not None:
                raise task.exception()
        return [task.result() for task in tasks]
    finally:
        for task in tasks:
            if not task.done():
                task.cancel()
        # Let cancelled tasks unwind before returning to the caller
        await asyncio.gather(*tasks, return_exceptions=True)
