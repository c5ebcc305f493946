import asyncio
from typing import Any, Awaitable


async def gather_or_cancel(*aws: Awaitable[Any]) -> list[Any]:
    """
    Run awaitables concurrently; if any fails, cancel the rest.

    Unlike a bare ``asyncio.gather``, no sibling keeps running once the
    first exception (or a cancellation of the caller) propagates.

    Parameters
    ----------
    *aws : Awaitable[Any]
        Coroutines or futures to run

    Returns
    -------
    list[Any]
        Results in argument order

    Raises
    ------
    Exception
        The first exception raised by any awaitable
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
