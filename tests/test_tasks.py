import asyncio

import pytest

from core.tasks import gather_or_cancel


class TestGatherOrCancel:
    """
    Tests for fail-fast gathering.
    """

    @pytest.mark.asyncio
    async def test_results_keep_argument_order(self):
        async def value(v, delay):
            await asyncio.sleep(delay)
            return v

        assert await gather_or_cancel(value(1, 0.02), value(2, 0), value(3, 0.01)) == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_failure_cancels_siblings(self):
        finished = []

        async def slow():
            await asyncio.sleep(0.05)
            finished.append("slow")

        async def broken():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            await gather_or_cancel(slow(), broken(), slow())
        await asyncio.sleep(0.1)

        assert finished == []
