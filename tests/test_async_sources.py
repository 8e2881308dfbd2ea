"""
Test suite for asynchronous sources.
This file tests from_async(): lazy pulls, serialised awaits and early stop.
"""

import asyncio
import math

import pytest
from async_lazy import AsyncLazyIterator, from_async
from lazy import EmptySourceError, SourceRestartError
from sources import lazy_range


async def numbers(count=5, delay=0.001):
    for n in range(count):
        await asyncio.sleep(delay)
        yield n


class TestAsyncLazyIterator:
    """Test the async lazy pipeline"""

    @pytest.mark.asyncio
    async def test_basic_pipeline(self):
        """Test map/filter/take over an async generator function"""
        result = await (
            from_async(numbers)
            .filter(lambda n: n % 2 == 0)
            .map(lambda n: n * 10)
            .take(2)
            .to_array()
        )
        assert result == [0, 20], f"Unexpected result: {result}"

    @pytest.mark.asyncio
    async def test_construction_is_lazy(self):
        """Test that nothing is pulled until a terminal coroutine is awaited"""
        pulls = []

        async def source():
            for n in range(3):
                pulls.append(n)
                yield n

        pipeline = from_async(source).map(lambda n: n + 1)
        assert pulls == [], "No pull should happen before a terminal consumer"
        assert await pipeline.to_array() == [1, 2, 3]
        assert pulls == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_restartable_with_generator_function(self):
        pipeline = from_async(numbers).skip(3)
        assert await pipeline.to_array() == [3, 4]
        assert await pipeline.to_array() == [3, 4]

    @pytest.mark.asyncio
    async def test_one_shot_async_iterator_refuses_restart(self):
        pipeline = from_async(numbers(3))
        assert await pipeline.count() == 3
        with pytest.raises(SourceRestartError, match="async generator function"):
            await pipeline.count()

    @pytest.mark.asyncio
    async def test_async_callbacks_are_awaited(self):
        """Test that coroutine callbacks are awaited in order"""
        async def slow_double(n):
            await asyncio.sleep(0.001 * (5 - n))
            return n * 2

        async def is_small(n):
            return n < 6

        result = await from_async(numbers).map(slow_double).filter(is_small).to_array()
        assert result == [0, 2, 4], f"Order should follow the source, got {result}"

    @pytest.mark.asyncio
    async def test_pulls_are_serialised(self):
        """Test that a second pull is never issued before the first resolves"""
        in_flight = 0
        max_in_flight = 0

        class SlowSource:
            def __init__(self):
                self.n = 0

            def __aiter__(self):
                return self

            async def __anext__(self):
                nonlocal in_flight, max_in_flight
                in_flight += 1
                max_in_flight = max(max_in_flight, in_flight)
                await asyncio.sleep(0.001)
                in_flight -= 1
                if self.n >= 4:
                    raise StopAsyncIteration
                self.n += 1
                return self.n

        result = await from_async(SlowSource).map(lambda n: n).to_array()
        assert result == [1, 2, 3, 4]
        assert max_in_flight == 1, f"Pulls overlapped: {max_in_flight} in flight"

    @pytest.mark.asyncio
    async def test_early_stop_issues_no_further_pulls(self):
        """Test that take()/find() stop pulling and close the source"""
        pulls = []
        closed = []

        async def endless():
            try:
                n = 0
                while True:
                    pulls.append(n)
                    await asyncio.sleep(0)
                    yield n
                    n += 1
            finally:
                closed.append(True)

        assert await from_async(endless).take(3).to_array() == [0, 1, 2]
        assert pulls == [0, 1, 2], f"No pull after the third element, got {pulls}"
        assert closed == [True]

        pulls.clear()
        assert await from_async(endless).find(lambda n: n == 4) == 4
        assert pulls == [0, 1, 2, 3, 4]

    @pytest.mark.asyncio
    async def test_terminal_consumers(self):
        pipeline = from_async(numbers)

        assert await pipeline.reduce(lambda acc, n: acc + n, 0) == 10
        assert await pipeline.reduce(lambda acc, n: acc * 10 + n) == 1234
        assert await pipeline.first() == 0
        assert await pipeline.last() == 4
        assert await pipeline.count() == 5
        assert await pipeline.some(lambda n: n > 3) is True
        assert await pipeline.every(lambda n: n < 3) is False
        assert await pipeline.find(lambda n: n > 10, default="none") == "none"

    @pytest.mark.asyncio
    async def test_empty_source(self):
        empty = from_async([])

        assert await empty.to_array() == []
        assert await empty.first() is None
        assert await empty.every(lambda n: False) is True
        with pytest.raises(EmptySourceError):
            await empty.reduce(lambda acc, n: acc + n)

    @pytest.mark.asyncio
    async def test_for_each_with_index(self):
        seen = []

        async def record(value, index):
            seen.append((index, value))

        await from_async(["a", "b"]).for_each(record)
        assert seen == [(0, "a"), (1, "b")]

    @pytest.mark.asyncio
    async def test_lifts_sync_lazy_iterator(self):
        """Test that a synchronous LazyIterator can feed an async pipeline"""
        result = await from_async(lazy_range(0, float("inf"))).skip(2).take(3).to_array()
        assert result == [2, 3, 4]

    @pytest.mark.asyncio
    async def test_error_propagates(self):
        seen = []

        def explode_on_two(n):
            if n == 2:
                raise KeyError("two")
            return n

        with pytest.raises(KeyError, match="two"):
            await from_async(numbers).map(explode_on_two).for_each(seen.append)
        assert seen == [0, 1]

    @pytest.mark.asyncio
    async def test_infinite_take_and_skip(self):
        assert await from_async(numbers(3)).take(math.inf).to_array() == [0, 1, 2]
        assert await from_async(numbers).skip(math.inf).to_array() == []

    @pytest.mark.asyncio
    async def test_async_for(self):
        collected = [n async for n in from_async(numbers).take(2)]
        assert collected == [0, 1]

    def test_invalid_source(self):
        with pytest.raises(TypeError):
            AsyncLazyIterator(3.5)
