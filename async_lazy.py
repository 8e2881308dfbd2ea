"""
Asynchronous counterpart of LazyIterator.

Pulling from an ``AsyncLazyIterator`` may suspend while the underlying source
awaits something external. Pulls are strictly serialised: the next one is
only issued after the previous one has resolved, and once a consumer stops
early no further pulls are issued and the source is closed.
"""

import inspect
import math
from collections.abc import AsyncIterable, AsyncIterator, Iterable
from contextlib import asynccontextmanager
from typing import Any, Awaitable, Callable, Generic, List, TypeVar, Union

from lazy import MISSING, EmptySourceError, as_source, one_shot, open_traversal, with_index

T = TypeVar("T")
U = TypeVar("U")


async def _resolve(result):
    if inspect.isawaitable(result):
        return await result
    return result


def _lift(source):
    sync_source = as_source(source)

    async def _lifted():
        with open_traversal(sync_source) as iterator:
            for value in iterator:
                yield value
    return _lifted


def as_async_source(source) -> Callable[[], AsyncIterator]:
    """Normalise ``source`` into a zero-argument callable returning a fresh async iterator.

    Accepts async iterables, async generator functions (or any zero-argument
    callable returning an async iterable) and plain sync iterables.
    """
    if isinstance(source, AsyncIterator):
        return one_shot(source, hint="pass an async generator function to traverse it again")
    if isinstance(source, AsyncIterable):
        return lambda: source.__aiter__()
    if isinstance(source, Iterable):
        return _lift(source)
    if callable(source):
        return lambda: source().__aiter__()
    raise TypeError(
        f"expected an async iterable or an async producer, got {type(source).__name__}"
    )


@asynccontextmanager
async def open_async_traversal(source):
    iterator = source()
    try:
        yield iterator
    finally:
        if inspect.isasyncgen(iterator):
            await iterator.aclose()


class AsyncLazyIterator(Generic[T]):
    """
    Chainable lazy pipeline over an asynchronous source. Callbacks passed to
    the operators may be plain functions or coroutine functions.
    """
    __slots__ = ("_source",)

    def __init__(self, source):
        self._source = as_async_source(source)

    def __aiter__(self) -> AsyncIterator[T]:
        return self._source()

    # --------- chainable operators (lazy) ----------
    def map(self, fn: Callable[..., Union[U, Awaitable[U]]]) -> "AsyncLazyIterator[U]":
        call = with_index(fn)
        source = self._source

        async def _map():
            index = 0
            async with open_async_traversal(source) as iterator:
                async for value in iterator:
                    yield await _resolve(call(value, index))
                    index += 1
        return AsyncLazyIterator(_map)

    def filter(self, predicate: Callable[..., Union[bool, Awaitable[bool]]]) -> "AsyncLazyIterator[T]":
        test = with_index(predicate)
        source = self._source

        async def _filter():
            index = 0
            async with open_async_traversal(source) as iterator:
                async for value in iterator:
                    if await _resolve(test(value, index)):
                        yield value
                    index += 1
        return AsyncLazyIterator(_filter)

    def take(self, n: int) -> "AsyncLazyIterator[T]":
        if isinstance(n, float) and math.isinf(n):
            return self if n > 0 else self.take(0)
        n = int(n)
        source = self._source

        async def _take():
            if n <= 0:
                return
            taken = 0
            async with open_async_traversal(source) as iterator:
                async for value in iterator:
                    yield value
                    taken += 1
                    if taken >= n:
                        return
        return AsyncLazyIterator(_take)

    def skip(self, n: int) -> "AsyncLazyIterator[T]":
        if isinstance(n, float) and math.isinf(n):
            return self.take(0) if n > 0 else self
        n = max(int(n), 0)
        source = self._source

        async def _skip():
            skipped = 0
            async with open_async_traversal(source) as iterator:
                async for value in iterator:
                    if skipped < n:
                        skipped += 1
                        continue
                    yield value
        return AsyncLazyIterator(_skip)

    # --------- terminal consumers (force evaluation) ----------
    async def to_array(self) -> List[T]:
        async with open_async_traversal(self._source) as iterator:
            return [value async for value in iterator]

    to_list = to_array

    async def reduce(self, fn: Callable[[Any, T], Any], initial=MISSING):
        started = initial is not MISSING
        accumulator = initial
        async with open_async_traversal(self._source) as iterator:
            async for value in iterator:
                if not started:
                    accumulator, started = value, True
                    continue
                accumulator = await _resolve(fn(accumulator, value))
        if not started:
            raise EmptySourceError("reduce() of empty sequence with no initial value")
        return accumulator

    async def for_each(self, fn: Callable[..., Any]) -> None:
        call = with_index(fn)
        index = 0
        async with open_async_traversal(self._source) as iterator:
            async for value in iterator:
                await _resolve(call(value, index))
                index += 1

    async def find(self, predicate: Callable[[T], Any], default=None):
        async with open_async_traversal(self._source) as iterator:
            async for value in iterator:
                if await _resolve(predicate(value)):
                    return value
        return default

    async def some(self, predicate: Callable[[T], Any]) -> bool:
        return await self.find(predicate, MISSING) is not MISSING

    async def every(self, predicate: Callable[[T], Any]) -> bool:
        async with open_async_traversal(self._source) as iterator:
            async for value in iterator:
                if not await _resolve(predicate(value)):
                    return False
        return True

    async def first(self, default=None):
        async with open_async_traversal(self._source) as iterator:
            async for value in iterator:
                return value
        return default

    async def last(self, default=None):
        last_item = default
        async with open_async_traversal(self._source) as iterator:
            async for last_item in iterator:
                pass
        return last_item

    async def count(self) -> int:
        total = 0
        async with open_async_traversal(self._source) as iterator:
            async for _ in iterator:
                total += 1
        return total


def from_async(source) -> AsyncLazyIterator:
    """Build an AsyncLazyIterator from an async iterable or async generator function.

    Example::

        async def numbers():
            for n in range(3):
                await asyncio.sleep(0)
                yield n

        await from_async(numbers).map(lambda n: n * 10).to_array()  # [0, 10, 20]
    """
    return AsyncLazyIterator(source)
