"""
Free-standing constructors that build a LazyIterator directly from arguments.

Some of these are infinite by design (``repeat`` without a count, ``cycle``,
``lazy_range`` up to ``math.inf``); bound them with ``take``, ``find``,
``some`` or ``first`` before consuming.
"""

from collections.abc import Sized
from typing import Any, Callable, Iterable, Optional, TypeVar

from lazy import EmptySourceError, InvalidArgumentError, LazyIterator, as_source, open_traversal

T = TypeVar("T")


def lazy_range(start, end, step=1) -> LazyIterator:
    """
    Arithmetic progression from ``start`` towards ``end`` (exclusive).

    ``end`` may be ``math.inf`` (or ``-math.inf`` with a negative step) for an
    unbounded progression. A zero step is rejected immediately.

    >>> lazy_range(10, 0, -3).to_array()
    [10, 7, 4, 1]
    """
    if step == 0:
        raise InvalidArgumentError("range() step must not be zero")

    def _range():
        position = 0
        value = start
        if step > 0:
            while value < end:
                yield value
                position += 1
                value = start + position * step
        else:
            while value > end:
                yield value
                position += 1
                value = start + position * step
    return LazyIterator(_range)


def repeat(value: T, n: Optional[int] = None) -> LazyIterator:
    """Yield ``value`` ``n`` times, or forever when ``n`` is omitted."""
    count = None if n is None else int(n)

    def _repeat():
        if count is None:
            while True:
                yield value
        else:
            for _ in range(count):
                yield value
    return LazyIterator(_repeat)


def cycle(values: Iterable[T]) -> LazyIterator:
    """
    Replay ``values`` indefinitely in their original order.

    The first pass of every traversal pulls from ``values`` and remembers what
    it saw; later passes replay that. An empty container is rejected at
    construction; a lazy source that turns out empty ends the traversal at
    the first pull instead of spinning.
    """
    if isinstance(values, Sized) and len(values) == 0:
        raise EmptySourceError("cycle() needs at least one value")
    source = as_source(values)

    def _cycle():
        cached = []
        with open_traversal(source) as iterator:
            for value in iterator:
                cached.append(value)
                yield value
        if not cached:
            return
        while True:
            yield from cached
    return LazyIterator(_cycle)


def lazy_enumerate(source: Iterable[T], start: int = 0) -> LazyIterator:
    """``(index, value)`` pairs; index restarts on every traversal."""
    return LazyIterator(source).enumerate(start)


def lazy_zip(first: Iterable, second: Iterable, *others: Iterable) -> LazyIterator:
    """Tuples of corresponding elements, stopping at the shortest input."""
    return LazyIterator(first).zip(second, *others)


def lazy_chunk(source: Iterable[T], size: int) -> LazyIterator:
    return LazyIterator(source).chunk(size)


def lazy_flatten(source: Iterable[Iterable[T]]) -> LazyIterator:
    return LazyIterator(source).flatten()


def lazy_map(source: Iterable[T], fn: Callable[..., Any]) -> LazyIterator:
    return LazyIterator(source).map(fn)


def lazy_filter(source: Iterable[T], predicate: Callable[..., bool]) -> LazyIterator:
    return LazyIterator(source).filter(predicate)


def lazy_take(source: Iterable[T], n: int) -> LazyIterator:
    return LazyIterator(source).take(n)


def lazy_skip(source: Iterable[T], n: int) -> LazyIterator:
    return LazyIterator(source).skip(n)
