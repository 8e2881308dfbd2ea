"""
Lazy, restartable iterator pipelines.

A ``LazyIterator`` wraps a *sequence source*: a zero-argument callable that
hands out a fresh iterator every time it is called. Chainable operators only
compose new sources; nothing is pulled until a terminal consumer
(``to_array``, ``reduce``, ``find``, ...) runs, and every terminal call walks
the pipeline from the start.
"""

import inspect
import math
from collections.abc import Iterable, Iterator
from contextlib import ExitStack, contextmanager
from itertools import dropwhile, islice, takewhile
from typing import Any, Callable, Generic, List, Optional, TypeVar

T = TypeVar("T")
U = TypeVar("U")

MISSING = object()


class LazyIteratorError(Exception):
    """Base class for lazy iterator errors."""
    pass


class InvalidArgumentError(LazyIteratorError, ValueError):
    """Raised when a source or operator is built with an invalid parameter."""
    pass


class EmptySourceError(LazyIteratorError, ValueError):
    """Raised when an operation that needs at least one element gets none."""
    pass


class SourceRestartError(LazyIteratorError, RuntimeError):
    """Raised when a one-shot source is asked for a second traversal."""
    pass


# --------- sources ----------

def one_shot(iterator, hint="wrap a container or a generator function to traverse it again"):
    """Hand out ``iterator`` once; a second call raises ``SourceRestartError``."""
    started = False

    def source():
        nonlocal started
        if started:
            raise SourceRestartError(
                f"{type(iterator).__name__} is a one-shot iterator and was already traversed; {hint}"
            )
        started = True
        return iterator

    return source


def as_source(source) -> Callable[[], Iterator]:
    """Normalise an iterable or a zero-argument producer into a sequence source.

    Re-iterable containers (lists, ranges, other lazy iterators) are restartable.
    Iterators that are their own ``iter()`` are one-shot and refuse a second
    traversal with ``SourceRestartError``.
    """
    if isinstance(source, Iterator):
        return one_shot(source)
    if isinstance(source, Iterable):
        return lambda: iter(source)
    if callable(source):
        return lambda: iter(source())
    raise TypeError(
        f"expected an iterable or a zero-argument producer, got {type(source).__name__}"
    )


@contextmanager
def open_traversal(source):
    """Start one traversal of ``source`` and close it when the caller is done."""
    iterator = source()
    try:
        yield iterator
    finally:
        # Only generators are closed; files and other user iterators stay open.
        if inspect.isgenerator(iterator):
            iterator.close()


def accepts_index(fn) -> bool:
    """True when ``fn`` takes ``*args`` or at least two required positional parameters."""
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError):
        return False
    parameters = signature.parameters.values()
    if any(p.kind == p.VAR_POSITIONAL for p in parameters):
        return True
    required = [
        p for p in parameters
        if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD) and p.default is p.empty
    ]
    return len(required) >= 2


def with_index(fn) -> Callable[[Any, int], Any]:
    """Adapt ``fn`` to be called as ``fn(value, index)``.

    Callbacks declaring a second positional parameter (or ``*args``) receive the element's
    position in the current traversal; single-argument callbacks get the value only.
    """
    if accepts_index(fn):
        return fn
    return lambda value, index: fn(value)


class LazyIterator(Generic[T]):
    """
    Immutable, chainable handle over a sequence source. Operators return new
    LazyIterator instances and never evaluate anything; terminal consumers
    run exactly one traversal each.
    """
    __slots__ = ("_source",)

    def __init__(self, source):
        self._source = as_source(source)

    def __iter__(self) -> Iterator[T]:
        return self._source()

    def __repr__(self):
        return f"<LazyIterator source={self._source!r}>"

    # --------- chainable operators (lazy) ----------
    def map(self, fn: Callable[..., U]) -> "LazyIterator[U]":
        call = with_index(fn)
        source = self._source

        def _map():
            with open_traversal(source) as iterator:
                for index, value in enumerate(iterator):
                    yield call(value, index)
        return LazyIterator(_map)

    def filter(self, predicate: Callable[..., bool]) -> "LazyIterator[T]":
        test = with_index(predicate)
        source = self._source

        def _filter():
            with open_traversal(source) as iterator:
                for index, value in enumerate(iterator):
                    if test(value, index):
                        yield value
        return LazyIterator(_filter)

    def take(self, n: int) -> "LazyIterator[T]":
        """Stop after ``n`` elements; element ``n + 1`` is never pulled.

        A non-finite ``n`` (``math.inf``) means no limit.
        """
        if isinstance(n, float) and math.isinf(n):
            return self if n > 0 else self.take(0)
        n = int(n)
        source = self._source

        def _take():
            if n <= 0:
                return
            with open_traversal(source) as iterator:
                for taken, value in enumerate(iterator, 1):
                    yield value
                    if taken >= n:
                        return
        return LazyIterator(_take)

    def skip(self, n: int) -> "LazyIterator[T]":
        if isinstance(n, float) and math.isinf(n):
            return self.take(0) if n > 0 else self
        n = max(int(n), 0)
        source = self._source

        def _skip():
            with open_traversal(source) as iterator:
                yield from islice(iterator, n, None)
        return LazyIterator(_skip)

    def take_while(self, predicate: Callable[[T], bool]) -> "LazyIterator[T]":
        source = self._source

        def _take_while():
            with open_traversal(source) as iterator:
                yield from takewhile(predicate, iterator)
        return LazyIterator(_take_while)

    def skip_while(self, predicate: Callable[[T], bool]) -> "LazyIterator[T]":
        source = self._source

        def _skip_while():
            with open_traversal(source) as iterator:
                yield from dropwhile(predicate, iterator)
        return LazyIterator(_skip_while)

    def flat_map(self, fn: Callable[[T], Iterable[U]]) -> "LazyIterator[U]":
        source = self._source

        def _flat_map():
            with open_traversal(source) as iterator:
                for value in iterator:
                    yield from fn(value)
        return LazyIterator(_flat_map)

    def flatten(self) -> "LazyIterator":
        """Concatenate inner iterables, exhausting each before moving on."""
        source = self._source

        def _flatten():
            with open_traversal(source) as iterator:
                for inner in iterator:
                    yield from inner
        return LazyIterator(_flatten)

    def chunk(self, size: int) -> "LazyIterator[List[T]]":
        """Group elements into lists of ``size``; a short final group is kept."""
        size = int(size)
        if size <= 0:
            raise InvalidArgumentError(f"chunk size must be greater than 0, got {size}")
        source = self._source

        def _chunk():
            bucket = []
            with open_traversal(source) as iterator:
                for value in iterator:
                    bucket.append(value)
                    if len(bucket) == size:
                        yield bucket
                        bucket = []
            if bucket:
                yield bucket
        return LazyIterator(_chunk)

    def enumerate(self, start: int = 0) -> "LazyIterator":
        source = self._source

        def _enumerate():
            with open_traversal(source) as iterator:
                yield from enumerate(iterator, start)
        return LazyIterator(_enumerate)

    def zip(self, *others) -> "LazyIterator[tuple]":
        """Pair up elements with ``others``; stops at the shortest input."""
        sources = [self._source] + [as_source(other) for other in others]

        def _zip():
            with ExitStack() as stack:
                iterators = [stack.enter_context(open_traversal(s)) for s in sources]
                yield from zip(*iterators)
        return LazyIterator(_zip)

    def concat(self, *others) -> "LazyIterator[T]":
        sources = [self._source] + [as_source(other) for other in others]

        def _concat():
            for source in sources:
                with open_traversal(source) as iterator:
                    yield from iterator
        return LazyIterator(_concat)

    def unique(self, key: Optional[Callable[[T], Any]] = None) -> "LazyIterator[T]":
        """Drop repeated elements (or repeated ``key(element)``); first one wins.

        Unhashable markers (lists, dicts) fall back to an equality scan.
        """
        source = self._source

        def _unique():
            seen = set()
            unhashable = []
            with open_traversal(source) as iterator:
                for value in iterator:
                    marker = key(value) if key is not None else value
                    try:
                        if marker in seen:
                            continue
                        seen.add(marker)
                    except TypeError:
                        if marker in unhashable:
                            continue
                        unhashable.append(marker)
                    yield value
        return LazyIterator(_unique)

    def page(self, page_number: int, page_size: int) -> "LazyIterator[T]":
        """Get a specific page of results (1-indexed)"""
        if page_number < 1:
            raise InvalidArgumentError("Page number must be >= 1")
        if page_size <= 0:
            raise InvalidArgumentError("Page size must be > 0")
        return self.skip((page_number - 1) * page_size).take(page_size)

    # --------- terminal consumers (force evaluation) ----------
    def to_array(self) -> List[T]:
        """Collect every element. Never returns on an unbounded pipeline."""
        with open_traversal(self._source) as iterator:
            return list(iterator)

    to_list = to_array

    def reduce(self, fn: Callable[[U, T], U], initial=MISSING) -> U:
        """Fold left to right; without ``initial`` the first element seeds the fold."""
        with open_traversal(self._source) as iterator:
            if initial is MISSING:
                try:
                    accumulator = next(iterator)
                except StopIteration:
                    raise EmptySourceError("reduce() of empty sequence with no initial value") from None
            else:
                accumulator = initial
            for value in iterator:
                accumulator = fn(accumulator, value)
        return accumulator

    def for_each(self, fn: Callable[..., Any]) -> None:
        call = with_index(fn)
        with open_traversal(self._source) as iterator:
            for index, value in enumerate(iterator):
                call(value, index)

    def find(self, predicate: Callable[[T], bool], default=None):
        with open_traversal(self._source) as iterator:
            for value in iterator:
                if predicate(value):
                    return value
        return default

    def some(self, predicate: Callable[[T], bool]) -> bool:
        with open_traversal(self._source) as iterator:
            return any(predicate(value) for value in iterator)

    def every(self, predicate: Callable[[T], bool]) -> bool:
        with open_traversal(self._source) as iterator:
            return all(predicate(value) for value in iterator)

    def first(self, default=None):
        """Pull at most one element; safe on infinite sources."""
        with open_traversal(self._source) as iterator:
            return next(iterator, default)

    def last(self, default=None):
        last_item = default
        with open_traversal(self._source) as iterator:
            for last_item in iterator:
                pass
        return last_item

    def count(self) -> int:
        with open_traversal(self._source) as iterator:
            return sum(1 for _ in iterator)

    def sum(self, start=0):
        total = start
        with open_traversal(self._source) as iterator:
            for value in iterator:
                total += value
        return total

    def collect(self, collector: Callable[["LazyIterator[T]"], U]) -> U:
        return collector(self)


def create_iterator(source) -> LazyIterator:
    """Wrap a container or a restartable producer in a LazyIterator.

    >>> create_iterator([1, 2, 3, 4, 5]).map(lambda x: x * 2).filter(lambda x: x > 4).take(2).to_array()
    [6, 8]
    """
    return LazyIterator(source)
