"""Eager, single-pass helpers over plain iterables and lists."""

from typing import Any, Callable, Iterable, List, Optional, Sequence, TypeVar

from lazy import InvalidArgumentError, with_index

T = TypeVar("T")
U = TypeVar("U")


def to_array(source: Iterable[T]) -> List[T]:
    return list(source)


def iter_reduce(source: Iterable[T], fn: Callable[[U, T], U], initial: U) -> U:
    accumulator = initial
    for value in source:
        accumulator = fn(accumulator, value)
    return accumulator


def iter_for_each(source: Iterable[T], fn: Callable[..., Any]) -> None:
    call = with_index(fn)
    for index, value in enumerate(source):
        call(value, index)


def iter_find(source: Iterable[T], predicate: Callable[[T], bool]) -> Optional[T]:
    for value in source:
        if predicate(value):
            return value
    return None


def iter_some(source: Iterable[T], predicate: Callable[[T], bool]) -> bool:
    return any(predicate(value) for value in source)


def iter_every(source: Iterable[T], predicate: Callable[[T], bool]) -> bool:
    return all(predicate(value) for value in source)


def chunk(items: Sequence[T], size: int) -> List[List[T]]:
    """
    Split a sequence into lists of ``size``; the last one may be shorter.

    >>> chunk([1, 2, 3, 4, 5], 2)
    [[1, 2], [3, 4], [5]]
    """
    if size <= 0:
        raise InvalidArgumentError("Chunk size must be greater than 0")
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


def flatten(items: Iterable[Any]) -> List[Any]:
    """Flatten one level: list and tuple items are spliced in, anything else is kept."""
    result = []
    for item in items:
        if isinstance(item, (list, tuple)):
            result.extend(item)
        else:
            result.append(item)
    return result
