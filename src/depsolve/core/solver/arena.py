"""Append-only arena addressing its items by integer ids.

Incompatibilities refer to their causes by id rather than by reference, so
the causal graph is a plain table and never forms reference cycles.
"""

from __future__ import annotations

from typing import Generic, Iterable, Iterator, NewType, TypeVar

T = TypeVar("T")

IncompatId = NewType("IncompatId", int)


class Arena(Generic[T]):
    """Owns every item allocated during one solve."""

    def __init__(self) -> None:
        self._items: list[T] = []

    def alloc(self, item: T) -> IncompatId:
        self._items.append(item)
        return IncompatId(len(self._items) - 1)

    def alloc_iter(self, items: Iterable[T]) -> range:
        """Allocate several items, returning the contiguous range of their ids."""
        start = len(self._items)
        self._items.extend(items)
        return range(start, len(self._items))

    def __getitem__(self, item_id: int) -> T:
        return self._items[item_id]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)
