"""Ordered list of channels awaiting processing.

The list is last-in-first-out: threads discovered while a text channel is
being processed are handled before channels that were queued earlier, which
makes the traversal depth-first.
"""

from __future__ import annotations

from typing import Iterable, Iterator

from discord_dump.scrape.enumerator import WorkItem


class WorkList:
    """LIFO stack of work items."""

    def __init__(self, items: Iterable[WorkItem] = ()) -> None:
        self._items: list[WorkItem] = list(items)

    def push(self, item: WorkItem) -> None:
        self._items.append(item)

    def extend(self, items: Iterable[WorkItem]) -> None:
        """Push items in order; the last one is popped first."""
        self._items.extend(items)

    def pop(self) -> WorkItem:
        """Remove and return the most recently pushed item."""
        if not self._items:
            raise IndexError("pop from empty work list")
        return self._items.pop()

    def pop_order(self) -> list[int]:
        """Channel IDs in the order they would be popped."""
        return [item.id for item in reversed(self._items)]

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __iter__(self) -> Iterator[WorkItem]:
        return reversed(self._items)
