"""
Time-ordered index of scheduled items.

Holds every task and subtask that currently has a scheduling window, sorted
by start time (ties keep insertion order), and answers overlap queries:

    overlap(A, B)  <=>  not (A.end <= B.start or A.start >= B.end)

Windows that only touch (A.end == B.start) do not overlap.
"""

from bisect import bisect_left, insort
from datetime import datetime
from itertools import count
from typing import Iterator

from tracker.exceptions import InvalidArgumentError
from tracker.logging_config import get_logger
from tracker.models import ScheduledItemBase

logger = get_logger(__name__)

# (start_time, insertion sequence)
_Key = tuple[datetime, int]


class IntervalIndex:
    """
    Sorted collection of windowed items.

    Does not check for duplicate ids on insert; the store removes an item
    before re-inserting it.
    """

    def __init__(self) -> None:
        self._keys: list[_Key] = []
        self._items: dict[_Key, ScheduledItemBase] = {}
        self._key_by_id: dict[int, _Key] = {}
        self._seq = count()

    def __len__(self) -> int:
        return len(self._keys)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._key_by_id

    def __iter__(self) -> Iterator[ScheduledItemBase]:
        return (self._items[key] for key in self._keys)

    def insert(self, item: ScheduledItemBase) -> None:
        if not item.has_window():
            raise InvalidArgumentError(
                f"Item {item.id} has no scheduling window", field="start_time"
            )
        key = (item.start_time, next(self._seq))
        insort(self._keys, key)
        self._items[key] = item
        self._key_by_id[item.id] = key
        logger.debug(f"Indexed item {item.id} at {item.start_time} (+{item.duration})")

    def remove(self, item: ScheduledItemBase) -> None:
        key = self._key_by_id.pop(item.id, None)
        if key is None:
            return
        pos = bisect_left(self._keys, key)
        del self._keys[pos]
        del self._items[key]
        logger.debug(f"Unindexed item {item.id}")

    def clear(self) -> None:
        self._keys.clear()
        self._items.clear()
        self._key_by_id.clear()

    def conflicts_with(self, candidate: ScheduledItemBase) -> ScheduledItemBase | None:
        """
        Return the first stored item whose window overlaps the candidate's.

        The candidate's own entry (same id) is ignored, so an item being
        updated never conflicts with its previous window. Items without a
        window never conflict.
        """
        if not candidate.has_window():
            return None
        start = candidate.start_time
        end = candidate.end_time

        # Only items starting strictly before candidate.end can overlap
        upper = bisect_left(self._keys, (end,))
        for key in self._keys[:upper]:
            existing = self._items[key]
            if existing.id == candidate.id:
                continue
            if not (end <= existing.start_time or start >= existing.end_time):
                return existing
        return None

    def overlaps(self, candidate: ScheduledItemBase) -> bool:
        return self.conflicts_with(candidate) is not None

    def ordered_snapshot(self) -> list[ScheduledItemBase]:
        """All indexed items, ascending by start time."""
        return [self._items[key] for key in self._keys]
