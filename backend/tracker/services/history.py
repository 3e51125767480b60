"""
Recently viewed history.

A doubly linked list of nodes plus an id -> node dict gives O(1) record and
forget. Each id appears at most once; recording an id again moves it to the
"just accessed" end (the tail). Snapshots run from the tail, so the most
recently accessed id comes first.
"""

from dataclasses import dataclass
from typing import Optional

from tracker.logging_config import get_logger
from tracker.models import WorkItemBase

logger = get_logger(__name__)


@dataclass(eq=False)
class _Node:
    item_id: int
    prev: Optional["_Node"] = None
    next: Optional["_Node"] = None


class HistoryTracker:
    """Duplicate-free access history, newest first."""

    def __init__(self) -> None:
        self._head: _Node | None = None
        self._tail: _Node | None = None
        self._nodes: dict[int, _Node] = {}

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._nodes

    def record(self, item: WorkItemBase) -> None:
        node = self._nodes.get(item.id)
        if node is not None:
            self._unlink(node)
        self._link_last(item.id)
        logger.debug(f"History recorded id={item.id} size={len(self._nodes)}")

    def forget(self, item_id: int) -> None:
        node = self._nodes.get(item_id)
        if node is None:
            return
        self._unlink(node)
        logger.debug(f"History forgot id={item_id}")

    def clear(self) -> None:
        self._head = self._tail = None
        self._nodes.clear()

    def snapshot(self) -> list[int]:
        """Ids from most recent to least recent."""
        ids = []
        node = self._tail
        while node is not None:
            ids.append(node.item_id)
            node = node.prev
        return ids

    def _link_last(self, item_id: int) -> None:
        node = _Node(item_id, prev=self._tail)
        if self._tail is None:
            self._head = node
        else:
            self._tail.next = node
        self._tail = node
        self._nodes[item_id] = node

    def _unlink(self, node: _Node) -> None:
        if node.prev is None:
            self._head = node.next
        else:
            node.prev.next = node.next

        if node.next is None:
            self._tail = node.prev
        else:
            node.next.prev = node.prev

        node.prev = node.next = None
        del self._nodes[node.item_id]
