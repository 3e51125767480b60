from tracker.services.history import HistoryTracker
from tracker.services.interval_index import IntervalIndex
from tracker.services.store import IdAllocator, TaskStore

__all__ = [
    "HistoryTracker",
    "IdAllocator",
    "IntervalIndex",
    "TaskStore",
]
