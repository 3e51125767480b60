"""
Epic aggregation: derive an epic's status and time window from its subtasks.

Status:
- No subtasks, or all NEW      -> NEW
- All DONE                     -> DONE
- Anything else                -> IN_PROGRESS

Window (over subtasks that have one):
- start    = earliest start
- duration = sum of durations (total scheduled work)
- end      = latest end (wall-clock span)

With gaps between subtasks, duration is shorter than end - start.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable

from tracker.models import Epic, Subtask, TaskStatus


@dataclass(frozen=True)
class EpicWindow:
    """Derived scheduling window of an epic."""
    start_time: datetime | None = None
    duration: timedelta | None = None
    end_time: datetime | None = None


def derive_status(statuses: Iterable[TaskStatus]) -> TaskStatus:
    seen = set(statuses)
    if not seen or seen == {TaskStatus.NEW}:
        return TaskStatus.NEW
    if seen == {TaskStatus.DONE}:
        return TaskStatus.DONE
    return TaskStatus.IN_PROGRESS


def derive_window(subtasks: Iterable[Subtask]) -> EpicWindow:
    windowed = [sub for sub in subtasks if sub.has_window()]
    if not windowed:
        return EpicWindow()

    return EpicWindow(
        start_time=min(sub.start_time for sub in windowed),
        duration=sum((sub.duration for sub in windowed), timedelta()),
        end_time=max(sub.end_time for sub in windowed),
    )


def aggregate(epic: Epic, subtasks: Iterable[Subtask]) -> Epic:
    """
    Return a copy of the epic with status, window and subtask_ids recomputed.

    Args:
        epic: The epic to recompute (left untouched)
        subtasks: Every current subtask of the epic

    Returns:
        New Epic instance; calling again with the same subtasks yields an
        equal result field for field
    """
    subtasks = list(subtasks)
    window = derive_window(subtasks)
    return epic.model_copy(update={
        "status": derive_status(sub.status for sub in subtasks),
        "start_time": window.start_time,
        "duration": window.duration,
        "end_time": window.end_time,
        "subtask_ids": sorted(sub.id for sub in subtasks),
    })
