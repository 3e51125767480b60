"""
Task store: the single entry point for creating, reading, updating and
deleting tasks, epics and subtasks.

Owns:
- one dict per entity kind (tasks, epics, subtasks), all keyed by id
- an IdAllocator; ids are shared across the three kinds and never reused
- an IntervalIndex of every windowed task/subtask
- a HistoryTracker of items fetched by id

Every public method runs under one re-entrant lock, so the overlap check and
the following insert cannot interleave with another caller. Accessors hand
out copies; mutating a returned object never changes the store.
"""

import threading
from datetime import timezone
from functools import wraps
from typing import Iterable, Optional

from tracker.exceptions import InvalidArgumentError, NotFoundError, ScheduleConflictError
from tracker.logging_config import get_logger
from tracker.models import Epic, Subtask, Task, TaskKind, WorkItemBase
from tracker.services.aggregator import aggregate
from tracker.services.history import HistoryTracker
from tracker.services.interval_index import IntervalIndex

logger = get_logger(__name__)


class IdAllocator:
    """Monotonic id counter owned by one store."""

    def __init__(self, start: int = 1):
        if start < 1:
            raise InvalidArgumentError("Ids start at 1", field="start")
        self._next = start

    @property
    def next_id(self) -> int:
        return self._next

    def allocate(self) -> int:
        new_id = self._next
        self._next += 1
        return new_id

    def observe(self, used_id: int) -> None:
        """Make sure ids handed out later are greater than used_id."""
        if used_id >= self._next:
            self._next = used_id + 1


def synchronized(method):
    @wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            return method(self, *args, **kwargs)
    return wrapper


def _copy(item):
    return item.model_copy(deep=True)


class TaskStore:
    """In-memory task store."""

    def __init__(
        self,
        id_allocator: Optional[IdAllocator] = None,
        index: Optional[IntervalIndex] = None,
        history: Optional[HistoryTracker] = None,
    ):
        self._tasks: dict[int, Task] = {}
        self._epics: dict[int, Epic] = {}
        self._subtasks: dict[int, Subtask] = {}
        self._ids = id_allocator or IdAllocator()
        self._index = index or IntervalIndex()
        self._history = history or HistoryTracker()
        self._lock = threading.RLock()

    # =========================================================================
    # Tasks
    # =========================================================================

    @synchronized
    def add_new_task(self, task: Task) -> int:
        """
        Store a new task and return its id.

        Raises:
            InvalidArgumentError: task is None or its window is malformed
            ScheduleConflictError: its window overlaps a scheduled item
        """
        _require(task, Task, "task")
        _validate_window(task)

        new_task = _copy(task)
        # a caller-supplied id must not exempt the window from the overlap check
        new_task.id = 0
        _normalize_window(new_task)
        self._check_storable(new_task)
        self._check_schedule(new_task)

        new_task.id = self._ids.allocate()
        self._tasks[new_task.id] = new_task
        if new_task.has_window():
            self._index.insert(new_task)

        logger.info(f"Created task: id={new_task.id} title='{new_task.title}'")
        self._changed()
        return new_task.id

    @synchronized
    def update_task(self, task: Task) -> Task:
        """Replace a stored task with the given one (matched by id)."""
        _require(task, Task, "task")
        _check_id(task.id, "Task")
        if task.id not in self._tasks:
            raise NotFoundError("Task", task.id)
        _validate_window(task)

        updated = _copy(task)
        _normalize_window(updated)
        self._check_storable(updated)
        self._check_schedule(updated)

        self._index.remove(self._tasks[task.id])
        self._tasks[task.id] = updated
        if updated.has_window():
            self._index.insert(updated)

        logger.info(f"Updated task {task.id}: status={updated.status.value}")
        self._changed()
        return _copy(updated)

    @synchronized
    def get_task_by_id(self, task_id: int) -> Task:
        _check_id(task_id, "Task")
        task = self._tasks.get(task_id)
        if task is None:
            raise NotFoundError("Task", task_id)
        self._history.record(task)
        return _copy(task)

    @synchronized
    def get_all_tasks(self) -> list[Task]:
        return _sorted_copies(self._tasks.values())

    @synchronized
    def delete_task_by_id(self, task_id: int) -> None:
        _check_id(task_id, "Task")
        task = self._tasks.pop(task_id, None)
        if task is None:
            return
        self._index.remove(task)
        self._history.forget(task_id)

        logger.info(f"Deleted task {task_id}: '{task.title}'")
        self._changed()

    @synchronized
    def delete_all_tasks(self) -> None:
        if not self._tasks:
            return
        for task in self._tasks.values():
            self._index.remove(task)
            self._history.forget(task.id)
        count = len(self._tasks)
        self._tasks.clear()

        logger.info(f"Deleted all tasks ({count})")
        self._changed()

    # =========================================================================
    # Epics
    # =========================================================================

    @synchronized
    def add_new_epic(self, epic: Epic) -> int:
        """
        Store a new epic and return its id.

        Only title and description are taken from the argument; status,
        window and subtask list start empty and are derived afterwards.
        """
        _require(epic, Epic, "epic")

        new_epic = aggregate(
            Epic(id=self._ids.allocate(), title=epic.title, description=epic.description),
            [],
        )
        self._epics[new_epic.id] = new_epic

        logger.info(f"Created epic: id={new_epic.id} title='{new_epic.title}'")
        self._changed()
        return new_epic.id

    @synchronized
    def update_epic(self, epic: Epic) -> Epic:
        """
        Update an epic's title and description.

        Status, window and subtasks are carried over from the stored epic and
        re-derived; whatever the caller put in them is ignored.
        """
        _require(epic, Epic, "epic")
        _check_id(epic.id, "Epic")
        current = self._epics.get(epic.id)
        if current is None:
            raise NotFoundError("Epic", epic.id)

        self._epics[epic.id] = current.model_copy(
            update={"title": epic.title, "description": epic.description}
        )
        updated = self._reaggregate(epic.id)

        logger.info(f"Updated epic {epic.id}: title='{updated.title}'")
        self._changed()
        return _copy(updated)

    @synchronized
    def get_epic_by_id(self, epic_id: int) -> Epic:
        _check_id(epic_id, "Epic")
        epic = self._epics.get(epic_id)
        if epic is None:
            raise NotFoundError("Epic", epic_id)
        self._history.record(epic)
        return _copy(epic)

    @synchronized
    def get_all_epics(self) -> list[Epic]:
        return _sorted_copies(self._epics.values())

    @synchronized
    def get_epic_subtasks(self, epic_id: int) -> list[Subtask]:
        _check_id(epic_id, "Epic")
        epic = self._epics.get(epic_id)
        if epic is None:
            raise NotFoundError("Epic", epic_id)
        return [_copy(self._subtasks[sub_id]) for sub_id in epic.subtask_ids]

    @synchronized
    def delete_epic_by_id(self, epic_id: int) -> None:
        """Delete an epic together with all of its subtasks."""
        _check_id(epic_id, "Epic")
        epic = self._epics.pop(epic_id, None)
        if epic is None:
            return

        for sub_id in epic.subtask_ids:
            subtask = self._subtasks.pop(sub_id)
            self._index.remove(subtask)
            self._history.forget(sub_id)
        self._history.forget(epic_id)

        logger.info(
            f"Deleted epic {epic_id}: '{epic.title}' "
            f"with {len(epic.subtask_ids)} subtasks"
        )
        self._changed()

    @synchronized
    def delete_all_epics(self) -> None:
        """Delete every epic and, with them, every subtask."""
        if not self._epics:
            return
        for subtask in self._subtasks.values():
            self._index.remove(subtask)
            self._history.forget(subtask.id)
        for epic_id in self._epics:
            self._history.forget(epic_id)

        logger.info(f"Deleted all epics ({len(self._epics)}) and subtasks ({len(self._subtasks)})")
        self._subtasks.clear()
        self._epics.clear()
        self._changed()

    # =========================================================================
    # Subtasks
    # =========================================================================

    @synchronized
    def add_new_subtask(self, subtask: Subtask, epic_id: Optional[int] = None) -> int:
        """
        Store a new subtask under an existing epic and return its id.

        Args:
            subtask: The subtask to add
            epic_id: Parent epic; defaults to subtask.epic_id

        Raises:
            InvalidArgumentError: subtask is None, bad epic id, malformed window
            NotFoundError: the epic does not exist
            ScheduleConflictError: its window overlaps a scheduled item
        """
        _require(subtask, Subtask, "subtask")
        if epic_id is None:
            epic_id = subtask.epic_id
        _check_id(epic_id, "Epic")
        if epic_id not in self._epics:
            raise NotFoundError("Epic", epic_id)
        _validate_window(subtask)

        new_subtask = _copy(subtask)
        new_subtask.id = 0
        _normalize_window(new_subtask)
        self._check_storable(new_subtask)
        self._check_schedule(new_subtask)

        new_subtask.id = self._ids.allocate()
        new_subtask.epic_id = epic_id
        self._subtasks[new_subtask.id] = new_subtask
        if new_subtask.has_window():
            self._index.insert(new_subtask)
        self._reaggregate(epic_id, self._epics[epic_id].subtask_ids + [new_subtask.id])

        logger.info(
            f"Created subtask: id={new_subtask.id} title='{new_subtask.title}' epic={epic_id}"
        )
        self._changed()
        return new_subtask.id

    @synchronized
    def update_subtask(self, subtask: Subtask) -> Subtask:
        """Replace a stored subtask; it always stays under its original epic."""
        _require(subtask, Subtask, "subtask")
        _check_id(subtask.id, "Subtask")
        current = self._subtasks.get(subtask.id)
        if current is None:
            raise NotFoundError("Subtask", subtask.id)
        _validate_window(subtask)

        updated = _copy(subtask)
        updated.epic_id = current.epic_id
        _normalize_window(updated)
        self._check_storable(updated)
        self._check_schedule(updated)

        self._index.remove(current)
        self._subtasks[updated.id] = updated
        if updated.has_window():
            self._index.insert(updated)
        self._reaggregate(updated.epic_id)

        logger.info(f"Updated subtask {updated.id}: status={updated.status.value}")
        self._changed()
        return _copy(updated)

    @synchronized
    def get_subtask_by_id(self, subtask_id: int) -> Subtask:
        _check_id(subtask_id, "Subtask")
        subtask = self._subtasks.get(subtask_id)
        if subtask is None:
            raise NotFoundError("Subtask", subtask_id)
        self._history.record(subtask)
        return _copy(subtask)

    @synchronized
    def get_all_subtasks(self) -> list[Subtask]:
        return _sorted_copies(self._subtasks.values())

    @synchronized
    def delete_subtask_by_id(self, subtask_id: int) -> None:
        _check_id(subtask_id, "Subtask")
        subtask = self._subtasks.pop(subtask_id, None)
        if subtask is None:
            return
        self._index.remove(subtask)
        self._history.forget(subtask_id)

        remaining = [i for i in self._epics[subtask.epic_id].subtask_ids if i != subtask_id]
        self._reaggregate(subtask.epic_id, remaining)

        logger.info(f"Deleted subtask {subtask_id}: '{subtask.title}' epic={subtask.epic_id}")
        self._changed()

    @synchronized
    def delete_all_subtasks(self) -> None:
        """Delete every subtask; epics stay and fall back to NEW with no window."""
        if not self._subtasks:
            return
        for subtask in self._subtasks.values():
            self._index.remove(subtask)
            self._history.forget(subtask.id)
        count = len(self._subtasks)
        self._subtasks.clear()
        for epic_id in self._epics:
            self._reaggregate(epic_id, [])

        logger.info(f"Deleted all subtasks ({count})")
        self._changed()

    # =========================================================================
    # Views
    # =========================================================================

    @synchronized
    def get_prioritized_tasks(self) -> list[WorkItemBase]:
        """Scheduled tasks and subtasks, earliest start first."""
        return [_copy(item) for item in self._index.ordered_snapshot()]

    @synchronized
    def get_history(self) -> list[WorkItemBase]:
        """Items fetched by id, most recent first, with their current values."""
        history = []
        for item_id in self._history.snapshot():
            item = self._lookup(item_id)
            assert item is not None, f"history references deleted id {item_id}"
            history.append(_copy(item))
        return history

    @synchronized
    def kind_of(self, item_id: int) -> Optional[TaskKind]:
        """Kind of the entity stored under item_id, or None. Not recorded in history."""
        item = self._lookup(item_id)
        return item.kind if item is not None else None

    # =========================================================================
    # Internals
    # =========================================================================

    def _lookup(self, item_id: int) -> Optional[WorkItemBase]:
        for entities in (self._tasks, self._epics, self._subtasks):
            if item_id in entities:
                return entities[item_id]
        return None

    def _check_schedule(self, item: WorkItemBase) -> None:
        conflict = self._index.conflicts_with(item)
        if conflict is not None:
            logger.warning(
                f"Rejected {item.kind.value.lower()} id={item.id}: window "
                f"{item.start_time}..{item.end_time} overlaps item {conflict.id}"
            )
            raise ScheduleConflictError(item.id, conflict.id)

    def _reaggregate(self, epic_id: int, subtask_ids: Optional[Iterable[int]] = None) -> Epic:
        """
        Recompute an epic from its subtasks.

        subtask_ids replaces the epic's membership when given (attach/detach);
        otherwise the current membership is reused.
        """
        epic = self._epics[epic_id]
        if subtask_ids is None:
            subtask_ids = epic.subtask_ids
        subtasks = []
        for sub_id in subtask_ids:
            subtask = self._subtasks.get(sub_id)
            assert subtask is not None and subtask.epic_id == epic_id, (
                f"epic {epic_id} lists unknown subtask {sub_id}"
            )
            subtasks.append(subtask)

        updated = aggregate(epic, subtasks)
        self._epics[epic_id] = updated
        logger.debug(
            f"Aggregated epic {epic_id}: status={updated.status.value} "
            f"start={updated.start_time} duration={updated.duration} end={updated.end_time}"
        )
        return updated

    def _restore(self, item: WorkItemBase) -> None:
        """
        Put an entity back under its existing id (used when loading saved
        data). Epics must be restored before their subtasks.
        """
        _check_id(item.id, item.kind.value.title())
        if self._lookup(item.id) is not None:
            raise InvalidArgumentError(f"Duplicate id {item.id}", field="id")

        if isinstance(item, Epic):
            self._epics[item.id] = aggregate(
                Epic(id=item.id, title=item.title, description=item.description), []
            )
        else:
            _validate_window(item)
            restored = _copy(item)
            _normalize_window(restored)
            self._check_schedule(restored)
            if isinstance(restored, Subtask):
                if restored.epic_id not in self._epics:
                    raise NotFoundError("Epic", restored.epic_id)
                self._subtasks[restored.id] = restored
                self._reaggregate(
                    restored.epic_id,
                    self._epics[restored.epic_id].subtask_ids + [restored.id],
                )
            else:
                self._tasks[restored.id] = restored
            if restored.has_window():
                self._index.insert(restored)

        self._ids.observe(item.id)

    def _check_storable(self, item: WorkItemBase) -> None:
        """Hook for stores that can only keep some windows exactly."""

    def _changed(self) -> None:
        """Called after every mutation that changed state."""


def _require(item, expected: type, name: str) -> None:
    if item is None:
        raise InvalidArgumentError(f"{name} must not be None", field=name)
    if not isinstance(item, expected):
        raise InvalidArgumentError(
            f"{name} must be a {expected.__name__}, got {type(item).__name__}",
            field=name,
        )


def _check_id(item_id: int, resource: str) -> None:
    if item_id < 1:
        raise InvalidArgumentError(f"{resource} id must be at least 1, got {item_id}", field="id")


def _validate_window(item: WorkItemBase) -> None:
    if (item.start_time is None) != (item.duration is None):
        raise InvalidArgumentError(
            "start_time and duration must be given together",
            field="duration" if item.duration is None else "start_time",
        )
    if item.duration is not None and item.duration.total_seconds() < 0:
        raise InvalidArgumentError("duration must not be negative", field="duration")


def _normalize_window(item: WorkItemBase) -> None:
    """Turn an aware start time into naive UTC; naive times are kept as given."""
    if item.start_time is not None and item.start_time.utcoffset() is not None:
        item.start_time = item.start_time.astimezone(timezone.utc).replace(tzinfo=None)


def _sorted_copies(items: Iterable[WorkItemBase]) -> list:
    return [_copy(item) for item in sorted(items, key=lambda item: item.id)]
