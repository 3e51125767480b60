"""
Task store: CRUD, derived epic state, schedule conflicts, history and
cascade deletion.
"""

from datetime import datetime, timedelta, timezone

import pytest

from tracker.exceptions import InvalidArgumentError, NotFoundError, ScheduleConflictError
from tracker.models import Epic, Subtask, Task, TaskKind, TaskStatus
from tracker.services.store import IdAllocator, TaskStore


def at(hour: int, minute: int = 0) -> datetime:
    return datetime(2026, 3, 2, hour, minute)


def minutes(n: int) -> timedelta:
    return timedelta(minutes=n)


def snapshot(store: TaskStore) -> dict:
    """Everything observable about the store, for unchanged-state checks."""
    return {
        "tasks": [t.model_dump() for t in store.get_all_tasks()],
        "epics": [e.model_dump() for e in store.get_all_epics()],
        "subtasks": [s.model_dump() for s in store.get_all_subtasks()],
        "prioritized": [i.id for i in store.get_prioritized_tasks()],
        "history": [i.id for i in store.get_history()],
    }


class TestIds:

    def test_ids_are_shared_across_kinds(self, store):
        task_id = store.add_new_task(Task(title="T"))
        epic_id = store.add_new_epic(Epic(title="E"))
        sub_id = store.add_new_subtask(Subtask(title="S"), epic_id)

        assert (task_id, epic_id, sub_id) == (1, 2, 3)
        assert store.kind_of(task_id) is TaskKind.TASK
        assert store.kind_of(epic_id) is TaskKind.EPIC
        assert store.kind_of(sub_id) is TaskKind.SUBTASK
        assert store.kind_of(99) is None

    def test_ids_are_never_reused(self, store):
        first = store.add_new_task(Task(title="T1"))
        store.delete_task_by_id(first)

        assert store.add_new_task(Task(title="T2")) == first + 1

    def test_stores_do_not_share_counters(self):
        a, b = TaskStore(), TaskStore()
        a.add_new_task(Task(title="A1"))
        a.add_new_task(Task(title="A2"))

        assert b.add_new_task(Task(title="B1")) == 1

    def test_injected_allocator(self):
        store = TaskStore(id_allocator=IdAllocator(start=100))

        assert store.add_new_task(Task(title="T")) == 100

    def test_allocator_observe(self):
        ids = IdAllocator()
        ids.observe(41)
        ids.observe(3)

        assert ids.allocate() == 42

    def test_caller_id_is_ignored_on_add(self, store):
        task_id = store.add_new_task(Task(id=50, title="T"))

        assert task_id == 1
        assert store.get_task_by_id(1).title == "T"


class TestTasks:

    def test_add_and_get(self, store):
        task_id = store.add_new_task(
            Task(title="Write", description="report", start_time=at(9), duration=minutes(30))
        )

        task = store.get_task_by_id(task_id)
        assert task.title == "Write"
        assert task.status is TaskStatus.NEW
        assert task.end_time == at(9, 30)

    def test_get_unknown_raises_not_found(self, store):
        with pytest.raises(NotFoundError) as exc_info:
            store.get_task_by_id(7)
        assert exc_info.value.resource_id == 7

    def test_ids_below_one_are_invalid(self, store):
        with pytest.raises(InvalidArgumentError):
            store.get_task_by_id(0)
        with pytest.raises(InvalidArgumentError):
            store.delete_task_by_id(-1)

    def test_none_is_invalid(self, store):
        with pytest.raises(InvalidArgumentError):
            store.add_new_task(None)
        with pytest.raises(InvalidArgumentError):
            store.update_task(None)

    def test_wrong_kind_is_invalid(self, store):
        with pytest.raises(InvalidArgumentError):
            store.add_new_task(Epic(title="not a task"))

    @pytest.mark.parametrize(
        "start, duration",
        [(at(9), None), (None, minutes(10)), (at(9), minutes(-5))],
    )
    def test_malformed_window_is_invalid(self, store, start, duration):
        with pytest.raises(InvalidArgumentError):
            store.add_new_task(Task(title="T", start_time=start, duration=duration))

        assert store.get_all_tasks() == []

    def test_update_replaces_task(self, store):
        task_id = store.add_new_task(Task(title="T", start_time=at(9), duration=minutes(30)))

        updated = store.update_task(
            Task(id=task_id, title="T2", status=TaskStatus.DONE, start_time=at(14), duration=minutes(15))
        )

        assert updated.title == "T2"
        assert store.get_task_by_id(task_id).status is TaskStatus.DONE
        prioritized = store.get_prioritized_tasks()
        assert [(i.id, i.start_time) for i in prioritized] == [(task_id, at(14))]

    def test_update_can_drop_window(self, store):
        task_id = store.add_new_task(Task(title="T", start_time=at(9), duration=minutes(30)))

        store.update_task(Task(id=task_id, title="T"))

        assert store.get_prioritized_tasks() == []

    def test_update_unknown_raises_not_found(self, store):
        with pytest.raises(NotFoundError):
            store.update_task(Task(id=5, title="ghost"))

    def test_update_with_subtask_id_raises_not_found(self, store):
        epic_id = store.add_new_epic(Epic(title="E"))
        sub_id = store.add_new_subtask(Subtask(title="S"), epic_id)

        with pytest.raises(NotFoundError):
            store.update_task(Task(id=sub_id, title="not a task"))

    def test_returned_objects_are_copies(self, store):
        task_id = store.add_new_task(Task(title="T"))

        fetched = store.get_task_by_id(task_id)
        fetched.title = "changed"
        store.get_all_tasks()[0].title = "changed too"

        assert store.get_task_by_id(task_id).title == "T"

    def test_added_object_is_not_aliased(self, store):
        original = Task(title="T")
        task_id = store.add_new_task(original)
        original.title = "changed"

        assert original.id == 0
        assert store.get_task_by_id(task_id).title == "T"

    def test_delete_unknown_is_noop(self, store):
        store.add_new_task(Task(title="T"))
        before = snapshot(store)

        store.delete_task_by_id(42)

        assert snapshot(store) == before

    def test_delete_all_tasks_keeps_epics(self, store):
        store.add_new_task(Task(title="T1", start_time=at(9), duration=minutes(10)))
        store.add_new_task(Task(title="T2"))
        epic_id = store.add_new_epic(Epic(title="E"))
        sub_id = store.add_new_subtask(Subtask(title="S", start_time=at(10), duration=minutes(10)), epic_id)

        store.delete_all_tasks()

        assert store.get_all_tasks() == []
        assert [e.id for e in store.get_all_epics()] == [epic_id]
        assert [i.id for i in store.get_prioritized_tasks()] == [sub_id]


class TestScheduleConflicts:

    def test_overlap_is_rejected_and_state_unchanged(self, store):
        """
        Scenario: A = [12:20, +10m) stored; B = [12:15, +10m) added
        Expected: ScheduleConflictError, nothing changes
        """
        a_id = store.add_new_task(Task(title="A", start_time=at(12, 20), duration=minutes(10)))
        store.get_task_by_id(a_id)
        before = snapshot(store)

        with pytest.raises(ScheduleConflictError) as exc_info:
            store.add_new_task(Task(title="B", start_time=at(12, 15), duration=minutes(10)))

        assert exc_info.value.conflicting_id == a_id
        assert snapshot(store) == before
        # the failed add did not consume an id
        assert store.add_new_task(Task(title="C")) == a_id + 1

    def test_touching_windows_are_accepted(self, store):
        store.add_new_task(Task(title="A", start_time=at(12), duration=minutes(30)))
        store.add_new_task(Task(title="B", start_time=at(12, 30), duration=minutes(30)))
        store.add_new_task(Task(title="C", start_time=at(11, 30), duration=minutes(30)))

        starts = [i.start_time for i in store.get_prioritized_tasks()]
        assert starts == [at(11, 30), at(12), at(12, 30)]

    def test_subtask_conflicts_with_task(self, store):
        store.add_new_task(Task(title="T", start_time=at(10), duration=minutes(60)))
        epic_id = store.add_new_epic(Epic(title="E"))
        before = snapshot(store)

        with pytest.raises(ScheduleConflictError):
            store.add_new_subtask(Subtask(title="S", start_time=at(10, 30), duration=minutes(10)), epic_id)

        assert snapshot(store) == before

    def test_update_into_own_window_is_allowed(self, store):
        task_id = store.add_new_task(Task(title="T", start_time=at(10), duration=minutes(60)))

        store.update_task(Task(id=task_id, title="T", start_time=at(10, 15), duration=minutes(60)))

        assert store.get_prioritized_tasks()[0].start_time == at(10, 15)

    def test_readding_fetched_task_is_checked_against_itself(self, store):
        """
        Scenario: A = [12:20, +10m) stored; the fetched copy of A (id 1) is added again
        Expected: the copy's id does not exempt it; the identical window conflicts
        """
        task_id = store.add_new_task(Task(title="A", start_time=at(12, 20), duration=minutes(10)))
        fetched = store.get_task_by_id(task_id)

        with pytest.raises(ScheduleConflictError) as exc_info:
            store.add_new_task(fetched)

        assert exc_info.value.conflicting_id == task_id
        assert [t.id for t in store.get_all_tasks()] == [task_id]

    def test_readding_fetched_subtask_is_checked_against_itself(self, store):
        epic_id = store.add_new_epic(Epic(title="E"))
        sub_id = store.add_new_subtask(
            Subtask(title="S", start_time=at(9), duration=minutes(30)), epic_id
        )
        fetched = store.get_subtask_by_id(sub_id)

        with pytest.raises(ScheduleConflictError):
            store.add_new_subtask(fetched)

        assert store.get_epic_by_id(epic_id).subtask_ids == [sub_id]

    def test_aware_start_is_stored_as_naive_utc(self, store):
        """
        Scenario: A = [12:00 UTC, +1h) aware; B = [14:00, +10m) naive; C = [12:30, +10m) naive
        Expected: A is kept as naive 12:00, B fits after it, C conflicts with A
        """
        a_id = store.add_new_task(
            Task(title="A", start_time=datetime(2026, 3, 2, 12, tzinfo=timezone.utc), duration=minutes(60))
        )
        store.add_new_task(Task(title="B", start_time=at(14), duration=minutes(10)))

        with pytest.raises(ScheduleConflictError) as exc_info:
            store.add_new_task(Task(title="C", start_time=at(12, 30), duration=minutes(10)))

        assert exc_info.value.conflicting_id == a_id
        assert store.get_task_by_id(a_id).start_time == at(12)
        assert [i.start_time for i in store.get_prioritized_tasks()] == [at(12), at(14)]

    def test_offset_start_is_converted_to_utc(self, store):
        plus_two = timezone(timedelta(hours=2))
        task_id = store.add_new_task(
            Task(title="T", start_time=datetime(2026, 3, 2, 14, tzinfo=plus_two), duration=minutes(10))
        )

        store.update_task(
            Task(id=task_id, title="T", start_time=datetime(2026, 3, 2, 15, tzinfo=plus_two), duration=minutes(10))
        )

        assert store.get_task_by_id(task_id).start_time == at(13)

    def test_update_into_other_window_is_rejected(self, store):
        a_id = store.add_new_task(Task(title="A", start_time=at(10), duration=minutes(60)))
        b_id = store.add_new_task(Task(title="B", start_time=at(12), duration=minutes(60)))
        before = snapshot(store)

        with pytest.raises(ScheduleConflictError):
            store.update_task(Task(id=b_id, title="B", start_time=at(10, 30), duration=minutes(60)))

        assert snapshot(store) == before
        assert [i.id for i in store.get_prioritized_tasks()] == [a_id, b_id]

    def test_subtask_update_conflict_keeps_epic(self, store):
        epic_id = store.add_new_epic(Epic(title="E"))
        s1 = store.add_new_subtask(Subtask(title="S1", start_time=at(9), duration=minutes(30)), epic_id)
        store.add_new_subtask(Subtask(title="S2", start_time=at(10), duration=minutes(30)), epic_id)
        epic_before = store.get_all_epics()[0]

        with pytest.raises(ScheduleConflictError):
            store.update_subtask(Subtask(id=s1, title="S1", start_time=at(10, 10), duration=minutes(5)))

        assert store.get_all_epics()[0].model_dump() == epic_before.model_dump()

    def test_freed_slot_can_be_reused(self, store):
        task_id = store.add_new_task(Task(title="A", start_time=at(10), duration=minutes(60)))
        store.delete_task_by_id(task_id)

        store.add_new_task(Task(title="B", start_time=at(10), duration=minutes(60)))

    def test_no_overlap_invariant_holds(self, store):
        """Every accepted pair of scheduled items is disjoint or touching."""
        epic_id = store.add_new_epic(Epic(title="E"))
        attempts = [(9, 0, 45), (9, 30, 30), (9, 45, 15), (10, 0, 60), (10, 59, 1), (11, 0, 5), (8, 50, 10)]
        for n, (hour, minute, length) in enumerate(attempts):
            item = (Task if n % 2 else Subtask)(
                title=f"I{n}", start_time=at(hour, minute), duration=minutes(length)
            )
            try:
                if isinstance(item, Subtask):
                    store.add_new_subtask(item, epic_id)
                else:
                    store.add_new_task(item)
            except ScheduleConflictError:
                pass

        scheduled = store.get_prioritized_tasks()
        for a, b in zip(scheduled, scheduled[1:]):
            assert a.end_time <= b.start_time


class TestEpics:

    def test_new_epic_is_empty(self, store):
        epic_id = store.add_new_epic(Epic(title="E", description="d"))

        epic = store.get_epic_by_id(epic_id)
        assert epic.status is TaskStatus.NEW
        assert epic.start_time is None and epic.duration is None and epic.end_time is None
        assert epic.subtask_ids == []

    def test_new_epic_ignores_derived_fields(self, store):
        epic_id = store.add_new_epic(
            Epic(title="E", status=TaskStatus.DONE, start_time=at(9), duration=minutes(5), subtask_ids=[8])
        )

        epic = store.get_epic_by_id(epic_id)
        assert epic.status is TaskStatus.NEW
        assert epic.start_time is None
        assert epic.subtask_ids == []

    def test_round_trip_scenario(self, store):
        """
        E; S1 NEW [10:00, +5m) -> E NEW [10:00, 10:05)
        S2 DONE [11:00, +15m) -> E IN_PROGRESS [10:00, 11:15), duration 20m
        delete S1 -> E DONE [11:00, 11:15)
        """
        epic_id = store.add_new_epic(Epic(title="E"))

        s1 = store.add_new_subtask(Subtask(title="S1", start_time=at(10), duration=minutes(5)), epic_id)
        epic = store.get_epic_by_id(epic_id)
        assert epic.status is TaskStatus.NEW
        assert (epic.start_time, epic.end_time) == (at(10), at(10, 5))

        store.add_new_subtask(
            Subtask(title="S2", status=TaskStatus.DONE, start_time=at(11), duration=minutes(15)),
            epic_id,
        )
        epic = store.get_epic_by_id(epic_id)
        assert epic.status is TaskStatus.IN_PROGRESS
        assert (epic.start_time, epic.end_time) == (at(10), at(11, 15))
        assert epic.duration == minutes(20)

        store.delete_subtask_by_id(s1)
        epic = store.get_epic_by_id(epic_id)
        assert epic.status is TaskStatus.DONE
        assert (epic.start_time, epic.end_time) == (at(11), at(11, 15))
        assert epic.duration == minutes(15)

    def test_subtask_update_reaggregates_epic(self, store):
        epic_id = store.add_new_epic(Epic(title="E"))
        s1 = store.add_new_subtask(Subtask(title="S1"), epic_id)
        s2 = store.add_new_subtask(Subtask(title="S2"), epic_id)

        store.update_subtask(Subtask(id=s1, title="S1", status=TaskStatus.DONE))
        assert store.get_epic_by_id(epic_id).status is TaskStatus.IN_PROGRESS

        store.update_subtask(Subtask(id=s2, title="S2", status=TaskStatus.DONE))
        assert store.get_epic_by_id(epic_id).status is TaskStatus.DONE

    def test_subtask_update_keeps_parent(self, store):
        e1 = store.add_new_epic(Epic(title="E1"))
        e2 = store.add_new_epic(Epic(title="E2"))
        sub_id = store.add_new_subtask(Subtask(title="S"), e1)

        updated = store.update_subtask(Subtask(id=sub_id, epic_id=e2, title="S'"))

        assert updated.epic_id == e1
        assert store.get_epic_by_id(e1).subtask_ids == [sub_id]
        assert store.get_epic_by_id(e2).subtask_ids == []

    def test_epic_update_keeps_derived_state(self, store):
        epic_id = store.add_new_epic(Epic(title="E"))
        sub_id = store.add_new_subtask(
            Subtask(title="S", status=TaskStatus.DONE, start_time=at(9), duration=minutes(10)), epic_id
        )

        updated = store.update_epic(
            Epic(id=epic_id, title="Renamed", description="new", status=TaskStatus.NEW, subtask_ids=[])
        )

        assert updated.title == "Renamed"
        assert updated.description == "new"
        assert updated.status is TaskStatus.DONE
        assert updated.subtask_ids == [sub_id]
        assert updated.start_time == at(9)

    def test_epic_update_unknown_raises_not_found(self, store):
        with pytest.raises(NotFoundError):
            store.update_epic(Epic(id=3, title="ghost"))

    def test_subtask_needs_existing_epic(self, store):
        task_id = store.add_new_task(Task(title="T"))

        with pytest.raises(NotFoundError):
            store.add_new_subtask(Subtask(title="S"), 99)
        with pytest.raises(NotFoundError):
            store.add_new_subtask(Subtask(title="S"), task_id)
        with pytest.raises(InvalidArgumentError):
            store.add_new_subtask(Subtask(title="S"), 0)

        assert store.get_all_subtasks() == []

    def test_epic_id_taken_from_subtask(self, store):
        epic_id = store.add_new_epic(Epic(title="E"))

        sub_id = store.add_new_subtask(Subtask(title="S", epic_id=epic_id))

        assert store.get_subtask_by_id(sub_id).epic_id == epic_id

    def test_epic_subtasks_ordered_by_id(self, store):
        epic_id = store.add_new_epic(Epic(title="E"))
        ids = [store.add_new_subtask(Subtask(title=f"S{n}"), epic_id) for n in range(3)]

        assert [s.id for s in store.get_epic_subtasks(epic_id)] == ids
        with pytest.raises(NotFoundError):
            store.get_epic_subtasks(ids[0])

    def test_cascade_delete(self, store):
        """Deleting an epic removes its subtasks from every index."""
        epic_id = store.add_new_epic(Epic(title="E"))
        sub_ids = [
            store.add_new_subtask(Subtask(title=f"S{n}", start_time=at(9 + n), duration=minutes(30)), epic_id)
            for n in range(3)
        ]
        task_id = store.add_new_task(Task(title="T", start_time=at(15), duration=minutes(30)))
        for sub_id in sub_ids:
            store.get_subtask_by_id(sub_id)
        store.get_epic_by_id(epic_id)
        store.get_task_by_id(task_id)

        store.delete_epic_by_id(epic_id)

        assert store.get_all_subtasks() == []
        assert store.get_all_epics() == []
        assert [i.id for i in store.get_history()] == [task_id]
        assert [i.id for i in store.get_prioritized_tasks()] == [task_id]
        for sub_id in sub_ids:
            assert store.kind_of(sub_id) is None

    def test_delete_all_epics_deletes_subtasks(self, store):
        for n in range(2):
            epic_id = store.add_new_epic(Epic(title=f"E{n}"))
            sub_id = store.add_new_subtask(
                Subtask(title="S", start_time=at(9 + n), duration=minutes(30)), epic_id
            )
            store.get_subtask_by_id(sub_id)

        store.delete_all_epics()

        assert store.get_all_epics() == []
        assert store.get_all_subtasks() == []
        assert store.get_prioritized_tasks() == []
        assert store.get_history() == []

    def test_delete_all_subtasks_resets_epics(self, store):
        epic_id = store.add_new_epic(Epic(title="E"))
        store.add_new_subtask(
            Subtask(title="S", status=TaskStatus.DONE, start_time=at(9), duration=minutes(30)), epic_id
        )

        store.delete_all_subtasks()

        epic = store.get_epic_by_id(epic_id)
        assert epic.status is TaskStatus.NEW
        assert epic.start_time is None and epic.duration is None and epic.end_time is None
        assert epic.subtask_ids == []
        assert store.get_prioritized_tasks() == []

    def test_prioritized_excludes_epics(self, store):
        epic_id = store.add_new_epic(Epic(title="E"))
        sub_id = store.add_new_subtask(Subtask(title="S", start_time=at(11), duration=minutes(30)), epic_id)
        task_id = store.add_new_task(Task(title="T", start_time=at(9), duration=minutes(30)))
        store.add_new_task(Task(title="unscheduled"))

        assert [i.id for i in store.get_prioritized_tasks()] == [task_id, sub_id]


class TestHistory:

    def test_gets_are_recorded_newest_first(self, store):
        task_id = store.add_new_task(Task(title="T"))
        epic_id = store.add_new_epic(Epic(title="E"))
        sub_id = store.add_new_subtask(Subtask(title="S"), epic_id)

        store.get_task_by_id(task_id)
        store.get_epic_by_id(epic_id)
        store.get_subtask_by_id(sub_id)
        store.get_task_by_id(task_id)

        assert [i.id for i in store.get_history()] == [task_id, sub_id, epic_id]

    def test_listing_is_not_recorded(self, store):
        store.add_new_task(Task(title="T"))
        store.get_all_tasks()
        store.get_prioritized_tasks()
        store.kind_of(1)

        assert store.get_history() == []

    def test_history_shows_current_values(self, store):
        epic_id = store.add_new_epic(Epic(title="E"))
        store.get_epic_by_id(epic_id)
        store.add_new_subtask(Subtask(title="S", status=TaskStatus.DONE), epic_id)

        [entry] = store.get_history()
        assert entry.status is TaskStatus.DONE

    def test_deleted_items_leave_history(self, store):
        t1 = store.add_new_task(Task(title="T1"))
        t2 = store.add_new_task(Task(title="T2"))
        store.get_task_by_id(t1)
        store.get_task_by_id(t2)

        store.delete_task_by_id(t1)

        assert [i.id for i in store.get_history()] == [t2]

        store.delete_all_tasks()
        assert store.get_history() == []

    def test_failed_get_is_not_recorded(self, store):
        with pytest.raises(NotFoundError):
            store.get_epic_by_id(1)

        assert store.get_history() == []
