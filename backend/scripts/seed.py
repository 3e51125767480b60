#!/usr/bin/env python3
"""
Seed script to fill a CSV data file with a demo schedule.

Generates:
- Epics, each with a run of back-to-back subtasks (mixed statuses)
- Standalone tasks scheduled after the epics, some without a window

Every item goes through the store API, so the result obeys the same
no-overlap rule as live data.

Usage:
    python -m scripts.seed [--file tasks.csv] [--epics 5] [--subtasks 4] [--tasks 10] [--clear]
"""

import argparse
import random
import time
from datetime import datetime, timedelta
from pathlib import Path

from tracker.logging_config import setup_logging
from tracker.models import Epic, Subtask, Task, TaskStatus
from tracker.services.persistence import FileBackedTaskStore

STATUSES = [TaskStatus.NEW, TaskStatus.IN_PROGRESS, TaskStatus.DONE]


def seed(
    store: FileBackedTaskStore,
    num_epics: int,
    subtasks_per_epic: int,
    num_tasks: int,
    start: datetime,
) -> datetime:
    """
    Add epics, subtasks and tasks in consecutive slots starting after the
    latest item already scheduled.

    Returns:
        End of the last scheduled slot
    """
    scheduled = store.get_prioritized_tasks()
    cursor = max([start] + [item.end_time for item in scheduled])

    for e in range(num_epics):
        epic_id = store.add_new_epic(Epic(title=f"Epic {e + 1}", description="Seeded epic"))
        for s in range(subtasks_per_epic):
            duration = timedelta(minutes=random.choice([15, 30, 45, 60, 90]))
            store.add_new_subtask(
                Subtask(
                    title=f"Epic {e + 1} / step {s + 1}",
                    status=random.choice(STATUSES),
                    start_time=cursor,
                    duration=duration,
                ),
                epic_id,
            )
            cursor += duration
        # Gap between epics
        cursor += timedelta(minutes=30)

    for t in range(num_tasks):
        if t % 4 == 3:
            # Unscheduled backlog item
            store.add_new_task(Task(title=f"Backlog task {t + 1}"))
            continue
        duration = timedelta(minutes=random.choice([10, 20, 30]))
        store.add_new_task(
            Task(
                title=f"Task {t + 1}",
                status=random.choice(STATUSES),
                start_time=cursor,
                duration=duration,
            )
        )
        cursor += duration

    return cursor


def print_stats(store: FileBackedTaskStore) -> None:
    epics = store.get_all_epics()
    subtasks = store.get_all_subtasks()
    tasks = store.get_all_tasks()
    scheduled = store.get_prioritized_tasks()

    print(f"\n=== Store Statistics ===")
    print(f"Tasks:      {len(tasks)}")
    print(f"Epics:      {len(epics)}")
    print(f"Subtasks:   {len(subtasks)}")
    print(f"Scheduled:  {len(scheduled)}")
    for status in STATUSES:
        count = sum(1 for epic in epics if epic.status is status)
        print(f"Epics {status.value:<12} {count}")
    if scheduled:
        print(f"Span:       {scheduled[0].start_time} .. {max(i.end_time for i in scheduled)}")


def main():
    parser = argparse.ArgumentParser(description="Seed a CSV data file with demo tasks")
    parser.add_argument("--file", type=Path, default=Path("tasks.csv"), help="CSV data file")
    parser.add_argument("--epics", type=int, default=5, help="Number of epics to create")
    parser.add_argument("--subtasks", type=int, default=4, help="Subtasks per epic")
    parser.add_argument("--tasks", type=int, default=10, help="Number of standalone tasks")
    parser.add_argument("--clear", action="store_true", help="Clear existing data first")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")

    args = parser.parse_args()
    setup_logging(level="WARNING")
    random.seed(args.seed)

    print(f"=== Task Tracker Seed Script ===")
    store = FileBackedTaskStore.load_from_file(args.file)

    if args.clear:
        print("Clearing existing data...")
        store.delete_all_tasks()
        store.delete_all_epics()

    start_time = time.time()
    start = datetime.now().replace(minute=0, second=0, microsecond=0) + timedelta(hours=1)
    seed(store, args.epics, args.subtasks, args.tasks, start)
    print(f"Seeding time: {time.time() - start_time:.2f}s")

    # Empty seeds never trigger a save
    store.save()

    print_stats(store)
    print(f"\n=== Seeding Complete ===")
    print(f"Data file: {args.file}")


if __name__ == "__main__":
    main()
