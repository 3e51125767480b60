from tracker.models.task import (
    Epic,
    ScheduledItemBase,
    Subtask,
    Task,
    TaskKind,
    TaskStatus,
    WorkItem,
    WorkItemBase,
)

__all__ = [
    "Epic",
    "ScheduledItemBase",
    "Subtask",
    "Task",
    "TaskKind",
    "TaskStatus",
    "WorkItem",
    "WorkItemBase",
]
