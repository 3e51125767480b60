from datetime import datetime, timedelta
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, computed_field


class TaskStatus(str, Enum):
    NEW = "NEW"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"


class TaskKind(str, Enum):
    TASK = "TASK"
    EPIC = "EPIC"
    SUBTASK = "SUBTASK"


class WorkItemBase(BaseModel):
    """
    Fields shared by tasks, epics and subtasks.

    Key fields:
    - id: 0 until the store assigns one
    - start_time/duration: the scheduling window; both set or both None

    Two items are equal when they have the same kind and id, whatever their
    other fields hold.
    """

    id: int = 0
    title: str
    description: str = ""
    status: TaskStatus = TaskStatus.NEW
    start_time: datetime | None = None
    duration: timedelta | None = None

    def has_window(self) -> bool:
        return self.start_time is not None and self.duration is not None

    def __eq__(self, other):
        if not isinstance(other, WorkItemBase):
            return NotImplemented
        return type(self) is type(other) and self.id == other.id

    def __hash__(self):
        return hash(self.id)


class ScheduledItemBase(WorkItemBase):
    """Items that can occupy the schedule directly."""

    @computed_field
    @property
    def end_time(self) -> datetime | None:
        if self.start_time is None or self.duration is None:
            return None
        return self.start_time + self.duration


class Task(ScheduledItemBase):
    """Standalone task."""

    kind: Literal[TaskKind.TASK] = TaskKind.TASK


class Subtask(ScheduledItemBase):
    """Task that belongs to exactly one epic."""

    kind: Literal[TaskKind.SUBTASK] = TaskKind.SUBTASK
    epic_id: int = 0


class Epic(WorkItemBase):
    """
    Container of subtasks.

    status, start_time, duration and end_time are derived from the subtasks
    by tracker.services.aggregator; subtask_ids is kept sorted.
    """

    kind: Literal[TaskKind.EPIC] = TaskKind.EPIC
    subtask_ids: list[int] = Field(default_factory=list)
    end_time: datetime | None = None


WorkItem = Annotated[Union[Task, Epic, Subtask], Field(discriminator="kind")]
