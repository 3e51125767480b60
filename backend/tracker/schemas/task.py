from datetime import datetime, timedelta
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

from tracker.models import TaskKind, TaskStatus


class TaskCreate(BaseModel):
    """
    Schema for creating a task.

    duration accepts ISO 8601 ("PT30M") or a number of seconds;
    start_time and duration go together.
    """
    title: str
    description: str = ""
    status: TaskStatus = TaskStatus.NEW
    start_time: datetime | None = None
    duration: timedelta | None = None


class TaskUpdate(TaskCreate):
    """Schema for replacing a task (all fields, not a patch)."""


class TaskRead(BaseModel):
    """Schema for reading a task with its computed end_time."""
    kind: Literal[TaskKind.TASK]
    id: int
    title: str
    description: str
    status: TaskStatus
    start_time: datetime | None
    duration: timedelta | None
    end_time: datetime | None

    model_config = {"from_attributes": True}


class SubtaskCreate(TaskCreate):
    """Schema for creating a subtask under an existing epic."""
    epic_id: int


class SubtaskUpdate(TaskCreate):
    """Schema for replacing a subtask; it always keeps its epic."""


class SubtaskRead(BaseModel):
    kind: Literal[TaskKind.SUBTASK]
    id: int
    epic_id: int
    title: str
    description: str
    status: TaskStatus
    start_time: datetime | None
    duration: timedelta | None
    end_time: datetime | None

    model_config = {"from_attributes": True}


class EpicCreate(BaseModel):
    """Schema for creating an epic. Status and window are always derived."""
    title: str
    description: str = ""


class EpicUpdate(EpicCreate):
    """Schema for updating an epic's title and description."""


class EpicRead(BaseModel):
    """
    Schema for reading an epic.

    duration is the total scheduled work of the subtasks and can be shorter
    than end_time - start_time.
    """
    kind: Literal[TaskKind.EPIC]
    id: int
    title: str
    description: str
    status: TaskStatus
    start_time: datetime | None
    duration: timedelta | None
    end_time: datetime | None
    subtask_ids: list[int]

    model_config = {"from_attributes": True}


WorkItemRead = Annotated[Union[TaskRead, EpicRead, SubtaskRead], Field(discriminator="kind")]
ScheduledItemRead = Annotated[Union[TaskRead, SubtaskRead], Field(discriminator="kind")]
