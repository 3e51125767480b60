from tracker.schemas.error import ErrorDetail, ErrorResponse
from tracker.schemas.task import (
    EpicCreate,
    EpicRead,
    EpicUpdate,
    ScheduledItemRead,
    SubtaskCreate,
    SubtaskRead,
    SubtaskUpdate,
    TaskCreate,
    TaskRead,
    TaskUpdate,
    WorkItemRead,
)

__all__ = [
    "ErrorDetail",
    "ErrorResponse",
    "EpicCreate",
    "EpicRead",
    "EpicUpdate",
    "ScheduledItemRead",
    "SubtaskCreate",
    "SubtaskRead",
    "SubtaskUpdate",
    "TaskCreate",
    "TaskRead",
    "TaskUpdate",
    "WorkItemRead",
]
