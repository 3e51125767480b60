"""
Exceptions raised by the task tracker.

The store raises these and never maps them to transport codes; the HTTP layer
does that in tracker.routes.errors.
"""

from typing import Any, Dict, List, Optional


class TrackerError(Exception):
    """Base exception for all tracker errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "internal_error",
        details: Optional[List[Dict[str, Any]]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details
        super().__init__(message)


class InvalidArgumentError(TrackerError):
    """Missing entity, bad id or malformed scheduling window."""

    def __init__(self, message: str, field: Optional[str] = None):
        details = None
        if field is not None:
            details = [{"loc": [field], "msg": message, "type": "value_error"}]
        super().__init__(
            message=message,
            error_code="invalid_argument",
            details=details,
        )
        self.field = field


class NotFoundError(TrackerError):
    """Entity with the given id does not exist."""

    def __init__(self, resource: str, resource_id: int):
        super().__init__(
            message=f"{resource} with ID {resource_id} not found",
            error_code="not_found",
        )
        self.resource = resource
        self.resource_id = resource_id


class ScheduleConflictError(TrackerError):
    """Proposed scheduling window overlaps an already scheduled item."""

    def __init__(self, candidate_id: int, conflicting_id: int):
        super().__init__(
            message="Scheduling window overlaps an existing task",
            error_code="schedule_conflict",
            details=[{
                "loc": ["body", "start_time"],
                "msg": f"Item {candidate_id} overlaps item {conflicting_id}",
                "type": "overlap_error",
            }],
        )
        self.candidate_id = candidate_id
        self.conflicting_id = conflicting_id


class PersistenceError(TrackerError):
    """The backing file could not be read or written."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message=message, error_code="persistence_error")
        self.path = path


class ManagerSaveError(PersistenceError):
    """Writing the backing file failed."""


class ManagerLoadError(PersistenceError):
    """Reading or parsing the backing file failed."""
