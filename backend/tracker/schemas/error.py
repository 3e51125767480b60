from typing import List, Optional

from pydantic import BaseModel


class ErrorDetail(BaseModel):
    """Detail of a single error."""
    loc: Optional[List[str]] = None  # e.g. ["body", "start_time"]
    msg: str
    type: str


class ErrorResponse(BaseModel):
    """Structured error response format."""
    error: str  # Error code, e.g. "not_found", "schedule_conflict"
    message: str
    details: Optional[List[ErrorDetail]] = None
