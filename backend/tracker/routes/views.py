"""
Read-only views across all entity kinds: history and prioritized schedule.
"""

from fastapi import APIRouter, Depends

from tracker.schemas import ScheduledItemRead, WorkItemRead
from tracker.services.store import TaskStore
from tracker.storage import get_store

router = APIRouter()


@router.get("/history", response_model=list[WorkItemRead])
async def get_history(store: TaskStore = Depends(get_store)):
    """Items fetched by id, most recent first."""
    return store.get_history()


@router.get("/prioritized", response_model=list[ScheduledItemRead])
async def get_prioritized(store: TaskStore = Depends(get_store)):
    """Scheduled tasks and subtasks, earliest start first."""
    return store.get_prioritized_tasks()
