"""
Subtask routes.
"""

from fastapi import APIRouter, Depends, status

from tracker.logging_config import get_logger
from tracker.models import Subtask
from tracker.schemas import SubtaskCreate, SubtaskRead, SubtaskUpdate
from tracker.services.store import TaskStore
from tracker.storage import get_store

logger = get_logger(__name__)

router = APIRouter()


@router.post("/", response_model=SubtaskRead, status_code=status.HTTP_201_CREATED)
async def create_subtask(
    subtask_in: SubtaskCreate,
    store: TaskStore = Depends(get_store),
) -> Subtask:
    """
    Create a subtask under subtask_in.epic_id.

    404 if the epic does not exist, 406 on a schedule overlap.
    """
    subtask = Subtask(**subtask_in.model_dump())
    subtask.id = store.add_new_subtask(subtask, subtask_in.epic_id)
    return subtask


@router.get("/", response_model=list[SubtaskRead])
async def list_subtasks(store: TaskStore = Depends(get_store)) -> list[Subtask]:
    subtasks = store.get_all_subtasks()
    logger.debug(f"Listed {len(subtasks)} subtasks")
    return subtasks


@router.get("/{subtask_id}", response_model=SubtaskRead)
async def get_subtask(subtask_id: int, store: TaskStore = Depends(get_store)) -> Subtask:
    return store.get_subtask_by_id(subtask_id)


@router.put("/{subtask_id}", response_model=SubtaskRead)
async def update_subtask(
    subtask_id: int,
    subtask_in: SubtaskUpdate,
    store: TaskStore = Depends(get_store),
) -> Subtask:
    """Replace a subtask; its epic cannot change."""
    return store.update_subtask(Subtask(id=subtask_id, **subtask_in.model_dump()))


@router.delete("/{subtask_id}", response_model=SubtaskRead)
async def delete_subtask(subtask_id: int, store: TaskStore = Depends(get_store)) -> Subtask:
    subtask = store.get_subtask_by_id(subtask_id)
    store.delete_subtask_by_id(subtask_id)
    return subtask


@router.delete("/", status_code=status.HTTP_204_NO_CONTENT)
async def delete_all_subtasks(store: TaskStore = Depends(get_store)) -> None:
    """Delete every subtask; epics stay and are reset."""
    store.delete_all_subtasks()
