"""
Epic routes.
"""

from fastapi import APIRouter, Depends, status

from tracker.logging_config import get_logger
from tracker.models import Epic, Subtask
from tracker.schemas import EpicCreate, EpicRead, EpicUpdate, SubtaskRead
from tracker.services.store import TaskStore
from tracker.storage import get_store

logger = get_logger(__name__)

router = APIRouter()


@router.post("/", response_model=EpicRead, status_code=status.HTTP_201_CREATED)
async def create_epic(
    epic_in: EpicCreate,
    store: TaskStore = Depends(get_store),
) -> Epic:
    """Create an empty epic (status NEW, no window)."""
    epic_id = store.add_new_epic(Epic(**epic_in.model_dump()))
    return Epic(id=epic_id, **epic_in.model_dump())


@router.get("/", response_model=list[EpicRead])
async def list_epics(store: TaskStore = Depends(get_store)) -> list[Epic]:
    epics = store.get_all_epics()
    logger.debug(f"Listed {len(epics)} epics")
    return epics


@router.get("/{epic_id}", response_model=EpicRead)
async def get_epic(epic_id: int, store: TaskStore = Depends(get_store)) -> Epic:
    return store.get_epic_by_id(epic_id)


@router.get("/{epic_id}/subtasks", response_model=list[SubtaskRead])
async def list_epic_subtasks(
    epic_id: int,
    store: TaskStore = Depends(get_store),
) -> list[Subtask]:
    """Subtasks of one epic, ordered by id."""
    return store.get_epic_subtasks(epic_id)


@router.put("/{epic_id}", response_model=EpicRead)
async def update_epic(
    epic_id: int,
    epic_in: EpicUpdate,
    store: TaskStore = Depends(get_store),
) -> Epic:
    """
    Update an epic's title and description.

    Status, window and subtasks stay derived from the subtasks.
    """
    return store.update_epic(Epic(id=epic_id, **epic_in.model_dump()))


@router.delete("/{epic_id}", response_model=EpicRead)
async def delete_epic(epic_id: int, store: TaskStore = Depends(get_store)) -> Epic:
    """Delete an epic and all of its subtasks; returns the deleted epic."""
    epic = store.get_epic_by_id(epic_id)
    store.delete_epic_by_id(epic_id)
    return epic


@router.delete("/", status_code=status.HTTP_204_NO_CONTENT)
async def delete_all_epics(store: TaskStore = Depends(get_store)) -> None:
    """Delete every epic and every subtask."""
    store.delete_all_epics()
