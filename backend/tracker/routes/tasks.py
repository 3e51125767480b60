"""
Task routes.
"""

from fastapi import APIRouter, Depends, status

from tracker.logging_config import get_logger
from tracker.models import Task
from tracker.schemas import TaskCreate, TaskRead, TaskUpdate
from tracker.services.store import TaskStore
from tracker.storage import get_store

logger = get_logger(__name__)

router = APIRouter()


@router.post("/", response_model=TaskRead, status_code=status.HTTP_201_CREATED)
async def create_task(
    task_in: TaskCreate,
    store: TaskStore = Depends(get_store),
) -> Task:
    """
    Create a new task.

    Rejected with 406 if its window overlaps another scheduled item.
    """
    task = Task(**task_in.model_dump())
    task.id = store.add_new_task(task)
    return task


@router.get("/", response_model=list[TaskRead])
async def list_tasks(store: TaskStore = Depends(get_store)) -> list[Task]:
    tasks = store.get_all_tasks()
    logger.debug(f"Listed {len(tasks)} tasks")
    return tasks


@router.get("/{task_id}", response_model=TaskRead)
async def get_task(task_id: int, store: TaskStore = Depends(get_store)) -> Task:
    """Get a task by ID (recorded in history)."""
    return store.get_task_by_id(task_id)


@router.put("/{task_id}", response_model=TaskRead)
async def update_task(
    task_id: int,
    task_in: TaskUpdate,
    store: TaskStore = Depends(get_store),
) -> Task:
    """Replace a task."""
    return store.update_task(Task(id=task_id, **task_in.model_dump()))


@router.delete("/{task_id}", response_model=TaskRead)
async def delete_task(task_id: int, store: TaskStore = Depends(get_store)) -> Task:
    """Delete a task and return it; 404 if it does not exist."""
    task = store.get_task_by_id(task_id)
    store.delete_task_by_id(task_id)
    return task


@router.delete("/", status_code=status.HTTP_204_NO_CONTENT)
async def delete_all_tasks(store: TaskStore = Depends(get_store)) -> None:
    store.delete_all_tasks()
