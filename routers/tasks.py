# routers/tasks.py
import logging
from typing import List

from fastapi import APIRouter, Depends
from starlette.status import HTTP_201_CREATED

from dependencies import get_task_store
from models import ClearAllResult, ClearResult, DeleteResult, Task, TaskCreate
from storage import TaskStore

logger = logging.getLogger(__name__)

# --- Router Setup ---
router = APIRouter(
    prefix="/tasks",
    tags=["Task Management"],
)

# --- Endpoints ---
# Store errors (validation, not found, storage) are turned into JSON
# responses by the exception handlers registered in main.py.

@router.get("", response_model=List[Task])
async def get_tasks(store: TaskStore = Depends(get_task_store)):
    """Get the list of all tasks in storage order."""
    tasks = store.list_tasks()
    logger.info("Returning %d tasks", len(tasks))
    return tasks

@router.post("", response_model=Task, status_code=HTTP_201_CREATED)
async def create_task(payload: TaskCreate, store: TaskStore = Depends(get_task_store)):
    """Creates a new, incomplete task from the given text."""
    return store.add_task(payload.text)

@router.delete("", response_model=ClearAllResult)
async def clear_all_tasks(store: TaskStore = Depends(get_task_store)):
    """Deletes every task in a single write."""
    return store.clear_all()

@router.delete("/clear/completed", response_model=ClearResult)
async def clear_completed_tasks(store: TaskStore = Depends(get_task_store)):
    """Deletes all completed tasks, leaving active ones untouched."""
    return store.clear_completed()

@router.put("/{task_id}", response_model=Task)
async def toggle_task(task_id: str, store: TaskStore = Depends(get_task_store)):
    """Flips the completion state of a task."""
    return store.toggle_task(task_id)

@router.delete("/{task_id}", response_model=DeleteResult)
async def delete_task(task_id: str, store: TaskStore = Depends(get_task_store)):
    """Deletes a single task."""
    return store.delete_task(task_id)
