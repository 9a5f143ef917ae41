# dependencies.py
import os
from functools import lru_cache
from pathlib import Path

from storage import JsonFileStorage, TaskStore


@lru_cache
def get_task_store() -> TaskStore:
    """
    The one TaskStore shared by every request of this process.

    The path is read from TASKS_FILE on first use, so a .env loaded at
    startup is honoured. Tests replace this dependency through
    app.dependency_overrides.
    """
    tasks_file = Path(os.getenv("TASKS_FILE", "tasks.json"))
    return TaskStore(JsonFileStorage(tasks_file))
