# storage.py
import contextlib
import json
import logging
import os
import threading
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, List, Optional, Protocol, Tuple

import pydantic

from errors import NotFoundError, StorageError, ValidationError
from models import (
    ClearAllResult, ClearResult, DeleteResult, Task, TaskList,
    format_timestamp, parse_timestamp,
)

logger = logging.getLogger(__name__)


# --- Identifiers ---

class IdGenerator(Protocol):
    def new_id(self) -> str:
        ...


class UuidGenerator:
    """Random 128-bit ids, safe under rapid successive creation."""

    def new_id(self) -> str:
        return uuid.uuid4().hex


# --- Persistence ---

class TaskStorage(Protocol):
    """Whole-collection persistence: one load and one save per operation."""

    def load(self) -> List[Task]:
        ...

    def save(self, tasks: List[Task]) -> None:
        ...


class JsonFileStorage:
    """
    Keeps the whole task collection in a single JSON array on disk.

    A missing file is created as an empty list on first load. An empty,
    unreadable or corrupt file is treated as an empty collection so the
    store heals itself on the next successful save.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> List[Task]:
        if not self.path.exists():
            logger.info("Tasks file %s not found, initializing an empty one", self.path)
            self.save([])
            return []

        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError as e:
            logger.error("Error reading tasks file %s: %s", self.path, e)
            return []

        if not raw.strip():
            return []

        try:
            return TaskList.validate_python(json.loads(raw))
        except json.JSONDecodeError as e:
            logger.warning("Tasks file %s is not valid JSON (%s), treating it as empty", self.path, e)
        except pydantic.ValidationError as e:
            logger.warning(
                "Tasks file %s does not hold a list of tasks (%d errors), treating it as empty",
                self.path, e.error_count(),
            )
        return []

    def save(self, tasks: List[Task]) -> None:
        # Write a sibling file first and rename it over the target so a failed
        # write never leaves a half-written collection behind.
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            payload = json.dumps(
                [task.model_dump() for task in tasks], indent=2, ensure_ascii=False
            )
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(payload, encoding="utf-8")
            os.replace(tmp_path, self.path)
        except (OSError, TypeError, ValueError) as e:
            logger.error("Error writing tasks file %s: %s", self.path, e)
            with contextlib.suppress(OSError):
                tmp_path.unlink(missing_ok=True)
            raise StorageError(f"Failed to save tasks: {e}") from e
        logger.info("Tasks saved: %d tasks", len(tasks))


# --- Task Store ---

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TaskStore:
    """
    Load-mutate-save operations over the persisted collection.

    Every mutation loads the whole collection once and writes it back at most
    once. A single lock serializes operations inside this process; nothing
    guards the file against other processes.
    """

    def __init__(
        self,
        storage: TaskStorage,
        id_generator: Optional[IdGenerator] = None,
        now: Optional[Callable[[], datetime]] = None,
    ):
        self.storage = storage
        self.id_generator = id_generator or UuidGenerator()
        self.now = now or _utcnow
        self._lock = threading.Lock()

    def list_tasks(self) -> List[Task]:
        with self._lock:
            return self.storage.load()

    def add_task(self, text) -> Task:
        if not isinstance(text, str) or not text.strip():
            raise ValidationError("Task text is required and must be a non-empty string")

        with self._lock:
            tasks = self.storage.load()
            timestamp = format_timestamp(self.now())
            task = Task(
                id=self._unique_id(tasks),
                text=text.strip(),
                completed=False,
                createdAt=timestamp,
                updatedAt=timestamp,
            )
            tasks.append(task)
            self.storage.save(tasks)

        logger.info("Task added: %s - %s", task.id, task.text)
        return task

    def toggle_task(self, task_id: str) -> Task:
        with self._lock:
            tasks = self.storage.load()
            index, task = self._find(tasks, task_id)
            updated = task.model_copy(update={
                "completed": not task.completed,
                "updatedAt": self._advance(task.updatedAt),
            })
            tasks[index] = updated
            self.storage.save(tasks)

        logger.info("Task %s toggled: %s", task_id, "completed" if updated.completed else "incomplete")
        return updated

    def delete_task(self, task_id: str) -> DeleteResult:
        with self._lock:
            tasks = self.storage.load()
            index, _ = self._find(tasks, task_id)
            del tasks[index]
            self.storage.save(tasks)

        logger.info("Task %s deleted. Remaining: %d tasks", task_id, len(tasks))
        return DeleteResult(deletedId=task_id, remainingCount=len(tasks))

    def clear_completed(self) -> ClearResult:
        with self._lock:
            tasks = self.storage.load()
            active = [t for t in tasks if not t.completed]
            cleared = len(tasks) - len(active)
            if cleared == 0:
                return ClearResult(
                    message="No completed tasks to clear",
                    clearedCount=0,
                    remainingCount=len(tasks),
                )
            self.storage.save(active)

        logger.info("Cleared %d completed tasks. Remaining: %d", cleared, len(active))
        return ClearResult(
            message="Completed tasks cleared successfully",
            clearedCount=cleared,
            remainingCount=len(active),
        )

    def clear_all(self) -> ClearAllResult:
        with self._lock:
            tasks = self.storage.load()
            if not tasks:
                return ClearAllResult(message="No tasks to clear", deletedCount=0)
            self.storage.save([])

        logger.info("Deleted all %d tasks", len(tasks))
        return ClearAllResult(message="All tasks deleted", deletedCount=len(tasks))

    # --- Helpers ---

    @staticmethod
    def _find(tasks: List[Task], task_id: str) -> Tuple[int, Task]:
        for index, task in enumerate(tasks):
            if task.id == task_id:
                return index, task
        raise NotFoundError(f"Task {task_id} not found")

    def _unique_id(self, tasks: List[Task]) -> str:
        existing = {t.id for t in tasks}
        task_id = self.id_generator.new_id()
        while task_id in existing:
            task_id = self.id_generator.new_id()
        return task_id

    def _advance(self, previous: str) -> str:
        """A fresh updatedAt that is always later than the previous one."""
        moment = self.now()
        try:
            floor = parse_timestamp(previous) + timedelta(milliseconds=1)
        except ValueError:
            return format_timestamp(moment)
        return format_timestamp(max(moment, floor))
