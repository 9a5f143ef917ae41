# client.py
import html
import logging
from typing import Dict, Iterable, List, Optional

import requests

from models import ClearAllResult, ClearResult, DeleteResult, Task, TaskList, parse_timestamp

logger = logging.getLogger(__name__)


class ClientError(Exception):
    """A request to the tasks API failed; the board was left untouched."""

    def __init__(self, status_code: int, kind: str, detail: str):
        super().__init__(f"{kind}: {detail}" if status_code == 0 else f"{status_code} {kind}: {detail}")
        self.status_code = status_code
        self.kind = kind
        self.detail = detail


# --- Cache ---

class TaskBoard:
    """
    The client's cached copy of the task collection.

    Responses are applied one at a time by task id, so the order in which
    they arrive does not matter.
    """

    def __init__(self, tasks: Optional[Iterable[Task]] = None):
        self.tasks: List[Task] = list(tasks or [])

    def replace_all(self, tasks: Iterable[Task]) -> None:
        self.tasks = list(tasks)

    def apply_task(self, task: Task) -> None:
        for index, existing in enumerate(self.tasks):
            if existing.id == task.id:
                self.tasks[index] = task
                return
        self.tasks.append(task)

    def remove(self, task_id: str) -> None:
        self.tasks = [t for t in self.tasks if t.id != task_id]

    def remove_completed(self) -> None:
        self.tasks = [t for t in self.tasks if not t.completed]

    def clear(self) -> None:
        self.tasks = []

    def get(self, task_id: str) -> Optional[Task]:
        return next((t for t in self.tasks if t.id == task_id), None)

    def counts(self) -> Dict[str, int]:
        completed = sum(1 for t in self.tasks if t.completed)
        return {"total": len(self.tasks), "pending": len(self.tasks) - completed, "completed": completed}


# --- Rendering ---

def display_order(tasks: Iterable[Task]) -> List[Task]:
    """Incomplete tasks before completed ones, newest first within each group."""
    newest_first = sorted(tasks, key=lambda t: parse_timestamp(t.createdAt), reverse=True)
    # sorted() is stable, so the newest-first order survives within each group
    return sorted(newest_first, key=lambda t: t.completed)


def render_html(tasks: Iterable[Task]) -> str:
    ordered = display_order(tasks)
    if not ordered:
        return (
            '<div class="empty-state">'
            "<p>No tasks yet</p>"
            '<p class="hint">Add your first task above!</p>'
            "</div>"
        )

    items = []
    for task in ordered:
        css = "task-item completed" if task.completed else "task-item"
        checked = " checked" if task.completed else ""
        items.append(
            f'<li class="{css}" data-id="{html.escape(task.id)}">'
            f'<input type="checkbox" class="task-checkbox"{checked}>'
            f'<span class="task-text">{html.escape(task.text)}</span>'
            f'<small class="task-date">{html.escape(_short_date(task.createdAt))}</small>'
            "</li>"
        )
    return '<ul class="task-list">' + "".join(items) + "</ul>"


def render_text(tasks: Iterable[Task]) -> str:
    ordered = display_order(tasks)
    if not ordered:
        return "No tasks yet."
    lines = []
    for task in ordered:
        mark = "x" if task.completed else " "
        lines.append(f"[{mark}] {task.text}  ({task.id}, {_short_date(task.createdAt)})")
    return "\n".join(lines)


def _short_date(timestamp: str) -> str:
    try:
        return parse_timestamp(timestamp).strftime("%b %d, %H:%M")
    except ValueError:
        return timestamp


# --- API Client ---

class TasksClient:
    """
    Talks to the tasks API and keeps a TaskBoard in step with each response.

    The board passed to each call is only changed after the server confirms
    the operation.
    """

    def __init__(self, base_url: str, session=None, timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def fetch_tasks(self, board: TaskBoard) -> List[Task]:
        tasks = TaskList.validate_python(self._request("GET", "/tasks"))
        board.replace_all(tasks)
        return tasks

    def add_task(self, board: TaskBoard, text: str) -> Task:
        text = text.strip()
        if not text:
            raise ClientError(0, "validation_error", "Please enter a task!")
        task = Task.model_validate(self._request("POST", "/tasks", json={"text": text}))
        board.apply_task(task)
        return task

    def toggle_task(self, board: TaskBoard, task_id: str) -> Task:
        task = Task.model_validate(self._request("PUT", f"/tasks/{task_id}"))
        board.apply_task(task)
        return task

    def delete_task(self, board: TaskBoard, task_id: str) -> DeleteResult:
        result = DeleteResult.model_validate(self._request("DELETE", f"/tasks/{task_id}"))
        board.remove(result.deletedId)
        return result

    def clear_completed(self, board: TaskBoard) -> ClearResult:
        result = ClearResult.model_validate(self._request("DELETE", "/tasks/clear/completed"))
        board.remove_completed()
        return result

    def clear_all(self, board: TaskBoard) -> ClearAllResult:
        result = ClearAllResult.model_validate(self._request("DELETE", "/tasks"))
        board.clear()
        return result

    def _request(self, method: str, path: str, **kwargs):
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.error("%s %s failed: %s", method, url, e)
            raise ClientError(0, "connection_error", f"Could not reach {url}. Is the backend running?") from e

        if response.status_code >= 400:
            try:
                body = response.json()
            except ValueError:
                body = {}
            kind = body.get("error", "http_error") if isinstance(body, dict) else "http_error"
            detail = body.get("detail", response.text) if isinstance(body, dict) else response.text
            logger.warning("%s %s returned %d: %s", method, url, response.status_code, detail)
            raise ClientError(response.status_code, kind, str(detail))
        return response.json()
