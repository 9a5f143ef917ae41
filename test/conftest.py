import itertools
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from client import TasksClient
from dependencies import get_task_store
from main import app
from storage import JsonFileStorage, TaskStore


class SequentialIdGenerator:
    """Deterministic ids: task-1, task-2, ..."""

    def __init__(self, prefix="task"):
        self.prefix = prefix
        self._counter = itertools.count(1)

    def new_id(self):
        return f"{self.prefix}-{next(self._counter)}"


class SteppingClock:
    """Returns a moment one step later on every call."""

    def __init__(self, start=datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc), step=timedelta(seconds=1)):
        self.current = start
        self.step = step

    def __call__(self):
        moment = self.current
        self.current += self.step
        return moment


class RecordingStorage(JsonFileStorage):
    """JsonFileStorage that counts how often the file is loaded and saved."""

    def __init__(self, path):
        super().__init__(path)
        self.loads = 0
        self.saves = 0

    def load(self):
        self.loads += 1
        return super().load()

    def save(self, tasks):
        self.saves += 1
        super().save(tasks)


@pytest.fixture
def tasks_file(tmp_path):
    return tmp_path / "tasks.json"


@pytest.fixture
def storage(tasks_file):
    return RecordingStorage(tasks_file)


@pytest.fixture
def clock():
    return SteppingClock()


@pytest.fixture
def store(storage, clock):
    return TaskStore(storage, id_generator=SequentialIdGenerator(), now=clock)


@pytest.fixture
def client(store):
    """
    A TestClient whose get_task_store dependency is overridden to use the
    per-test store, so every test starts from its own empty tasks file.
    """
    app.dependency_overrides[get_task_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def api(client):
    """The Python API client, talking to the app through the TestClient."""
    return TasksClient("http://testserver/api", session=client)
