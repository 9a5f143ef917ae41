import threading
from datetime import datetime, timezone

import pytest

from errors import NotFoundError, ValidationError
from models import parse_timestamp
from storage import JsonFileStorage, TaskStore, UuidGenerator

from conftest import SequentialIdGenerator


def test_add_creates_incomplete_task_with_trimmed_text(store):
    task = store.add_task("  buy milk \n")

    assert task.id == "task-1"
    assert task.text == "buy milk"
    assert task.completed is False
    assert task.createdAt == task.updatedAt == "2024-01-01T12:00:00.000Z"
    assert store.list_tasks() == [task]


def test_add_appends_in_creation_order(store):
    first = store.add_task("first")
    second = store.add_task("second")

    assert [t.id for t in store.list_tasks()] == [first.id, second.id]


def test_add_keeps_markup_verbatim(store):
    task = store.add_task("<script>alert(1)</script>")

    assert store.list_tasks()[0].text == task.text == "<script>alert(1)</script>"


@pytest.mark.parametrize("text", ["", "   ", "\t\n", None, 42])
def test_add_rejects_empty_or_non_string_text(store, storage, text):
    store.add_task("keep me")
    saves = storage.saves

    with pytest.raises(ValidationError):
        store.add_task(text)

    assert storage.saves == saves
    assert [t.text for t in store.list_tasks()] == ["keep me"]


def test_add_does_one_load_and_one_save(store, storage):
    store.list_tasks()  # creates the file
    loads, saves = storage.loads, storage.saves

    store.add_task("walk dog")

    assert (storage.loads - loads, storage.saves - saves) == (1, 1)


def test_toggle_twice_restores_completed_and_advances_updated_at(store):
    task = store.add_task("walk dog")

    once = store.toggle_task(task.id)
    twice = store.toggle_task(task.id)

    assert once.completed is True
    assert twice.completed is False
    assert parse_timestamp(task.updatedAt) < parse_timestamp(once.updatedAt) < parse_timestamp(twice.updatedAt)
    assert twice.createdAt == task.createdAt
    assert store.list_tasks() == [twice]


def test_toggle_advances_updated_at_even_when_clock_stands_still(storage):
    frozen = datetime(2024, 6, 1, 8, 0, tzinfo=timezone.utc)
    store = TaskStore(storage, id_generator=SequentialIdGenerator(), now=lambda: frozen)
    task = store.add_task("quick")

    toggled = store.toggle_task(task.id)

    assert toggled.updatedAt == "2024-06-01T08:00:00.001Z"


def test_toggle_unknown_id_fails_without_writing(store, storage):
    store.add_task("only task")
    saves = storage.saves

    with pytest.raises(NotFoundError):
        store.toggle_task("missing")

    assert storage.saves == saves
    assert store.list_tasks()[0].completed is False


def test_delete_removes_exactly_one_task(store):
    keep = store.add_task("keep")
    drop = store.add_task("drop")

    result = store.delete_task(drop.id)

    assert result.deletedId == drop.id
    assert result.remainingCount == 1
    assert store.list_tasks() == [keep]


def test_delete_same_id_twice_fails_the_second_time(store, storage):
    task = store.add_task("once")
    store.delete_task(task.id)
    saves = storage.saves

    with pytest.raises(NotFoundError):
        store.delete_task(task.id)

    assert storage.saves == saves


def test_clear_completed_without_completed_tasks_does_not_write(store, storage, tasks_file):
    store.add_task("a")
    store.add_task("b")
    before = tasks_file.read_text(encoding="utf-8")
    saves = storage.saves

    result = store.clear_completed()

    assert result.clearedCount == 0
    assert result.remainingCount == 2
    assert storage.saves == saves
    assert tasks_file.read_text(encoding="utf-8") == before


def test_clear_completed_keeps_only_active_tasks(store):
    tasks = [store.add_task(f"task {n}") for n in range(5)]
    for task in tasks[:3]:
        store.toggle_task(task.id)

    result = store.clear_completed()

    assert result.clearedCount == 3
    assert result.remainingCount == 2
    remaining = store.list_tasks()
    assert [t.id for t in remaining] == [tasks[3].id, tasks[4].id]
    assert all(not t.completed for t in remaining)


def test_clear_all_empties_collection(store, storage):
    store.add_task("a")
    store.add_task("b")

    result = store.clear_all()

    assert result.deletedCount == 2
    assert store.list_tasks() == []

    saves = storage.saves
    assert store.clear_all().deletedCount == 0
    assert storage.saves == saves


def test_buy_milk_walk_dog_scenario(store):
    milk = store.add_task("buy milk")
    assert milk.id and milk.text == "buy milk" and milk.completed is False

    dog = store.add_task("walk dog")
    store.toggle_task(dog.id)
    tasks = store.list_tasks()
    assert len(tasks) == 2
    assert sum(t.completed for t in tasks) == 1

    result = store.clear_completed()
    assert (result.clearedCount, result.remainingCount) == (1, 1)
    assert [t.text for t in store.list_tasks()] == ["buy milk"]


def test_colliding_ids_are_regenerated(storage, clock):
    class Repeating:
        def __init__(self):
            self.ids = iter(["dup", "dup", "fresh"])

        def new_id(self):
            return next(self.ids)

    store = TaskStore(storage, id_generator=Repeating(), now=clock)

    assert store.add_task("one").id == "dup"
    assert store.add_task("two").id == "fresh"


def test_uuid_generator_ids_are_unique():
    generator = UuidGenerator()
    ids = {generator.new_id() for _ in range(1000)}

    assert len(ids) == 1000
    assert all(len(i) == 32 for i in ids)


def test_store_reads_collection_written_by_another_store(store, tasks_file, clock):
    store.add_task("shared")

    other = TaskStore(type(store.storage)(tasks_file), now=clock)

    assert [t.text for t in other.list_tasks()] == ["shared"]


def test_concurrent_adds_on_one_store_keep_every_task(tasks_file):
    store = TaskStore(JsonFileStorage(tasks_file))
    start = threading.Barrier(40)
    errors = []

    def add(n):
        start.wait()
        try:
            store.add_task(f"task {n}")
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=add, args=(n,)) for n in range(40)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    tasks = store.list_tasks()
    assert len(tasks) == 40
    assert {t.text for t in tasks} == {f"task {n}" for n in range(40)}
    assert len({t.id for t in tasks}) == 40
