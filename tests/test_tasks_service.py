# tests/test_tasks_service.py

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime

import pytest

from taskgenius.core.exceptions import (
    QuotaExceededError,
    TaskNotFoundError,
    UserNotFoundError,
    ValidationError,
)
from taskgenius.core.database import create_db_engine, create_session_factory, init_db
from taskgenius.models.user import User
from taskgenius.services.tasks import TasksService, get_owned_task


def test_create_then_fetch_round_trips_fields(tasks: TasksService, make_user) -> None:
    owner = make_user("ada")
    due = datetime(2030, 5, 17, 9, 30)

    created = tasks.create(owner.id, "Write report", "Quarterly numbers", due_date=due)
    fetched = tasks.get_by_id(created.id)

    assert fetched.user_id == owner.id
    assert fetched.title == "Write report"
    assert fetched.description == "Quarterly numbers"
    assert fetched.due_date == due
    assert fetched.is_completed is False
    assert fetched.id is not None
    assert fetched.created_at is not None


def test_create_without_due_date(tasks: TasksService, make_user) -> None:
    owner = make_user()

    task = tasks.create(owner.id, "Call", "Call the plumber", is_completed=True)

    assert task.due_date is None
    assert task.is_completed is True


@pytest.mark.parametrize(
    ("title", "description"),
    [("", "desc"), ("   ", "desc"), ("title", ""), ("title", "  "), ("x" * 101, "desc")],
)
def test_create_validates_title_and_description(tasks: TasksService, make_user, title, description) -> None:
    owner = make_user()

    with pytest.raises(ValidationError):
        tasks.create(owner.id, title, description)

    assert tasks.count_by_owner(owner.id) == 0


def test_create_for_unknown_owner(tasks: TasksService) -> None:
    with pytest.raises(UserNotFoundError):
        tasks.create(404, "Title", "Description")


def test_quota_blocks_the_twenty_first_task_without_writing(tasks: TasksService, make_user) -> None:
    owner = make_user()
    for i in range(20):
        assert tasks.create(owner.id, f"Task {i}", "something").user_id == owner.id

    with pytest.raises(QuotaExceededError) as exc_info:
        tasks.create(owner.id, "One too many", "should not be stored")

    assert exc_info.value.quota == 20
    assert tasks.count_by_owner(owner.id) == 20
    assert all(t.title != "One too many" for t in tasks.list_by_owner(owner.id))


def test_quota_is_per_owner(tasks: TasksService, make_user) -> None:
    busy, idle = make_user("busy"), make_user("idle")
    small = TasksService(tasks.db, quota=1)
    small.create(busy.id, "Only", "one")

    with pytest.raises(QuotaExceededError):
        small.create(busy.id, "Second", "no room")
    assert small.create(idle.id, "Mine", "plenty of room").user_id == idle.id


def test_quota_frees_up_after_delete(tasks: TasksService, make_user) -> None:
    owner = make_user()
    small = TasksService(tasks.db, quota=1)
    first = small.create(owner.id, "First", "one")

    small.delete(first.id)

    assert small.create(owner.id, "Second", "fits again").title == "Second"


def test_update_overwrites_supplied_fields_and_keeps_the_rest(tasks: TasksService, make_user) -> None:
    owner = make_user()
    due = datetime(2031, 1, 2, 3, 4)
    task = tasks.create(owner.id, "Old title", "Old description", due_date=due)

    updated = tasks.update(task.id, {"title": "New title"})

    assert updated.title == "New title"
    assert updated.description == "Old description"
    assert updated.due_date == due
    assert updated.is_completed is False

    updated = tasks.update(task.id, {"is_completed": True})
    assert updated.is_completed is True
    assert updated.due_date == due


def test_update_explicit_none_clears_due_date_only(tasks: TasksService, make_user) -> None:
    owner = make_user()
    task = tasks.create(owner.id, "T", "D", due_date=datetime(2031, 1, 1), is_completed=True)

    updated = tasks.update(task.id, {"due_date": None, "title": None})

    assert updated.due_date is None
    assert updated.title == "T"
    assert updated.is_completed is True


def test_update_rejects_blank_title_and_unknown_fields(tasks: TasksService, make_user) -> None:
    owner = make_user()
    task = tasks.create(owner.id, "T", "D")

    with pytest.raises(ValidationError):
        tasks.update(task.id, {"title": "  "})
    with pytest.raises(ValidationError):
        tasks.update(task.id, {"user_id": 99})

    assert tasks.get_by_id(task.id).title == "T"


def test_update_missing_task(tasks: TasksService) -> None:
    with pytest.raises(TaskNotFoundError):
        tasks.update(12345, {"title": "x"})


def test_delete_twice_succeeds(tasks: TasksService, make_user) -> None:
    owner = make_user()
    task = tasks.create(owner.id, "T", "D")

    tasks.delete(task.id)
    tasks.delete(task.id)

    with pytest.raises(TaskNotFoundError):
        tasks.get_by_id(task.id)


def test_list_by_owner_is_scoped_and_ordered(tasks: TasksService, make_user) -> None:
    ada, bob = make_user("ada"), make_user("bob")
    a1 = tasks.create(ada.id, "A1", "d")
    tasks.create(bob.id, "B1", "d")
    a2 = tasks.create(ada.id, "A2", "d")

    assert [t.id for t in tasks.list_by_owner(ada.id)] == [a1.id, a2.id]
    assert tasks.list_by_owner(9999) == []


def test_page_by_owner(tasks: TasksService, make_user) -> None:
    owner = make_user()
    for i in range(5):
        tasks.create(owner.id, f"T{i}", "d")

    items, total = tasks.page_by_owner(owner.id, page=2, page_size=2)

    assert total == 5
    assert [t.title for t in items] == ["T2", "T3"]
    with pytest.raises(ValidationError):
        tasks.page_by_owner(owner.id, page=0)


def test_foreign_task_looks_exactly_like_a_missing_one(tasks: TasksService, make_user) -> None:
    ada, bob = make_user("ada"), make_user("bob")
    task = tasks.create(ada.id, "Private", "ada only")

    assert get_owned_task(tasks, task.id, ada.id).id == task.id

    with pytest.raises(TaskNotFoundError) as foreign:
        get_owned_task(tasks, task.id, bob.id)
    with pytest.raises(TaskNotFoundError) as missing:
        get_owned_task(tasks, 99999, bob.id)

    assert type(foreign.value) is type(missing.value)
    assert str(foreign.value) == str(missing.value) == "Task not found or access denied"


def test_concurrent_creates_cannot_overshoot_quota(tmp_path) -> None:
    engine = create_db_engine(f"sqlite:///{tmp_path / 'race.db'}")
    assert init_db(engine)
    session_factory = create_session_factory(engine)
    racers = 8

    with session_factory() as session:
        owner = User(name="racer", email="racer@example.com", password_hash="unused")
        session.add(owner)
        session.commit()
        owner_id = owner.id
        store = TasksService(session, quota=20)
        for i in range(19):
            store.create(owner_id, f"Filler {i}", "takes a slot")

    barrier = threading.Barrier(racers)

    def attempt(n: int) -> str:
        # each thread gets its own session and connection
        with session_factory() as session:
            barrier.wait()
            try:
                TasksService(session, quota=20).create(owner_id, f"Race {n}", "last slot")
            except QuotaExceededError:
                return "quota"
            return "ok"

    try:
        with ThreadPoolExecutor(max_workers=racers) as pool:
            outcomes = list(pool.map(attempt, range(racers)))

        assert outcomes.count("ok") == 1
        assert outcomes.count("quota") == racers - 1
        with session_factory() as session:
            assert TasksService(session).count_by_owner(owner_id) == 20
    finally:
        engine.dispose()
