"""SqlDirectoryStore — verifies persistence semantics against SQLite.

Invariants:
    - Duplicate email on create_user -> EmailInUseError
    - Deletes report whether a row was removed (second delete -> False)
    - update_task_assignee on a missing task -> None, no error
    - Returned entities stay readable after later store failures
    - Pending lookups match email exactly, oldest first
"""

from uuid import uuid4

import pytest

from app.core.errors import EmailInUseError


async def _user(store, email="a@example.com"):
    return await store.create_user(email=email, name="A", password_hash="x")


async def test_create_and_find_user(sql_store):
    user = await _user(sql_store)

    found = await sql_store.find_user_by_email("a@example.com")

    assert found.id == user.id
    assert found.role == "MEMBER"
    assert await sql_store.find_user_by_email("A@example.com") is None


async def test_duplicate_email_rejected(sql_store):
    await _user(sql_store)
    with pytest.raises(EmailInUseError):
        await _user(sql_store)
    assert len(await sql_store.list_users()) == 1


async def test_entity_survives_failed_operation(sql_store):
    user = await _user(sql_store, "keep@example.com")
    with pytest.raises(EmailInUseError):
        await _user(sql_store, "keep@example.com")
    assert user.email == "keep@example.com"


async def test_update_assignee(sql_store):
    owner = await _user(sql_store)
    task = await sql_store.create_task("T1", None, owner.id)

    updated = await sql_store.update_task_assignee(task.id, owner.id)
    cleared = await sql_store.update_task_assignee(task.id, None)

    assert updated.assigned_to_id == owner.id
    assert cleared.assigned_to_id is None


async def test_update_assignee_missing_task(sql_store):
    owner = await _user(sql_store)
    assert await sql_store.update_task_assignee(uuid4(), owner.id) is None


async def test_update_fields(sql_store):
    owner = await _user(sql_store)
    task = await sql_store.create_task("T1", None, owner.id)

    updated = await sql_store.update_task_fields(task.id, title="T2", completed=True)

    assert updated.title == "T2"
    assert updated.completed is True
    assert await sql_store.update_task_fields(uuid4(), title="x") is None


async def test_delete_task_reports_rowcount(sql_store):
    owner = await _user(sql_store)
    task = await sql_store.create_task("T1", None, owner.id)

    assert await sql_store.delete_task(task.id) is True
    assert await sql_store.delete_task(task.id) is False
    assert await sql_store.find_task_by_id(task.id) is None


async def test_pending_lifecycle(sql_store):
    owner = await _user(sql_store)
    task = await sql_store.create_task("T1", None, owner.id)
    first = await sql_store.create_pending_assignment("b@x.com", task.id, owner.id)
    second = await sql_store.create_pending_assignment("b@x.com", task.id, owner.id)
    await sql_store.create_pending_assignment("B@x.com", task.id, owner.id)

    records = await sql_store.find_pending_by_email("b@x.com")

    assert [r.id for r in records] == [first.id, second.id]
    assert (await sql_store.find_pending_by_id(first.id)).email == "b@x.com"
    assert len(await sql_store.list_pending(invited_by_id=owner.id)) == 3
    assert await sql_store.list_pending(invited_by_id=uuid4()) == []

    assert await sql_store.delete_pending_assignment(first.id) is True
    assert await sql_store.delete_pending_assignment(first.id) is False


async def test_pending_survives_task_delete(sql_store):
    owner = await _user(sql_store)
    task = await sql_store.create_task("T1", None, owner.id)
    pending = await sql_store.create_pending_assignment("o@x.com", task.id, owner.id)

    await sql_store.delete_task(task.id)

    assert (await sql_store.find_pending_by_id(pending.id)).task_id == task.id


async def test_touch_pending(sql_store):
    owner = await _user(sql_store)
    task = await sql_store.create_task("T1", None, owner.id)
    pending = await sql_store.create_pending_assignment("t@x.com", task.id, owner.id)

    touched = await sql_store.touch_pending_assignment(pending.id)

    assert touched.id == pending.id
    assert await sql_store.touch_pending_assignment(uuid4()) is None


async def test_list_tasks_mine_filter(sql_store):
    alice = await _user(sql_store, "alice@x.com")
    bob = await _user(sql_store, "bob@x.com")
    own = await sql_store.create_task("Own", None, bob.id)
    given = await sql_store.create_task("Given", None, alice.id)
    await sql_store.create_task("Other", None, alice.id)
    await sql_store.update_task_assignee(given.id, bob.id)

    mine = await sql_store.list_tasks(user_id=bob.id)

    assert {t.id for t in mine} == {own.id, given.id}
