"""Pending Assignment Flow — end-to-end invite, register, resolve over HTTP.

Invariants:
    - Assign-by-email to an existing account assigns immediately
    - Assign-by-email to an unknown email stores an invitation, task unchanged
    - Registering with that email assigns every waiting task and clears invitations
    - Deleting a task leaves its invitations; registration reports them as task_missing
    - Only the inviter or an admin may list, resend or cancel an invitation

Design Decisions:
    - Durable state asserted through a fresh session, not the request session
"""

from uuid import UUID, uuid4

from sqlalchemy import select

from app.models.pending_assignment import PendingAssignment
from app.models.task import Task
from tests.api.http_helpers import auth, create_task


async def _pending_rows(session_factory, email: str) -> list[PendingAssignment]:
    async with session_factory() as session:
        result = await session.execute(
            select(PendingAssignment).where(PendingAssignment.email == email),
        )
        return list(result.scalars().all())


async def _task_row(session_factory, task_id: str) -> Task | None:
    async with session_factory() as session:
        result = await session.execute(
            select(Task).where(Task.id == UUID(task_id)),
        )
        return result.scalar_one_or_none()


async def _assign_by_email(client, owner, task_id, email):
    return await client.post(
        f"/api/v1/tasks/{task_id}/assign-by-email",
        json={"email": email}, headers=auth(owner),
    )


async def test_assign_by_email_existing_user(client, register, event_bus, test_session_factory):
    admin = await register("admin@example.com")
    bob = await register("bob@example.com")
    task = await create_task(client, admin)
    sub = event_bus.subscribe("taskUpdated", "pendingAssignmentCreated")

    res = await _assign_by_email(client, admin, task["id"], "bob@example.com")

    assert res.status_code == 200
    assert res.json()["assigned_to_id"] == bob["user"]["id"]
    assert await _pending_rows(test_session_factory, "bob@example.com") == []
    event = await sub.get()
    assert event.type == "taskUpdated"
    assert sub.pending == 0


async def test_invite_then_register_resolves(client, register, event_bus, test_session_factory):
    admin = await register("admin@example.com")
    task = await create_task(client, admin)
    sub = event_bus.subscribe("pendingAssignmentCreated")

    res = await _assign_by_email(client, admin, task["id"], "b@x.com")

    assert res.status_code == 200
    assert res.json()["assigned_to_id"] is None
    [row] = await _pending_rows(test_session_factory, "b@x.com")
    assert str(row.task_id) == task["id"]
    assert str(row.invited_by_id) == admin["user"]["id"]
    created = await sub.get()
    assert created.pending.email == "b@x.com"

    live = event_bus.subscribe("taskUpdated", "pendingAssignmentDeleted")
    bob = await register("b@x.com", name="Bob")

    assert bob["pending_resolution"]["resolved"] == 1
    assert await _pending_rows(test_session_factory, "b@x.com") == []
    stored = await _task_row(test_session_factory, task["id"])
    assert str(stored.assigned_to_id) == bob["user"]["id"]
    types = [(await live.get()).type for _ in range(2)]
    assert types == ["taskUpdated", "pendingAssignmentDeleted"]


async def test_register_resolves_multiple_tasks(client, register, test_session_factory):
    admin = await register("admin@example.com")
    t1 = await create_task(client, admin, title="T1")
    t2 = await create_task(client, admin, title="T2")
    await _assign_by_email(client, admin, t1["id"], "c@x.com")
    await _assign_by_email(client, admin, t2["id"], "c@x.com")

    carol = await register("c@x.com")

    assert carol["pending_resolution"]["resolved"] == 2
    for task in (t1, t2):
        stored = await _task_row(test_session_factory, task["id"])
        assert str(stored.assigned_to_id) == carol["user"]["id"]


async def test_deleted_task_invitation_reported_missing(client, register, test_session_factory):
    admin = await register("admin@example.com")
    task = await create_task(client, admin)
    await _assign_by_email(client, admin, task["id"], "e@x.com")
    await client.delete(f"/api/v1/tasks/{task['id']}", headers=auth(admin))

    assert len(await _pending_rows(test_session_factory, "e@x.com")) == 1

    erin = await register("e@x.com")

    summary = erin["pending_resolution"]
    assert summary["task_missing"] == 1
    assert summary["resolved"] == 0
    assert summary["outcomes"][0]["status"] == "task_missing"
    assert await _pending_rows(test_session_factory, "e@x.com") == []


async def test_assign_by_email_to_missing_task_is_404(client, register, test_session_factory):
    admin = await register("admin@example.com")
    res = await _assign_by_email(client, admin, uuid4(), "x@x.com")
    assert res.status_code == 404
    assert await _pending_rows(test_session_factory, "x@x.com") == []


async def test_assign_by_email_requires_rights(client, register, test_session_factory):
    admin = await register("admin@example.com")
    mallory = await register("mallory@example.com")
    task = await create_task(client, admin)

    res = await _assign_by_email(client, mallory, task["id"], "x@x.com")

    assert res.status_code == 403
    assert await _pending_rows(test_session_factory, "x@x.com") == []


async def test_invalid_email_rejected(client, register):
    admin = await register("admin@example.com")
    task = await create_task(client, admin)
    res = await _assign_by_email(client, admin, task["id"], "nope")
    assert res.status_code == 400


# ─── list / resend / cancel ───────────────────────────────────────

async def test_members_list_only_their_invitations(client, register, make_admin):
    alice = await register("alice@example.com")
    bob = await register("bob@example.com")
    boss = await register("boss@example.com")
    await make_admin(boss["user"]["id"])
    ta = await create_task(client, alice)
    tb = await create_task(client, bob)
    await _assign_by_email(client, alice, ta["id"], "one@x.com")
    await _assign_by_email(client, bob, tb["id"], "two@x.com")

    mine = await client.get("/api/v1/pending-assignments", headers=auth(alice))
    every = await client.get("/api/v1/pending-assignments", headers=auth(boss))

    assert [p["email"] for p in mine.json()] == ["one@x.com"]
    assert {p["email"] for p in every.json()} == {"one@x.com", "two@x.com"}


async def test_cancel_invitation(client, register, event_bus, test_session_factory):
    alice = await register("alice@example.com")
    task = await create_task(client, alice)
    await _assign_by_email(client, alice, task["id"], "gone@x.com")
    [row] = await _pending_rows(test_session_factory, "gone@x.com")
    sub = event_bus.subscribe("pendingAssignmentDeleted")

    res = await client.delete(
        f"/api/v1/pending-assignments/{row.id}", headers=auth(alice),
    )

    assert res.status_code == 204
    assert await _pending_rows(test_session_factory, "gone@x.com") == []
    event = await sub.get()
    assert event.reason.value == "cancelled"

    again = await client.delete(
        f"/api/v1/pending-assignments/{row.id}", headers=auth(alice),
    )
    assert again.status_code == 404


async def test_stranger_cannot_cancel_or_resend(client, register, test_session_factory):
    alice = await register("alice@example.com")
    mallory = await register("mallory@example.com")
    task = await create_task(client, alice)
    await _assign_by_email(client, alice, task["id"], "kept@x.com")
    [row] = await _pending_rows(test_session_factory, "kept@x.com")

    cancel = await client.delete(
        f"/api/v1/pending-assignments/{row.id}", headers=auth(mallory),
    )
    resend = await client.post(
        f"/api/v1/pending-assignments/{row.id}/resend", headers=auth(mallory),
    )

    assert cancel.status_code == resend.status_code == 403
    assert len(await _pending_rows(test_session_factory, "kept@x.com")) == 1


async def test_resend_returns_invitation(client, register, test_session_factory):
    alice = await register("alice@example.com")
    task = await create_task(client, alice)
    await _assign_by_email(client, alice, task["id"], "again@x.com")
    [row] = await _pending_rows(test_session_factory, "again@x.com")

    res = await client.post(
        f"/api/v1/pending-assignments/{row.id}/resend", headers=auth(alice),
    )

    assert res.status_code == 200
    assert res.json()["id"] == str(row.id)
    assert res.json()["email"] == "again@x.com"
