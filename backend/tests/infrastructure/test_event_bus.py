"""Event Bus — verifies topic routing, bounded queues and unsubscribe semantics.

Invariants:
    - Subscribers only receive topics they asked for
    - No backlog: events published before subscribe are never seen
    - Full queue drops the oldest event and counts it; the subscriber stays connected
    - unsubscribe is idempotent and wakes blocked consumers
"""

import asyncio
from uuid import uuid4

import pytest

from app.core.domain_types import Topic
from app.infrastructure.event_bus import EventBus
from app.schemas.events import TaskDeletedEvent


def _deleted(task_id=None) -> TaskDeletedEvent:
    return TaskDeletedEvent(task_id=task_id or uuid4())


async def test_publish_reaches_subscriber_of_topic():
    bus = EventBus()
    sub = bus.subscribe(Topic.TASK_DELETED)
    event = _deleted()

    assert bus.publish(event) == 1
    assert await sub.get() is event


async def test_other_topics_not_delivered():
    bus = EventBus()
    sub = bus.subscribe(Topic.TASK_CREATED)

    assert bus.publish(_deleted()) == 0
    assert sub.pending == 0


def test_publish_without_subscribers_returns_zero():
    assert EventBus().publish(_deleted()) == 0


async def test_no_backlog_for_late_subscriber():
    bus = EventBus()
    bus.publish(_deleted())
    sub = bus.subscribe(Topic.TASK_DELETED)
    assert sub.pending == 0


async def test_subscribe_accepts_wire_names():
    bus = EventBus()
    sub = bus.subscribe("taskDeleted", "userCreated")
    assert sub.topics == frozenset({Topic.TASK_DELETED, Topic.USER_CREATED})


def test_subscribe_requires_a_topic():
    with pytest.raises(ValueError):
        EventBus().subscribe()


def test_unknown_topic_rejected():
    with pytest.raises(ValueError):
        EventBus().subscribe("taskExploded")


def test_queue_size_must_be_positive():
    with pytest.raises(ValueError):
        EventBus(queue_size=0)


async def test_full_queue_drops_oldest_and_counts():
    bus = EventBus(queue_size=2)
    sub = bus.subscribe(Topic.TASK_DELETED)
    first, second, third = _deleted(), _deleted(), _deleted()

    for event in (first, second, third):
        assert bus.publish(event) == 1

    assert sub.dropped == 1
    assert not sub.closed
    assert await sub.get() is second
    assert await sub.get() is third


async def test_fan_out_to_every_subscriber():
    bus = EventBus()
    a = bus.subscribe(Topic.TASK_DELETED)
    b = bus.subscribe(Topic.TASK_DELETED, Topic.TASK_CREATED)
    event = _deleted()

    assert bus.publish(event) == 2
    assert await a.get() is event
    assert await b.get() is event


async def test_unsubscribe_is_idempotent():
    bus = EventBus()
    sub = bus.subscribe(Topic.TASK_DELETED, Topic.TASK_UPDATED)
    bus.unsubscribe(sub)
    bus.unsubscribe(sub)
    sub.close()

    assert sub.closed
    assert bus.subscriber_count() == 0
    assert bus.publish(_deleted()) == 0


async def test_close_wakes_blocked_consumer():
    bus = EventBus()
    sub = bus.subscribe(Topic.TASK_DELETED)
    waiter = asyncio.create_task(sub.get())
    await asyncio.sleep(0)

    sub.close()

    assert await asyncio.wait_for(waiter, timeout=1) is None


async def test_async_iteration_ends_on_close():
    bus = EventBus()
    sub = bus.subscribe(Topic.TASK_DELETED)
    event = _deleted()
    bus.publish(event)
    sub.close()

    received = [e async for e in sub]
    assert received == [event]


async def test_close_on_full_queue_does_not_count_as_drop():
    bus = EventBus(queue_size=1)
    sub = bus.subscribe(Topic.TASK_DELETED)
    bus.publish(_deleted())
    sub.close()

    assert sub.dropped == 0
    assert await sub.get() is None


def test_subscriber_count_per_topic_and_unique_total():
    bus = EventBus()
    bus.subscribe(Topic.TASK_DELETED, Topic.TASK_CREATED)
    bus.subscribe(Topic.TASK_DELETED)

    assert bus.subscriber_count(Topic.TASK_DELETED) == 2
    assert bus.subscriber_count(Topic.TASK_CREATED) == 1
    assert bus.subscriber_count(Topic.USER_CREATED) == 0
    assert bus.subscriber_count() == 2


async def test_unsubscribe_during_publish_is_safe():
    bus = EventBus()
    subs = [bus.subscribe(Topic.TASK_DELETED) for _ in range(3)]

    original = subs[0].deliver

    def deliver_and_unsubscribe_others(event):
        for other in subs[1:]:
            bus.unsubscribe(other)
        return original(event)

    subs[0].deliver = deliver_and_unsubscribe_others
    delivered = bus.publish(_deleted())

    assert 1 <= delivered <= 3
    assert bus.subscriber_count(Topic.TASK_DELETED) == 1
