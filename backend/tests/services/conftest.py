"""Service test fixtures — in-memory store, real Event Bus, resolver under test.

Invariants:
    - Every test gets a fresh FakeDirectoryStore and EventBus
    - The resolver and emitter are the production classes
"""

import pytest

from app.infrastructure.event_bus import EventBus
from app.services.assignment_resolver import AssignmentResolver
from app.services.notification_emitter import NotificationEmitter
from tests.services.fakes import FakeDirectoryStore


@pytest.fixture
def store():
    return FakeDirectoryStore()


@pytest.fixture
def bus():
    return EventBus(queue_size=50)


@pytest.fixture
def emitter(bus):
    return NotificationEmitter(bus)


@pytest.fixture
def resolver(store, emitter):
    return AssignmentResolver(store, emitter)


@pytest.fixture
def admin(store):
    return store.add_user("admin@example.com", name="Admin", role="ADMIN")


@pytest.fixture
def task(store, admin):
    return store.add_task("T1", admin.id)
