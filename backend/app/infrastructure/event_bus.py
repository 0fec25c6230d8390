"""Event Bus — in-process publish/subscribe for live task and invitation events.

Invariants:
    - publish() never awaits: delivery is put_nowait into per-subscription queues
    - A subscription only sees events published after it subscribed (no backlog)
    - Each subscription queue is bounded; on overflow the OLDEST queued event is
      dropped and Subscription.dropped is incremented (never disconnect)
    - unsubscribe() is idempotent and safe while a publish is iterating
    - Closing a subscription wakes any consumer blocked on it; iteration ends

Design Decisions:
    - One instance per process, created in the app lifespan and injected;
      no module-level singleton
    - Single-process only: subscribers connected to another worker never see
      these events
"""

import asyncio
import logging
from collections import defaultdict
from collections.abc import Iterable

from app.core.domain_types import Topic
from app.schemas.events import LiveEvent

logger = logging.getLogger(__name__)

_CLOSED = object()


class Subscription:
    """Handle for one live listener on one or more topics."""

    def __init__(self, bus: "EventBus", topics: frozenset[Topic], maxsize: int):
        self.topics = topics
        self.dropped = 0
        self._bus = bus
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        """Events queued but not yet consumed."""
        return self._queue.qsize()

    def deliver(self, event: LiveEvent) -> bool:
        """Queue an event for this subscriber. Returns False once closed."""
        if self._closed:
            return False
        self._put_dropping_oldest(event)
        return True

    async def get(self) -> LiveEvent | None:
        """Next event, or None once the subscription is closed."""
        item = await self._queue.get()
        if item is _CLOSED:
            # keep the marker for any other waiter
            self._put_dropping_oldest(_CLOSED)
            return None
        return item

    def close(self) -> None:
        self._bus.unsubscribe(self)

    def _mark_closed(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._put_dropping_oldest(_CLOSED)

    def _put_dropping_oldest(self, item: object) -> None:
        while True:
            try:
                self._queue.put_nowait(item)
                return
            except asyncio.QueueFull:
                self._queue.get_nowait()
                if item is not _CLOSED:
                    self.dropped += 1

    def __aiter__(self):
        return self

    async def __anext__(self) -> LiveEvent:
        event = await self.get()
        if event is None:
            raise StopAsyncIteration
        return event


class EventBus:
    """Topic -> live subscriptions register."""

    def __init__(self, queue_size: int = 100):
        if queue_size < 1:
            raise ValueError("queue_size must be >= 1")
        self.queue_size = queue_size
        self._subscribers: dict[Topic, set[Subscription]] = defaultdict(set)

    def subscribe(self, *topics: Topic | str) -> Subscription:
        """Register a new listener. Accepts Topic members or their wire names."""
        resolved = _resolve_topics(topics)
        subscription = Subscription(self, resolved, self.queue_size)
        for topic in resolved:
            self._subscribers[topic].add(subscription)
        logger.debug(
            "Subscribed to %s", sorted(t.value for t in resolved),
        )
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        """Stop delivery to a subscription. Safe to call repeatedly."""
        for topic in subscription.topics:
            listeners = self._subscribers.get(topic)
            if listeners is not None:
                listeners.discard(subscription)
                if not listeners:
                    del self._subscribers[topic]
        subscription._mark_closed()

    def publish(self, event: LiveEvent) -> int:
        """Deliver to every current subscriber of event.topic. Returns count reached."""
        topic = event.topic
        targets = list(self._subscribers.get(topic, ()))
        delivered = 0
        for subscription in targets:
            if subscription.deliver(event):
                delivered += 1
        logger.debug(
            "Published %s", topic.value,
            extra={"topic": topic.value, "delivered": delivered},
        )
        return delivered

    def subscriber_count(self, topic: Topic | None = None) -> int:
        if topic is not None:
            return len(self._subscribers.get(topic, ()))
        unique: set[Subscription] = set()
        for listeners in self._subscribers.values():
            unique.update(listeners)
        return len(unique)


def _resolve_topics(topics: Iterable[Topic | str]) -> frozenset[Topic]:
    resolved = frozenset(Topic(t) for t in topics)
    if not resolved:
        raise ValueError("subscribe requires at least one topic")
    return resolved
