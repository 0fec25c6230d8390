"""Live Events — SSE stream of Event Bus topics for connected clients.

Invariants:
    - One bus subscription per stream, opened on the first pull and closed when
      the stream ends for any reason (a stream closed unstarted never subscribes)
    - Only events published after the stream opened are delivered (no backlog)
    - A keepalive comment is sent whenever no event arrived within sse_keepalive_seconds
    - Dropped events (slow client, queue full) are reported once per gap as a
      `dropped` frame so clients know to refetch

Design Decisions:
    - StreamingResponse for SSE: event_generator yields formatted SSE lines
    - stream_subscription is a plain async generator so it is testable without
      an HTTP client
"""

import asyncio
import json
import logging
from collections.abc import Iterable
from typing import AsyncGenerator

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse

from app.api.dependencies import get_current_user, get_event_bus
from app.config import Settings, get_settings
from app.core.domain_types import Topic
from app.infrastructure.event_bus import EventBus, Subscription
from app.models.user import User

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/events", tags=["events"])

# SSE headers prevent proxy/browser buffering of streamed events.
SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no",
    "Connection": "keep-alive",
}

KEEPALIVE_LINE = ": keepalive\n\n"


def sse_line(event: dict) -> str:
    """Format event as SSE data line."""
    return f"data: {json.dumps(event, ensure_ascii=False)}\n\n"


async def stream_subscription(
    bus: EventBus, topics: Iterable[Topic], keepalive_seconds: float,
) -> AsyncGenerator[str, None]:
    """Subscribe, then yield SSE lines until the subscription closes or the client leaves."""
    subscription: Subscription | None = None
    reported_drops = 0
    try:
        subscription = bus.subscribe(*topics)
        while True:
            try:
                event = await asyncio.wait_for(
                    subscription.get(), timeout=keepalive_seconds,
                )
            except asyncio.TimeoutError:
                yield KEEPALIVE_LINE
                continue
            if event is None:
                return
            if subscription.dropped > reported_drops:
                yield sse_line({
                    "type": "dropped",
                    "data": {"count": subscription.dropped - reported_drops},
                })
                reported_drops = subscription.dropped
            yield sse_line(event.to_sse_event())
    except asyncio.CancelledError:
        logger.info("Client disconnected from live events stream")
        raise
    finally:
        if subscription is not None:
            subscription.close()


@router.get("/stream")
async def stream_events(
    topic: list[Topic] = Query(default=list(Topic)),
    user: User = Depends(get_current_user),
    bus: EventBus = Depends(get_event_bus),
    settings: Settings = Depends(get_settings),
):
    """SSE stream of the requested topics (all topics when none given)."""
    logger.info(
        "Live events stream opened",
        extra={"user_id": str(user.id), "topic": ",".join(t.value for t in topic)},
    )
    return StreamingResponse(
        stream_subscription(bus, topic, settings.sse_keepalive_seconds),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
