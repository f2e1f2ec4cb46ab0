"""Best-effort event fan-out to connected print stations."""

import asyncio
import logging
from typing import Any

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

NEW_JOB_EVENT = "print:new_job"
QUEUE_UPDATE_EVENT = "print:queue_update"


class QueueEvent(BaseModel):
    """A hint pushed to stations. Never authoritative; stations reconcile by claiming."""

    event: str
    data: dict[str, Any] = Field(default_factory=dict)


class Subscription:
    """A listener handle with its own bounded event buffer."""

    def __init__(self, name: str, max_pending: int = 32) -> None:
        self.name = name
        self._events: asyncio.Queue[QueueEvent] = asyncio.Queue(maxsize=max_pending)
        self.dropped = 0

    def deliver(self, event: QueueEvent) -> None:
        """Buffer an event without blocking. Drops the oldest event when full."""
        if self._events.full():
            try:
                self._events.get_nowait()
                self.dropped += 1
            except asyncio.QueueEmpty:
                pass
        self._events.put_nowait(event)

    async def get(self) -> QueueEvent:
        """Wait for the next event."""
        return await self._events.get()

    def pending(self) -> int:
        return self._events.qsize()


class QueueNotifier:
    """Holds the set of connected listeners and broadcasts queue events to them."""

    def __init__(self, max_pending: int = 32) -> None:
        self._max_pending = max_pending
        self._subscriptions: dict[str, Subscription] = {}

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def subscribe(self, name: str) -> Subscription:
        """Register a listener and return its handle."""
        subscription = Subscription(name, max_pending=self._max_pending)
        self._subscriptions[name] = subscription
        logger.info(f"Station listener {name} connected ({len(self._subscriptions)} total)")
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        """Remove a listener. Unknown listeners are ignored."""
        if self._subscriptions.pop(subscription.name, None) is not None:
            logger.info(f"Station listener {subscription.name} disconnected")

    def publish(self, event: QueueEvent) -> None:
        """Deliver an event to every listener. Never blocks."""
        for subscription in list(self._subscriptions.values()):
            subscription.deliver(event)

    def publish_new_job(self, job_id: str) -> None:
        self.publish(QueueEvent(event=NEW_JOB_EVENT, data={"jobId": job_id}))

    def publish_queue_update(self, pending_count: int) -> None:
        self.publish(QueueEvent(event=QUEUE_UPDATE_EVENT, data={"pendingCount": pending_count}))
