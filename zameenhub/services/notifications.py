"""
In-process publish/subscribe channel for approval decisions.

Each subscriber gets its own bounded queue keyed by the profile it watches.
A subscription lives as long as its consumer (usually a websocket) and is
removed from the notifier on ``unsubscribe()`` or when its context exits.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional, Set
import asyncio
import logging
import uuid

from zameenhub.database import utcnow
from zameenhub.models.profile import ApprovalStatus

logger = logging.getLogger(__name__)

PROPERTY_SUBJECT = "property"
DEALER_SUBJECT = "dealer"


@dataclass
class ApprovalEvent:
    """An admin decision about a property or a dealer profile."""

    owner_id: uuid.UUID
    subject_type: str
    subject_id: uuid.UUID
    # None when a role change took the dealer status away
    approval_status: Optional[ApprovalStatus]
    title: Optional[str] = None
    occurred_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict:
        return {
            "type": "approval_status_changed",
            "owner_id": str(self.owner_id),
            "subject_type": self.subject_type,
            "subject_id": str(self.subject_id),
            "approval_status": self.approval_status.value if self.approval_status else None,
            "title": self.title,
            "occurred_at": self.occurred_at.isoformat(),
        }


class Subscription:
    """
    Handle returned by ``ApprovalNotifier.subscribe``.

    Iterate it with ``async for`` to receive events; iteration stops once the
    subscription is cancelled.
    """

    def __init__(self, notifier: "ApprovalNotifier", owner_id: uuid.UUID, queue_size: int):
        self.owner_id = owner_id
        self._notifier = notifier
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=queue_size)
        self._closed = False

    @property
    def active(self) -> bool:
        return not self._closed

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def deliver(self, event: ApprovalEvent) -> bool:
        """Queue an event. Returns False if the subscription is closed or full."""
        if self._closed:
            return False
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning(
                f"Dropping approval event {event.subject_type}:{event.subject_id} "
                f"for {self.owner_id}: subscriber queue is full"
            )
            return False
        return True

    async def get(self) -> Optional[ApprovalEvent]:
        """Wait for the next event. Returns None once unsubscribed."""
        if self._closed and self._queue.empty():
            return None
        return await self._queue.get()

    def unsubscribe(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._notifier._remove(self)
        # Wake a consumer blocked in get()
        if not self._queue.full():
            self._queue.put_nowait(None)

    def __aiter__(self):
        return self

    async def __anext__(self) -> ApprovalEvent:
        event = await self.get()
        if event is None:
            raise StopAsyncIteration
        return event

    async def __aenter__(self) -> "Subscription":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.unsubscribe()


class ApprovalNotifier:
    """
    Fan-out of approval events to the subscriptions of the affected owner.
    """

    def __init__(self, queue_size: int = 100):
        self.queue_size = queue_size
        self._subscriptions: Dict[uuid.UUID, Set[Subscription]] = {}

    def subscribe(self, owner_id: uuid.UUID) -> Subscription:
        subscription = Subscription(self, owner_id, self.queue_size)
        self._subscriptions.setdefault(owner_id, set()).add(subscription)
        logger.debug(f"Approval subscription opened for {owner_id}")
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        subscribers = self._subscriptions.get(subscription.owner_id)
        if subscribers is None:
            return
        subscribers.discard(subscription)
        if not subscribers:
            del self._subscriptions[subscription.owner_id]
        logger.debug(f"Approval subscription closed for {subscription.owner_id}")

    def publish(self, event: ApprovalEvent) -> int:
        """
        Deliver an event to every live subscription of ``event.owner_id``.

        Returns:
            Number of subscriptions that accepted the event
        """
        delivered = 0
        for subscription in list(self._subscriptions.get(event.owner_id, ())):
            if subscription.deliver(event):
                delivered += 1

        logger.info(
            f"Published {event.subject_type} approval '{event.to_dict()['approval_status']}' "
            f"for {event.subject_id} to {delivered} subscriber(s)"
        )
        return delivered

    def subscriber_count(self, owner_id: Optional[uuid.UUID] = None) -> int:
        if owner_id is not None:
            return len(self._subscriptions.get(owner_id, ()))
        return sum(len(subscribers) for subscribers in self._subscriptions.values())

    def close(self) -> None:
        """Cancel every subscription. Called on application shutdown."""
        for subscribers in list(self._subscriptions.values()):
            for subscription in list(subscribers):
                subscription.unsubscribe()
