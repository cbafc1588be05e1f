"""
Realtime fan-out of newly created messages.

In-process broadcast hub keyed by recipient id. The message service
publishes after the message is committed; every live subscription for that
recipient gets the event.

Delivery contract:
- at-least-once, best effort; no replay for late subscribers
- consumers dedupe by message id (see services.live_inbox)
- each subscription has a bounded queue; a subscriber that falls behind is
  moved to ERROR and dropped, and must resubscribe and re-list
- publishing with no subscribers is not an error
"""

import asyncio
from collections import defaultdict
from enum import Enum
from typing import Any, Optional

import structlog

from core.config import settings
from core.exceptions import FanoutPublishFailed

logger = structlog.get_logger(__name__)


class SubscriptionState(str, Enum):
    """Subscription lifecycle: CONNECTING -> ACTIVE -> (ERROR -> RECONNECTING -> ACTIVE)* -> CLOSED."""

    CONNECTING = "connecting"
    ACTIVE = "active"
    ERROR = "error"
    RECONNECTING = "reconnecting"
    CLOSED = "closed"


class SubscriptionError(Exception):
    """The subscription was dropped; create a new one and re-list."""


_CLOSED = object()
_DROPPED = object()


class Subscription:
    """
    A live, non-restartable sequence of message events for one recipient.

    Iterate with ``async for``. Iteration ends when the subscription is
    closed and raises SubscriptionError when it was dropped.
    """

    def __init__(self, hub: "MessageFanout", recipient_id: str, queue_size: int):
        self.recipient_id = recipient_id
        self.state = SubscriptionState.CONNECTING
        self.error: Optional[str] = None
        self._hub = hub
        self._queue: asyncio.Queue[Any] = asyncio.Queue(maxsize=queue_size)
        self._finished = False

    def _deliver(self, event: Any) -> bool:
        if self.state != SubscriptionState.ACTIVE:
            return False
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            self._drop("subscriber fell behind")
            return False
        return True

    def _terminate(self, marker: object) -> None:
        # Pending events are discarded: the consumer reconciles by re-listing
        while not self._queue.empty():
            self._queue.get_nowait()
        self._queue.put_nowait(marker)

    def _drop(self, reason: str) -> None:
        self.state = SubscriptionState.ERROR
        self.error = reason
        self._hub._unregister(self)
        self._terminate(_DROPPED)
        logger.warning(
            "fanout_subscriber_dropped",
            recipient_id=self.recipient_id,
            reason=reason,
        )

    def close(self) -> None:
        """Stop receiving events. Safe to call more than once."""
        if self.state == SubscriptionState.CLOSED:
            return
        was_dropped = self.state == SubscriptionState.ERROR
        self.state = SubscriptionState.CLOSED
        self._hub._unregister(self)
        if not was_dropped:
            self._terminate(_CLOSED)

    def __aiter__(self) -> "Subscription":
        return self

    async def __anext__(self) -> Any:
        if self._finished:
            raise StopAsyncIteration

        item = await self._queue.get()
        if item is _CLOSED:
            self._finished = True
            raise StopAsyncIteration
        if item is _DROPPED:
            self._finished = True
            raise SubscriptionError(self.error or "subscription dropped")
        return item

    async def __aenter__(self) -> "Subscription":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.close()


class MessageFanout:
    """Broadcast channel per recipient id."""

    def __init__(self, queue_size: Optional[int] = None):
        self.queue_size = queue_size or settings.FANOUT_QUEUE_SIZE
        self._subscriptions: dict[str, set[Subscription]] = defaultdict(set)
        self._closed = False

    @property
    def is_closed(self) -> bool:
        return self._closed

    def subscribe(self, recipient_id: str) -> Subscription:
        """Open a subscription for a recipient's new messages."""
        if self._closed:
            raise SubscriptionError("fan-out is shut down")

        subscription = Subscription(self, recipient_id, self.queue_size)
        self._subscriptions[recipient_id].add(subscription)
        subscription.state = SubscriptionState.ACTIVE
        logger.debug("fanout_subscribed", recipient_id=recipient_id)
        return subscription

    def _unregister(self, subscription: Subscription) -> None:
        live = self._subscriptions.get(subscription.recipient_id)
        if not live:
            return
        live.discard(subscription)
        if not live:
            self._subscriptions.pop(subscription.recipient_id, None)

    def publish(self, recipient_id: str, event: Any) -> int:
        """
        Push an event to every live subscription of a recipient.

        Returns the number of subscriptions that accepted it (0 is fine).

        Raises:
            FanoutPublishFailed: if the hub has been shut down
        """
        if self._closed:
            raise FanoutPublishFailed()

        targets = list(self._subscriptions.get(recipient_id, ()))
        delivered = sum(1 for subscription in targets if subscription._deliver(event))

        logger.debug(
            "fanout_published",
            recipient_id=recipient_id,
            subscribers=len(targets),
            delivered=delivered,
        )
        return delivered

    def subscriber_count(self, recipient_id: str) -> int:
        return len(self._subscriptions.get(recipient_id, ()))

    async def close(self) -> None:
        """Shut down: end every subscription and refuse new publishes."""
        self._closed = True
        for subscriptions in list(self._subscriptions.values()):
            for subscription in list(subscriptions):
                subscription.close()
        self._subscriptions.clear()
        logger.info("fanout_closed")


# Global instance
message_fanout = MessageFanout()


def get_fanout() -> MessageFanout:
    """Dependency for getting the fan-out hub."""
    return message_fanout
