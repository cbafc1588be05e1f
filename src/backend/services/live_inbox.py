"""
Live inbox: the consuming side of the message fan-out.

The store is the only source of truth. A live inbox is a cache that is
rebuilt from a re-list on every (re)connect and then kept current from
fan-out events, deduplicated by message id because a message can arrive
both in the re-list and as an in-flight event.
"""

import asyncio
from dataclasses import dataclass, field
from typing import AsyncIterator, Awaitable, Callable, Iterable, Optional

import structlog

from core.config import settings
from schemas.message import MessageOut
from services.fanout import MessageFanout, SubscriptionError, SubscriptionState

logger = structlog.get_logger(__name__)

Relister = Callable[[], Awaitable[list[MessageOut]]]


class MessageInbox:
    """Client-held view of a recipient's messages, keyed by id."""

    def __init__(self) -> None:
        self._messages: dict[str, MessageOut] = {}

    def __len__(self) -> int:
        return len(self._messages)

    def __contains__(self, message_id: object) -> bool:
        return message_id in self._messages

    def apply(self, message: MessageOut) -> bool:
        """Add a pushed message. Returns False for one already held."""
        if message.id in self._messages:
            return False
        self._messages[message.id] = message
        return True

    def reconcile(self, listed: Iterable[MessageOut]) -> list[MessageOut]:
        """
        Replace the view with a fresh listing from the store.

        Returns the messages that were not held before.
        """
        fresh = {message.id: message for message in listed}
        added = [message for message_id, message in fresh.items() if message_id not in self._messages]
        self._messages = fresh
        return added

    def messages(self) -> list[MessageOut]:
        """Current view, newest first."""
        return sorted(
            self._messages.values(),
            key=lambda message: (message.created_at, message.id),
            reverse=True,
        )


@dataclass
class InboxUpdate:
    """A snapshot after (re)connecting, or a single new message."""

    kind: str  # "snapshot" | "message"
    messages: list[MessageOut] = field(default_factory=list)


class LiveInbox:
    """
    Follows one recipient's inbox across subscription failures.

    Each round subscribes first and re-lists second, so a message committed
    in between is seen by at least one of the two; the inbox drops the
    duplicate.
    """

    def __init__(
        self,
        fanout: MessageFanout,
        recipient_id: str,
        relist: Relister,
        reconnect_delay: Optional[float] = None,
        max_reconnects: Optional[int] = None,
    ):
        self.recipient_id = recipient_id
        self.inbox = MessageInbox()
        self.state = SubscriptionState.CONNECTING
        self.reconnects = 0
        self._fanout = fanout
        self._relist = relist
        self._reconnect_delay = (
            settings.FANOUT_RECONNECT_DELAY_SECONDS if reconnect_delay is None else reconnect_delay
        )
        self._max_reconnects = max_reconnects

    def close(self) -> None:
        self.state = SubscriptionState.CLOSED

    async def updates(self) -> AsyncIterator[InboxUpdate]:
        """Yield a snapshot per connection, then each new message once."""
        while self.state != SubscriptionState.CLOSED:
            try:
                subscription = self._fanout.subscribe(self.recipient_id)
            except SubscriptionError:
                self.state = SubscriptionState.CLOSED
                break

            try:
                self.inbox.reconcile(await self._relist())
                self.state = SubscriptionState.ACTIVE
                yield InboxUpdate(kind="snapshot", messages=self.inbox.messages())

                async for message in subscription:
                    if self.inbox.apply(message):
                        yield InboxUpdate(kind="message", messages=[message])
                    if self.state == SubscriptionState.CLOSED:
                        break
                else:
                    # Subscription ended without error: the hub is shutting down
                    self.state = SubscriptionState.CLOSED
            except SubscriptionError as exc:
                self.state = SubscriptionState.ERROR
                logger.info(
                    "live_inbox_subscription_lost",
                    recipient_id=self.recipient_id,
                    reason=str(exc),
                )
                if self._max_reconnects is not None and self.reconnects >= self._max_reconnects:
                    self.state = SubscriptionState.CLOSED
                    break
                self.state = SubscriptionState.RECONNECTING
                self.reconnects += 1
                await asyncio.sleep(self._reconnect_delay)
            finally:
                subscription.close()
