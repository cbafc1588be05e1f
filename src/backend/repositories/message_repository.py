"""
Message repository for database operations.

Time-range helpers take UTC datetimes and bound the scan to one
recipient's window; nothing here walks a recipient's full history.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Iterable, Optional

from sqlalchemy import and_, delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from core.clock import as_utc
from models.message import Message


class MessageFilter(str, Enum):
    """Inbox views."""

    ALL = "all"
    UNREAD = "unread"
    ANSWERED = "answered"


class MessageRepository:
    """Repository for message database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _get_rowcount(self, result: Any) -> int:
        """Safely get rowcount from result."""
        return getattr(result, "rowcount", 0) or 0

    async def get_by_id(self, message_id: str) -> Optional[Message]:
        """Get a message by ID."""
        result = await self.db.execute(select(Message).where(Message.id == message_id))
        return result.scalar_one_or_none()

    async def create(self, recipient_id: str, content: str) -> Message:
        """Create a message. No sender information is accepted or stored."""
        message = Message(
            recipient_id=recipient_id,
            content=content,
            is_read=False,
            is_answered=False,
        )

        self.db.add(message)
        await self.db.flush()
        await self.db.refresh(message)

        return message

    async def list_for_recipient(
        self,
        recipient_id: str,
        message_filter: MessageFilter = MessageFilter.ALL,
    ) -> list[Message]:
        """List a recipient's messages, newest first."""
        query = select(Message).where(Message.recipient_id == recipient_id)

        if message_filter == MessageFilter.UNREAD:
            query = query.where(Message.is_read == False)  # noqa: E712
        elif message_filter == MessageFilter.ANSWERED:
            query = query.where(Message.is_answered == True)  # noqa: E712

        query = query.order_by(Message.created_at.desc(), Message.id.desc())

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def mark_read(self, message_ids: Iterable[str], recipient_id: str) -> int:
        """Flag messages as read. Only the recipient's own unread messages change."""
        ids = list(set(message_ids))
        if not ids:
            return 0

        result = await self.db.execute(
            update(Message)
            .where(
                and_(
                    Message.id.in_(ids),
                    Message.recipient_id == recipient_id,
                    Message.is_read == False,  # noqa: E712
                )
            )
            .values(is_read=True)
        )
        return self._get_rowcount(result)

    async def set_answered(self, message_id: str, recipient_id: str, answered: bool = True) -> int:
        """Flip is_answered on one of the recipient's messages."""
        result = await self.db.execute(
            update(Message)
            .where(and_(Message.id == message_id, Message.recipient_id == recipient_id))
            .values(is_answered=answered)
        )
        return self._get_rowcount(result)

    async def delete(self, message_id: str, recipient_id: str) -> int:
        """Delete one of the recipient's messages."""
        result = await self.db.execute(
            delete(Message).where(
                and_(Message.id == message_id, Message.recipient_id == recipient_id)
            )
        )
        return self._get_rowcount(result)

    async def count_for_recipient(self, recipient_id: str) -> int:
        """Total number of messages a recipient holds."""
        result = await self.db.execute(
            select(func.count(Message.id)).where(Message.recipient_id == recipient_id)
        )
        return result.scalar() or 0

    async def count_between(self, recipient_id: str, start: datetime, end: datetime) -> int:
        """Count messages with start <= created_at <= end (both inclusive)."""
        result = await self.db.execute(
            select(func.count(Message.id)).where(
                and_(
                    Message.recipient_id == recipient_id,
                    Message.created_at >= as_utc(start),
                    Message.created_at <= as_utc(end),
                )
            )
        )
        return result.scalar() or 0

    async def timestamps_between(
        self,
        recipient_id: str,
        start: datetime,
        end: datetime,
    ) -> list[datetime]:
        """created_at of every message in [start, end], as UTC datetimes."""
        result = await self.db.execute(
            select(Message.created_at).where(
                and_(
                    Message.recipient_id == recipient_id,
                    Message.created_at >= as_utc(start),
                    Message.created_at <= as_utc(end),
                )
            )
        )
        return [as_utc(created_at) for created_at in result.scalars().all()]
