"""
Anonymous message handling.

Write path for messages: validate, persist, commit, then notify live
subscribers. Notification happens strictly after commit, so a subscriber
never sees a message that is not durably stored; a failed notification
never undoes the commit.
"""

from typing import Iterable, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.exceptions import (
    ContentTooLong,
    EmptyContent,
    MessageNotFound,
    MessagesDisabled,
    NotOwner,
    TransientError,
    UnknownRecipient,
)
from models.message import Message
from repositories.message_repository import MessageFilter, MessageRepository
from repositories.profile_repository import ProfileRepository
from schemas.message import MessageOut
from services.fanout import MessageFanout, message_fanout

logger = structlog.get_logger(__name__)


class MessageService:
    """Create, list, flag and delete anonymous messages."""

    def __init__(self, db: AsyncSession, fanout: Optional[MessageFanout] = None):
        self.db = db
        self.fanout = fanout or message_fanout
        self.message_repo = MessageRepository(db)
        self.profile_repo = ProfileRepository(db)

    def _validate_content(self, content: str) -> None:
        if not content or not content.strip():
            raise EmptyContent()
        if len(content) > settings.MAX_MESSAGE_LENGTH:
            raise ContentTooLong(
                f"Message content must be at most {settings.MAX_MESSAGE_LENGTH} characters"
            )

    async def create_message(self, recipient_id: str, content: str) -> Message:
        """
        Store an anonymous message and announce it to the recipient's live sessions.

        Raises:
            EmptyContent / ContentTooLong: invalid content, nothing written
            UnknownRecipient: no such profile, nothing written
            MessagesDisabled: the recipient switched anonymous messages off
        """
        self._validate_content(content)

        recipient = await self.profile_repo.get_by_id(recipient_id)
        if recipient is None:
            raise UnknownRecipient()
        if not recipient.allow_anonymous_messages:
            raise MessagesDisabled()

        message = await self.message_repo.create(recipient_id=recipient_id, content=content)
        await self.db.commit()

        logger.info("message_created", message_id=message.id, recipient_id=recipient_id)

        self._notify(message)
        return message

    def _notify(self, message: Message) -> None:
        """Publish a committed message. Failures are logged, never raised."""
        try:
            delivered = self.fanout.publish(message.recipient_id, MessageOut.model_validate(message))
        except TransientError as exc:
            logger.warning(
                "message_fanout_failed",
                message_id=message.id,
                recipient_id=message.recipient_id,
                error=exc.code,
            )
            return
        except Exception:
            # Already committed; the sender must still see success
            logger.exception(
                "message_fanout_error",
                message_id=message.id,
                recipient_id=message.recipient_id,
            )
            return

        if delivered:
            logger.debug("message_fanned_out", message_id=message.id, subscribers=delivered)

    async def list_messages(
        self,
        recipient_id: str,
        message_filter: MessageFilter = MessageFilter.ALL,
    ) -> list[Message]:
        """A recipient's messages, newest first."""
        return await self.message_repo.list_for_recipient(recipient_id, message_filter)

    async def mark_read(self, message_ids: Iterable[str], requester_id: str) -> int:
        """Flag the requester's messages as read; other ids are ignored."""
        updated = await self.message_repo.mark_read(message_ids, requester_id)
        await self.db.commit()
        return updated

    async def _require_owned(self, message_id: str, requester_id: str) -> Message:
        # Missing and foreign messages are rejected the same way
        message = await self.message_repo.get_by_id(message_id)
        if message is None or message.recipient_id != requester_id:
            raise NotOwner()
        return message

    async def mark_answered(self, message_id: str, requester_id: str, answered: bool = True) -> None:
        """
        Flip is_answered on one of the requester's messages.

        Raises:
            NotOwner: missing message or not the requester's
            MessageNotFound: deleted concurrently
        """
        await self._require_owned(message_id, requester_id)

        if await self.message_repo.set_answered(message_id, requester_id, answered) == 0:
            await self.db.rollback()
            raise MessageNotFound()
        await self.db.commit()

    async def delete_message(self, message_id: str, requester_id: str) -> None:
        """
        Delete one of the requester's messages.

        Raises:
            NotOwner: missing message or not the requester's
            MessageNotFound: deleted concurrently
        """
        await self._require_owned(message_id, requester_id)

        if await self.message_repo.delete(message_id, requester_id) == 0:
            await self.db.rollback()
            raise MessageNotFound()
        await self.db.commit()

        logger.info("message_deleted", message_id=message_id, recipient_id=requester_id)
