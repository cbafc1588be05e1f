"""
Tests for the message service.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest


@pytest.mark.unit
class TestCreateMessage:
    """Test sending anonymous messages."""

    async def test_create_and_list(self, db_session, make_profile, fanout) -> None:
        from services.message_service import MessageService

        await make_profile("recipient-1")
        service = MessageService(db_session, fanout)

        message = await service.create_message("recipient-1", "hello")
        messages = await service.list_messages("recipient-1")

        assert [m.id for m in messages] == [message.id]
        assert messages[0].is_read is False

    async def test_newest_first_even_within_one_tick(self, db_session, make_profile, fanout) -> None:
        from services.message_service import MessageService

        await make_profile("recipient-1")
        service = MessageService(db_session, fanout)

        sent = [(await service.create_message("recipient-1", f"m{n}")).id for n in range(5)]
        listed = [m.id for m in await service.list_messages("recipient-1")]

        assert listed == list(reversed(sent))

    @pytest.mark.parametrize("content", ["", "   ", "\n\t"])
    async def test_empty_content(self, db_session, make_profile, fanout, content: str) -> None:
        from core.exceptions import EmptyContent
        from services.message_service import MessageService

        await make_profile("recipient-1")
        service = MessageService(db_session, fanout)

        with pytest.raises(EmptyContent):
            await service.create_message("recipient-1", content)
        assert await service.list_messages("recipient-1") == []

    async def test_content_too_long(self, db_session, make_profile, fanout) -> None:
        from core.config import settings
        from core.exceptions import ContentTooLong
        from services.message_service import MessageService

        await make_profile("recipient-1")
        service = MessageService(db_session, fanout)

        with pytest.raises(ContentTooLong):
            await service.create_message("recipient-1", "x" * (settings.MAX_MESSAGE_LENGTH + 1))

    async def test_unknown_recipient_writes_nothing(self, db_session, fanout) -> None:
        from core.exceptions import UnknownRecipient
        from models.message import Message
        from services.message_service import MessageService
        from sqlalchemy import func, select

        with pytest.raises(UnknownRecipient):
            await MessageService(db_session, fanout).create_message("nobody", "hi")

        result = await db_session.execute(select(func.count(Message.id)))
        assert result.scalar() == 0

    async def test_recipient_disabled_messages(self, db_session, make_profile, fanout) -> None:
        from core.exceptions import MessagesDisabled
        from services.message_service import MessageService

        await make_profile("recipient-1", allow_anonymous_messages=False)

        with pytest.raises(MessagesDisabled):
            await MessageService(db_session, fanout).create_message("recipient-1", "hi")


@pytest.mark.unit
class TestMessageFanoutIntegration:
    """Test that committed messages reach live subscribers."""

    async def test_subscriber_receives_created_message(self, db_session, make_profile, fanout) -> None:
        from services.message_service import MessageService

        await make_profile("recipient-1")
        subscription = fanout.subscribe("recipient-1")

        message = await MessageService(db_session, fanout).create_message("recipient-1", "hello")
        event = await asyncio.wait_for(subscription.__anext__(), timeout=1)

        assert event.id == message.id
        assert event.content == "hello"
        subscription.close()

    async def test_publish_happens_after_commit(self, db_session, make_profile) -> None:
        from services.message_service import MessageService

        await make_profile("recipient-1")
        seen_in_transaction = []
        hub = MagicMock()
        hub.publish = MagicMock(
            side_effect=lambda *args: seen_in_transaction.append(db_session.in_transaction()) or 1
        )

        await MessageService(db_session, hub).create_message("recipient-1", "hello")

        hub.publish.assert_called_once()
        assert seen_in_transaction == [False]

    async def test_failed_publish_keeps_message(self, db_session, make_profile, fanout) -> None:
        from services.message_service import MessageService

        await make_profile("recipient-1")
        await fanout.close()
        service = MessageService(db_session, fanout)

        message = await service.create_message("recipient-1", "still stored")

        assert [m.id for m in await service.list_messages("recipient-1")] == [message.id]

    async def test_unexpected_publish_error_is_not_raised(self, db_session, make_profile) -> None:
        from services.message_service import MessageService

        await make_profile("recipient-1")
        hub = MagicMock()
        hub.publish = MagicMock(side_effect=RuntimeError("hub broken"))
        service = MessageService(db_session, hub)

        message = await service.create_message("recipient-1", "still stored")

        hub.publish.assert_called_once()
        assert [m.id for m in await service.list_messages("recipient-1")] == [message.id]

    async def test_validation_failure_publishes_nothing(self, db_session, make_profile) -> None:
        from core.exceptions import EmptyContent
        from services.message_service import MessageService

        await make_profile("recipient-1")
        hub = MagicMock()

        with pytest.raises(EmptyContent):
            await MessageService(db_session, hub).create_message("recipient-1", " ")
        hub.publish.assert_not_called()


@pytest.mark.unit
class TestOwnerOperations:
    """Test read/answered/delete scoping."""

    async def test_mark_read_counts_only_own(self, db_session, make_profile, fanout) -> None:
        from services.message_service import MessageService

        await make_profile("recipient-1")
        await make_profile("recipient-2")
        service = MessageService(db_session, fanout)
        mine = (await service.create_message("recipient-1", "a")).id
        theirs = (await service.create_message("recipient-2", "b")).id

        assert await service.mark_read([mine, theirs], "recipient-1") == 1

    async def test_mark_answered(self, db_session, make_profile, fanout) -> None:
        from repositories.message_repository import MessageFilter
        from services.message_service import MessageService

        await make_profile("recipient-1")
        service = MessageService(db_session, fanout)
        message_id = (await service.create_message("recipient-1", "a")).id

        await service.mark_answered(message_id, "recipient-1")
        answered = await service.list_messages("recipient-1", MessageFilter.ANSWERED)

        assert [m.id for m in answered] == [message_id]

    async def test_delete_by_other_profile(self, db_session, make_profile, fanout) -> None:
        from core.exceptions import NotOwner
        from services.message_service import MessageService

        await make_profile("recipient-1")
        await make_profile("intruder")
        service = MessageService(db_session, fanout)
        message_id = (await service.create_message("recipient-1", "a")).id

        with pytest.raises(NotOwner):
            await service.delete_message(message_id, "intruder")
        assert len(await service.list_messages("recipient-1")) == 1

    async def test_delete_missing_is_not_owner(self, db_session, fanout) -> None:
        from core.exceptions import NotOwner
        from services.message_service import MessageService

        with pytest.raises(NotOwner):
            await MessageService(db_session, fanout).delete_message("missing", "recipient-1")

    async def test_delete(self, db_session, make_profile, fanout) -> None:
        from services.message_service import MessageService

        await make_profile("recipient-1")
        service = MessageService(db_session, fanout)
        message_id = (await service.create_message("recipient-1", "a")).id

        await service.delete_message(message_id, "recipient-1")

        assert await service.list_messages("recipient-1") == []

    async def test_concurrent_delete_reports_not_found(self, db_session, make_profile, fanout) -> None:
        from core.exceptions import MessageNotFound
        from services.message_service import MessageService

        await make_profile("recipient-1")
        service = MessageService(db_session, fanout)
        message_id = (await service.create_message("recipient-1", "a")).id
        # Ownership check passes, then the row is gone before the delete runs
        service.message_repo.delete = AsyncMock(return_value=0)

        with pytest.raises(MessageNotFound):
            await service.delete_message(message_id, "recipient-1")
