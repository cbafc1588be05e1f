"""
Anonymous message endpoints.

Sending is open to anyone and records nothing about the sender. Reading,
flagging and deleting are limited to the recipient. New messages are also
pushed over the ``/stream`` websocket.
"""

import asyncio
import contextlib

import structlog
from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from api.deps import CurrentProfileId, get_db_session_factory, get_message_service
from core.security import resolve_profile_id
from repositories.message_repository import MessageFilter, MessageRepository
from schemas.message import (
    MarkReadRequest,
    MarkReadResponse,
    MessageCreate,
    MessageOut,
    MessageSent,
    StreamEvent,
)
from services.fanout import MessageFanout, get_fanout
from services.live_inbox import LiveInbox
from services.message_service import MessageService

logger = structlog.get_logger(__name__)

router = APIRouter()

# Close code for a rejected stream handshake (application range 4000-4999)
WS_UNAUTHORIZED = 4401


@router.post("", response_model=MessageSent, status_code=status.HTTP_201_CREATED)
async def send_message(
    message_data: MessageCreate,
    service: MessageService = Depends(get_message_service),
) -> MessageSent:
    """
    Send an anonymous message to a profile.

    No authentication. Nothing identifying the sender is stored.
    """
    message = await service.create_message(
        recipient_id=message_data.recipient_id,
        content=message_data.content,
    )
    return MessageSent(id=message.id, created_at=message.created_at)


@router.get("", response_model=list[MessageOut])
async def list_messages(
    profile_id: CurrentProfileId,
    message_filter: MessageFilter = Query(MessageFilter.ALL, alias="filter"),
    service: MessageService = Depends(get_message_service),
) -> list[MessageOut]:
    """The caller's inbox, newest first."""
    messages = await service.list_messages(profile_id, message_filter)
    return [MessageOut.model_validate(message) for message in messages]


@router.post("/read", response_model=MarkReadResponse)
async def mark_messages_read(
    request: MarkReadRequest,
    profile_id: CurrentProfileId,
    service: MessageService = Depends(get_message_service),
) -> MarkReadResponse:
    """Flag messages as read. Ids that are not the caller's are ignored."""
    updated = await service.mark_read(request.ids, profile_id)
    return MarkReadResponse(updated=updated)


@router.post("/{message_id}/answered", status_code=status.HTTP_204_NO_CONTENT)
async def mark_message_answered(
    message_id: str,
    profile_id: CurrentProfileId,
    answered: bool = Query(True),
    service: MessageService = Depends(get_message_service),
) -> None:
    await service.mark_answered(message_id, profile_id, answered)


@router.delete("/{message_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_message(
    message_id: str,
    profile_id: CurrentProfileId,
    service: MessageService = Depends(get_message_service),
) -> None:
    """Delete one of the caller's messages."""
    await service.delete_message(message_id, profile_id)


# ============================================================================
# Live stream
# ============================================================================


async def _pump_updates(websocket: WebSocket, live: LiveInbox) -> None:
    async for update in live.updates():
        event = StreamEvent(type=update.kind, messages=update.messages)
        await websocket.send_text(event.model_dump_json())


async def _wait_for_disconnect(websocket: WebSocket) -> None:
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass


@router.websocket("/stream")
async def stream_messages(
    websocket: WebSocket,
    token: str = Query(...),
    fanout: MessageFanout = Depends(get_fanout),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_db_session_factory),
) -> None:
    """
    Live inbox for the caller.

    Sends a ``snapshot`` frame with the full inbox on connect (and after any
    internal resubscribe), then one ``message`` frame per new message.
    Browsers cannot set headers on websockets, so the token is a query
    parameter.
    """
    profile_id = resolve_profile_id(token)
    if profile_id is None:
        await websocket.close(code=WS_UNAUTHORIZED)
        return

    async def relist() -> list[MessageOut]:
        async with session_factory() as session:
            messages = await MessageRepository(session).list_for_recipient(profile_id)
            return [MessageOut.model_validate(message) for message in messages]

    await websocket.accept()
    live = LiveInbox(fanout, profile_id, relist)
    logger.info("message_stream_opened", recipient_id=profile_id)

    sender = asyncio.create_task(_pump_updates(websocket, live))
    receiver = asyncio.create_task(_wait_for_disconnect(websocket))
    try:
        done, _ = await asyncio.wait({sender, receiver}, return_when=asyncio.FIRST_COMPLETED)
        for task in (sender, receiver):
            task.cancel()
        await asyncio.gather(sender, receiver, return_exceptions=True)
    finally:
        live.close()

    if sender in done:
        # Stream ended first: hub shut down or the client went away mid-send
        if not sender.cancelled() and sender.exception() is not None:
            logger.warning(
                "message_stream_failed",
                recipient_id=profile_id,
                error=str(sender.exception()),
            )
        with contextlib.suppress(RuntimeError):
            await websocket.close()

    logger.info("message_stream_closed", recipient_id=profile_id)
