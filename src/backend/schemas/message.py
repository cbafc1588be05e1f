"""
Message-related Pydantic schemas.
"""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from core.clock import as_utc


class MessageCreate(BaseModel):
    """
    Anonymous message submission.

    Content is validated by the message service (empty / too long) so the
    caller gets a specific error kind rather than a generic 422.
    """

    recipient_id: str
    content: str


class MessageOut(BaseModel):
    """A stored message, also the payload of realtime events."""

    id: str
    recipient_id: str
    content: str
    is_read: bool = False
    is_answered: bool = False
    created_at: datetime

    model_config = {"from_attributes": True}

    @field_validator("created_at")
    @classmethod
    def normalize_created_at(cls, v: datetime) -> datetime:
        """SQLite hands back naive UTC values."""
        return as_utc(v)


class MessageSent(BaseModel):
    """Returned to the anonymous sender. Echoes nothing about the inbox."""

    id: str
    created_at: datetime


class MarkReadRequest(BaseModel):
    """Ids of the caller's messages to flag as read."""

    ids: list[str] = Field(..., max_length=500)


class MarkReadResponse(BaseModel):
    updated: int


class StreamEvent(BaseModel):
    """Frame sent on the live message stream."""

    type: str  # "snapshot" | "message"
    messages: list[MessageOut]
