"""
Anonymous message model.

No sender column exists, by construction: nothing about who wrote a message
is ever stored.
"""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from core.clock import monotonic_utc_now
from db.base import Base


class Message(Base):
    """
    One-way anonymous message to a profile.

    content is immutable; only is_read / is_answered change after creation.
    """

    __tablename__ = "messages"

    __table_args__ = (
        # Inbox listing and analytics windows both filter by recipient then time
        Index("ix_messages_recipient_created", "recipient_id", "created_at"),
    )

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )

    recipient_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("profiles.id"),
        index=True,
    )

    content: Mapped[str] = mapped_column(Text)

    is_read: Mapped[bool] = mapped_column(Boolean, default=False)
    is_answered: Mapped[bool] = mapped_column(Boolean, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=monotonic_utc_now,
        index=True,
    )
