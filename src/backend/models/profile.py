"""
Profile model.

A profile is the public identity that anonymous visitors send messages to.
Its id is the identity provider's user id; credentials never live here.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from core.clock import utc_now
from db.base import Base


class Profile(Base):
    """
    Public profile.

    - username is unique and immutable once set (it is the share link)
    - avatar_url is a URL handed back by the asset storage collaborator
    - profiles are never deleted here; account deletion is external
    """

    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)

    username: Mapped[str] = mapped_column(String(50), unique=True, index=True)

    # Display fields
    full_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    avatar_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    website: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Inbox switch
    allow_anonymous_messages: Mapped[bool] = mapped_column(Boolean, default=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        onupdate=utc_now,
    )
