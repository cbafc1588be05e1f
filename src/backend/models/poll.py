"""
Poll, option and response models.

Votes are stored as raw response rows; counts are never cached on the poll
or its options, so the displayed tally cannot drift from stored state.
"""

from datetime import datetime
from typing import Optional
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.clock import as_utc, monotonic_utc_now, utc_now
from db.base import Base


class Poll(Base):
    """
    Poll owned by a profile.

    The option set is written together with the poll and closed afterwards:
    no options are added, removed or reordered later.
    """

    __tablename__ = "polls"

    __table_args__ = (Index("ix_polls_user_created", "user_id", "created_at"),)

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("profiles.id"),
        index=True,
    )

    question: Mapped[str] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=monotonic_utc_now,
    )
    expires_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Relationships - the database cascades deletes, the ORM only reads
    options: Mapped[list["PollOption"]] = relationship(
        back_populates="poll",
        order_by="PollOption.position",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def is_expired(self) -> bool:
        """Check if the poll has passed its expiry time."""
        if self.expires_at is None:
            return False
        return utc_now() >= as_utc(self.expires_at)

    @property
    def accepts_votes(self) -> bool:
        return self.is_active and not self.is_expired


class PollOption(Base):
    """Answer option, fixed at poll creation. ``position`` is creation order."""

    __tablename__ = "poll_options"

    __table_args__ = (
        UniqueConstraint("poll_id", "position", name="uq_poll_options_poll_position"),
    )

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )

    poll_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("polls.id", ondelete="CASCADE"),
        index=True,
    )

    option_text: Mapped[str] = mapped_column(Text)
    position: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
    )

    poll: Mapped[Poll] = relationship(back_populates="options")


class PollResponse(Base):
    """
    A single vote.

    At most one row per (poll_id, respondent_id) when respondent_id is set.
    NULL respondents never collide under the unique constraint, so fully
    anonymous votes are only limited by ANONYMOUS_VOTE_POLICY.
    """

    __tablename__ = "poll_responses"

    __table_args__ = (
        UniqueConstraint("poll_id", "respondent_id", name="uq_poll_responses_poll_respondent"),
        Index("ix_poll_responses_poll_option", "poll_id", "option_id"),
    )

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )

    poll_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("polls.id", ondelete="CASCADE"),
        index=True,
    )
    option_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("poll_options.id", ondelete="CASCADE"),
        index=True,
    )

    respondent_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=monotonic_utc_now,
    )
