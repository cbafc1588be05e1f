"""
Poll repository for database operations.
"""

from datetime import datetime
from typing import Any, Optional, Sequence

from sqlalchemy import and_, delete, func, not_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from models.poll import Poll, PollOption


class PollRepository:
    """Repository for poll database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _get_rowcount(self, result: Any) -> int:
        """Safely get rowcount from result."""
        return getattr(result, "rowcount", 0) or 0

    async def get_by_id(self, poll_id: str) -> Optional[Poll]:
        """Get a poll by ID with its options in creation order."""
        result = await self.db.execute(
            select(Poll)
            .options(selectinload(Poll.options))
            .where(Poll.id == poll_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_owner_id(self, poll_id: str) -> Optional[str]:
        """Get the creator of a poll without loading it."""
        result = await self.db.execute(select(Poll.user_id).where(Poll.id == poll_id))
        return result.scalar_one_or_none()

    async def list_by_user(self, user_id: str) -> list[Poll]:
        """List a profile's polls, newest first."""
        result = await self.db.execute(
            select(Poll)
            .options(selectinload(Poll.options))
            .where(Poll.user_id == user_id)
            .order_by(Poll.created_at.desc(), Poll.id.desc())
        )
        return list(result.scalars().all())

    async def count_by_user(self, user_id: str) -> int:
        """Number of polls a profile has created."""
        result = await self.db.execute(select(func.count(Poll.id)).where(Poll.user_id == user_id))
        return result.scalar() or 0

    async def create(
        self,
        user_id: str,
        question: str,
        options: Sequence[str],
        expires_at: Optional[datetime] = None,
    ) -> Poll:
        """
        Create a poll with its options.

        Poll and options are flushed in the caller's transaction, so they
        become visible together on commit or not at all.
        """
        poll = Poll(
            user_id=user_id,
            question=question,
            is_active=True,
            expires_at=expires_at,
        )
        poll.options = [
            PollOption(option_text=option_text, position=idx)
            for idx, option_text in enumerate(options)
        ]

        self.db.add(poll)
        await self.db.flush()

        return poll

    async def toggle_active(self, poll_id: str, user_id: str) -> Optional[bool]:
        """
        Flip is_active on one of the user's polls in a single UPDATE.

        Returns the new value, or None when no row matched.
        """
        result = await self.db.execute(
            update(Poll)
            .where(and_(Poll.id == poll_id, Poll.user_id == user_id))
            .values(is_active=not_(Poll.is_active))
            .execution_options(synchronize_session=False)
        )
        if self._get_rowcount(result) == 0:
            return None

        value = await self.db.execute(select(Poll.is_active).where(Poll.id == poll_id))
        return value.scalar_one_or_none()

    async def delete(self, poll_id: str, user_id: str) -> int:
        """Delete one of the user's polls. Options and responses go with it (ON DELETE CASCADE)."""
        result = await self.db.execute(
            delete(Poll).where(and_(Poll.id == poll_id, Poll.user_id == user_id))
        )
        return self._get_rowcount(result)
