"""
Vote repository for database operations.

Stores raw poll responses. Duplicate detection is the unique constraint on
(poll_id, respondent_id): ``create`` never checks first, it inserts and lets
the database refuse the second row.
"""

from typing import Optional
from uuid import uuid4

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.poll import Poll, PollResponse


class VoteRepository:
    """Repository for poll response database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(
        self,
        poll_id: str,
        option_id: str,
        respondent_id: Optional[str] = None,
    ) -> PollResponse:
        """
        Insert a response.

        Raises IntegrityError when the respondent already voted on this poll
        (or when the poll/option vanished concurrently).
        """
        response = PollResponse(
            id=str(uuid4()),
            poll_id=poll_id,
            option_id=option_id,
            respondent_id=respondent_id,
        )

        self.db.add(response)
        await self.db.flush()
        await self.db.refresh(response)

        return response

    async def exists_for_respondent(self, poll_id: str, respondent_id: str) -> bool:
        """Check whether a respondent has a response on a poll."""
        result = await self.db.execute(
            select(func.count(PollResponse.id)).where(
                and_(
                    PollResponse.poll_id == poll_id,
                    PollResponse.respondent_id == respondent_id,
                )
            )
        )
        count = result.scalar() or 0
        return count > 0

    async def counts_by_option(self, poll_id: str) -> dict[str, int]:
        """Response count per option id, for options with at least one response."""
        result = await self.db.execute(
            select(PollResponse.option_id, func.count(PollResponse.id))
            .where(PollResponse.poll_id == poll_id)
            .group_by(PollResponse.option_id)
        )
        return {str(option_id): count for option_id, count in result.all()}

    async def counts_by_option_for_polls(self, poll_ids: list[str]) -> dict[str, dict[str, int]]:
        """Like counts_by_option, for several polls in one query."""
        if not poll_ids:
            return {}

        result = await self.db.execute(
            select(PollResponse.poll_id, PollResponse.option_id, func.count(PollResponse.id))
            .where(PollResponse.poll_id.in_(poll_ids))
            .group_by(PollResponse.poll_id, PollResponse.option_id)
        )

        breakdown: dict[str, dict[str, int]] = {poll_id: {} for poll_id in poll_ids}
        for poll_id, option_id, count in result.all():
            breakdown.setdefault(str(poll_id), {})[str(option_id)] = count
        return breakdown

    async def count_for_poll_owner(self, user_id: str) -> int:
        """Total responses across every poll a profile created."""
        result = await self.db.execute(
            select(func.count(PollResponse.id))
            .join(Poll, Poll.id == PollResponse.poll_id)
            .where(Poll.user_id == user_id)
        )
        return result.scalar() or 0
