"""
Poll lifecycle and vote casting.

Duplicate votes are stopped by the (poll_id, respondent_id) unique
constraint: the vote is inserted directly and a constraint violation is
reported as DuplicateVote. There is no existence check before the insert,
so two concurrent votes from one respondent cannot both succeed.
"""

from datetime import datetime
from typing import Optional, Sequence

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.clock import as_utc
from core.config import settings
from core.exceptions import (
    DuplicateVote,
    EmptyQuestion,
    NotOwner,
    OptionNotInPoll,
    PollInactive,
    PollNotFound,
    RespondentRequired,
    TooFewOptions,
    TooManyOptions,
    UnknownRecipient,
)
from models.poll import Poll, PollResponse
from repositories.poll_repository import PollRepository
from repositories.profile_repository import ProfileRepository
from repositories.vote_repository import VoteRepository

logger = structlog.get_logger(__name__)

MIN_POLL_OPTIONS = 2


class PollService:
    """Create, vote on, toggle and delete polls."""

    def __init__(self, db: AsyncSession, anonymous_vote_policy: Optional[str] = None):
        self.db = db
        self.anonymous_vote_policy = anonymous_vote_policy or settings.ANONYMOUS_VOTE_POLICY
        self.poll_repo = PollRepository(db)
        self.vote_repo = VoteRepository(db)
        self.profile_repo = ProfileRepository(db)

    # =========================================================================
    # Creation
    # =========================================================================

    @staticmethod
    def clean_options(options: Sequence[str]) -> list[str]:
        """Drop blank options and trim the rest, keeping their order."""
        return [option.strip() for option in options if option and option.strip()]

    async def create_poll(
        self,
        user_id: str,
        question: str,
        options: Sequence[str],
        expires_at: Optional[datetime] = None,
    ) -> Poll:
        """
        Create a poll together with its options, atomically.

        Raises:
            EmptyQuestion / TooFewOptions / TooManyOptions: nothing written
            UnknownRecipient: the creator has no profile
        """
        if not question or not question.strip():
            raise EmptyQuestion()

        cleaned = self.clean_options(options)
        if len(cleaned) < MIN_POLL_OPTIONS:
            raise TooFewOptions()
        if len(cleaned) > settings.MAX_POLL_OPTIONS:
            raise TooManyOptions(f"A poll can have at most {settings.MAX_POLL_OPTIONS} options")

        if await self.profile_repo.get_by_id(user_id) is None:
            raise UnknownRecipient("Profile not found")

        # SQLite drops the offset, so only UTC is stored
        if expires_at is not None:
            expires_at = as_utc(expires_at)

        poll = await self.poll_repo.create(
            user_id=user_id,
            question=question.strip(),
            options=cleaned,
            expires_at=expires_at,
        )
        await self.db.commit()

        logger.info("poll_created", poll_id=poll.id, user_id=user_id, options=len(cleaned))
        return poll

    # =========================================================================
    # Reads
    # =========================================================================

    async def get_poll(self, poll_id: str) -> Poll:
        poll = await self.poll_repo.get_by_id(poll_id)
        if poll is None:
            raise PollNotFound()
        return poll

    async def list_polls(self, user_id: str) -> list[Poll]:
        return await self.poll_repo.list_by_user(user_id)

    # =========================================================================
    # Voting
    # =========================================================================

    async def cast_vote(
        self,
        poll_id: str,
        option_id: str,
        respondent_id: Optional[str] = None,
    ) -> PollResponse:
        """
        Record a vote.

        Raises:
            RespondentRequired: anonymous votes are disabled by policy
            PollNotFound: no such poll
            PollInactive: poll deactivated or expired
            OptionNotInPoll: option belongs to another poll (or none)
            DuplicateVote: this respondent already voted; the earlier vote stays
        """
        respondent_id = respondent_id or None
        if respondent_id is None and self.anonymous_vote_policy == "require_respondent":
            raise RespondentRequired()

        poll = await self.poll_repo.get_by_id(poll_id)
        if poll is None:
            raise PollNotFound()
        if not poll.accepts_votes:
            raise PollInactive()
        if option_id not in {option.id for option in poll.options}:
            raise OptionNotInPoll()

        try:
            response = await self.vote_repo.create(
                poll_id=poll_id,
                option_id=option_id,
                respondent_id=respondent_id,
            )
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            if respondent_id is not None and await self.vote_repo.exists_for_respondent(
                poll_id, respondent_id
            ):
                logger.info("vote_rejected_duplicate", poll_id=poll_id)
                raise DuplicateVote()
            # Not a duplicate: the poll (and its options) was deleted meanwhile
            logger.info("vote_rejected_poll_gone", poll_id=poll_id)
            raise PollNotFound()

        logger.info("vote_cast", poll_id=poll_id, anonymous=respondent_id is None)
        return response

    # =========================================================================
    # Owner mutations
    # =========================================================================

    async def _require_owned(self, poll_id: str, requester_id: str) -> None:
        # Missing and foreign polls are rejected the same way
        owner_id = await self.poll_repo.get_owner_id(poll_id)
        if owner_id is None or owner_id != requester_id:
            raise NotOwner()

    async def toggle_active(self, poll_id: str, requester_id: str) -> bool:
        """
        Flip a poll between active and inactive. Returns the new state.

        Raises:
            NotOwner: missing poll or not the requester's
            PollNotFound: deleted concurrently
        """
        await self._require_owned(poll_id, requester_id)

        is_active = await self.poll_repo.toggle_active(poll_id, requester_id)
        if is_active is None:
            await self.db.rollback()
            raise PollNotFound()
        await self.db.commit()

        logger.info("poll_toggled", poll_id=poll_id, is_active=is_active)
        return is_active

    async def delete_poll(self, poll_id: str, requester_id: str) -> None:
        """
        Delete a poll with all of its options and responses.

        Raises:
            NotOwner: missing poll or not the requester's
            PollNotFound: deleted concurrently
        """
        await self._require_owned(poll_id, requester_id)

        if await self.poll_repo.delete(poll_id, requester_id) == 0:
            await self.db.rollback()
            raise PollNotFound()
        await self.db.commit()

        logger.info("poll_deleted", poll_id=poll_id, user_id=requester_id)
