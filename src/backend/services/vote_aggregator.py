"""
Vote aggregation.

Tallies are recomputed from raw responses on every read. There are no
counters to keep in sync, so the tally always matches stored state. Vote
volume per poll is bounded; unbounded volume would need incremental
counters instead.
"""

import math
from dataclasses import dataclass
from typing import Mapping, Protocol, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import PollNotFound
from repositories.poll_repository import PollRepository
from repositories.vote_repository import VoteRepository


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (2.5 -> 3, -2.5 -> -2)."""
    return int(math.floor(value + 0.5))


class OptionLike(Protocol):
    id: str
    option_text: str


@dataclass(frozen=True)
class OptionTally:
    """Votes for one option."""

    option_id: str
    option_text: str
    count: int
    percentage: int

    def to_dict(self) -> dict:
        return {
            "option_id": self.option_id,
            "option_text": self.option_text,
            "count": self.count,
            "percentage": self.percentage,
        }


@dataclass(frozen=True)
class PollTally:
    """Per-option breakdown of a poll, options in creation order."""

    poll_id: str
    total: int
    options: tuple[OptionTally, ...]

    @property
    def by_option(self) -> dict[str, OptionTally]:
        """optionId -> tally mapping."""
        return {option.option_id: option for option in self.options}

    def to_dict(self) -> dict:
        return {
            "poll_id": self.poll_id,
            "total": self.total,
            "options": [option.to_dict() for option in self.options],
        }


def compute_tally(
    poll_id: str,
    options: Sequence[OptionLike],
    counts: Mapping[str, int],
) -> PollTally:
    """
    Build a tally from option rows and raw per-option counts.

    percentage = round(count / total * 100), and 0 for every option when
    the poll has no responses. Counts for ids that are not options of this
    poll are ignored. Options keep their given order; popularity never
    reorders them.

    Each percentage is rounded on its own, so with n options the sum can
    miss 100 by up to n/2 (eight equal options give 8 x 13 = 104).
    """
    option_counts = [(option, int(counts.get(str(option.id), 0))) for option in options]
    total = sum(count for _, count in option_counts)

    tallies = tuple(
        OptionTally(
            option_id=str(option.id),
            option_text=option.option_text,
            count=count,
            percentage=round_half_up(count / total * 100) if total > 0 else 0,
        )
        for option, count in option_counts
    )

    return PollTally(poll_id=poll_id, total=total, options=tallies)


class VoteAggregator:
    """Reads raw responses and turns them into tallies."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.poll_repo = PollRepository(db)
        self.vote_repo = VoteRepository(db)

    async def tally(self, poll_id: str) -> PollTally:
        """
        Tally a poll.

        Raises:
            PollNotFound: if the poll does not exist (or was deleted)
        """
        poll = await self.poll_repo.get_by_id(poll_id)
        if poll is None:
            raise PollNotFound()

        counts = await self.vote_repo.counts_by_option(poll_id)
        return compute_tally(poll.id, poll.options, counts)

    async def tally_many(self, polls: Sequence) -> dict[str, PollTally]:
        """Tally several already-loaded polls with one grouped query."""
        counts = await self.vote_repo.counts_by_option_for_polls([poll.id for poll in polls])
        return {
            poll.id: compute_tally(poll.id, poll.options, counts.get(poll.id, {}))
            for poll in polls
        }
