"""
Schema converter functions.

Single place where poll models and tallies are turned into API schemas.
"""

from typing import TYPE_CHECKING

from schemas.poll import PollOptionResult, PollWithResults

if TYPE_CHECKING:
    from models.poll import Poll as PollModel
    from services.vote_aggregator import PollTally


def poll_to_results_schema(poll: "PollModel", tally: "PollTally") -> PollWithResults:
    """Combine a poll row and its tally. Option order comes from the tally."""
    return PollWithResults(
        id=str(poll.id),
        user_id=str(poll.user_id),
        question=poll.question,
        is_active=poll.is_active,
        created_at=poll.created_at,
        expires_at=poll.expires_at,
        total_responses=tally.total,
        options=[
            PollOptionResult(
                option_id=option.option_id,
                option_text=option.option_text,
                count=option.count,
                percentage=option.percentage,
            )
            for option in tally.options
        ],
    )
