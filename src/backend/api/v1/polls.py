"""
Poll endpoints.

Owners create, list, toggle and delete their polls. Anyone with the link
can view a poll's live results and vote once.
"""

from fastapi import APIRouter, Depends, status

from api.deps import (
    CurrentProfileId,
    OptionalProfileId,
    get_poll_service,
    get_vote_aggregator,
)
from schemas.converters import poll_to_results_schema
from schemas.poll import (
    PollCreate,
    PollStatusResponse,
    PollWithResults,
    VoteCreate,
    VoteResponse,
)
from services.poll_service import PollService
from services.vote_aggregator import VoteAggregator

router = APIRouter()


@router.post("", response_model=PollWithResults, status_code=status.HTTP_201_CREATED)
async def create_poll(
    poll_data: PollCreate,
    profile_id: CurrentProfileId,
    service: PollService = Depends(get_poll_service),
    aggregator: VoteAggregator = Depends(get_vote_aggregator),
) -> PollWithResults:
    """
    Create a poll with at least two options.

    Blank options are dropped before counting.
    """
    poll = await service.create_poll(
        user_id=profile_id,
        question=poll_data.question,
        options=poll_data.options,
        expires_at=poll_data.expires_at,
    )
    tally = await aggregator.tally(poll.id)
    return poll_to_results_schema(poll, tally)


@router.get("", response_model=list[PollWithResults])
async def list_my_polls(
    profile_id: CurrentProfileId,
    service: PollService = Depends(get_poll_service),
    aggregator: VoteAggregator = Depends(get_vote_aggregator),
) -> list[PollWithResults]:
    """The caller's polls with results, newest first."""
    polls = await service.list_polls(profile_id)
    tallies = await aggregator.tally_many(polls)
    return [poll_to_results_schema(poll, tallies[poll.id]) for poll in polls]


@router.get("/{poll_id}", response_model=PollWithResults)
async def get_poll(
    poll_id: str,
    service: PollService = Depends(get_poll_service),
    aggregator: VoteAggregator = Depends(get_vote_aggregator),
) -> PollWithResults:
    """Public poll page with live results."""
    poll = await service.get_poll(poll_id)
    tally = await aggregator.tally(poll.id)
    return poll_to_results_schema(poll, tally)


@router.post("/{poll_id}/votes", response_model=VoteResponse, status_code=status.HTTP_201_CREATED)
async def cast_vote(
    poll_id: str,
    vote_data: VoteCreate,
    profile_id: OptionalProfileId,
    service: PollService = Depends(get_poll_service),
) -> VoteResponse:
    """
    Vote on a poll.

    Signed-in callers vote as their profile; anonymous callers may pass a
    respondent_id. A second vote from the same respondent returns 409 and
    the first vote stands.
    """
    respondent_id = profile_id or vote_data.respondent_id
    response = await service.cast_vote(
        poll_id=poll_id,
        option_id=vote_data.option_id,
        respondent_id=respondent_id,
    )
    return VoteResponse(
        success=True,
        message="Vote recorded successfully",
        poll_id=response.poll_id,
        option_id=response.option_id,
    )


@router.post("/{poll_id}/toggle", response_model=PollStatusResponse)
async def toggle_poll(
    poll_id: str,
    profile_id: CurrentProfileId,
    service: PollService = Depends(get_poll_service),
) -> PollStatusResponse:
    """Open or close one of the caller's polls."""
    is_active = await service.toggle_active(poll_id, profile_id)
    return PollStatusResponse(id=poll_id, is_active=is_active)


@router.delete("/{poll_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_poll(
    poll_id: str,
    profile_id: CurrentProfileId,
    service: PollService = Depends(get_poll_service),
) -> None:
    """Delete one of the caller's polls with all options and votes."""
    await service.delete_poll(poll_id, profile_id)
