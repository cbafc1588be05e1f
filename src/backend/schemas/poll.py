"""
Poll-related Pydantic schemas.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class PollCreate(BaseModel):
    """
    Schema for creating a new poll.

    Blank question / fewer than 2 options are reported by the poll service
    with specific error kinds.
    """

    question: str
    options: list[str]
    expires_at: Optional[datetime] = Field(None, description="Stop accepting votes after this time")


class PollOptionResult(BaseModel):
    """Option with its aggregated votes."""

    option_id: str
    option_text: str
    count: int = 0
    percentage: int = 0


class PollWithResults(BaseModel):
    """Poll with its live tally, options in creation order."""

    id: str
    user_id: str
    question: str
    is_active: bool
    created_at: datetime
    expires_at: Optional[datetime] = None
    total_responses: int = 0
    options: list[PollOptionResult]


class VoteCreate(BaseModel):
    """
    Schema for casting a vote.

    respondent_id correlates a returning visitor (e.g. a browser-held id).
    It is replaced by the caller's profile id when the caller is signed in.
    """

    option_id: str
    respondent_id: Optional[str] = Field(None, max_length=64)


class VoteResponse(BaseModel):
    """Response after successfully casting a vote."""

    success: bool
    message: str
    poll_id: str
    option_id: str


class PollStatusResponse(BaseModel):
    id: str
    is_active: bool
