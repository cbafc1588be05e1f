"""Schemas module initialization."""

from schemas.analytics import AnalyticsSummary
from schemas.message import MarkReadRequest, MarkReadResponse, MessageCreate, MessageOut, MessageSent
from schemas.poll import PollCreate, PollWithResults, VoteCreate, VoteResponse
from schemas.profile import OwnProfile, ProfileCreate, ProfileUpdate, PublicProfile

__all__ = [
    "AnalyticsSummary",
    "MarkReadRequest",
    "MarkReadResponse",
    "MessageCreate",
    "MessageOut",
    "MessageSent",
    "PollCreate",
    "PollWithResults",
    "VoteCreate",
    "VoteResponse",
    "OwnProfile",
    "ProfileCreate",
    "ProfileUpdate",
    "PublicProfile",
]
