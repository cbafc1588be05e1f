"""Repository modules for database access."""

from repositories.message_repository import MessageFilter, MessageRepository
from repositories.poll_repository import PollRepository
from repositories.profile_repository import ProfileRepository
from repositories.vote_repository import VoteRepository

__all__ = [
    "MessageFilter",
    "MessageRepository",
    "PollRepository",
    "ProfileRepository",
    "VoteRepository",
]
