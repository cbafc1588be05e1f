"""Database models module."""

from models.message import Message
from models.poll import Poll, PollOption, PollResponse
from models.profile import Profile

__all__ = [
    "Profile",
    "Message",
    "Poll",
    "PollOption",
    "PollResponse",
]
