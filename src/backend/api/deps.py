"""
Shared dependencies for API endpoints.

Identity comes from the external identity provider as a bearer JWT; these
dependencies only resolve it to a profile id.
"""

from typing import Annotated, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from core.security import resolve_profile_id
from db.session import get_db, get_session_factory
from services.analytics_service import AnalyticsService
from services.fanout import MessageFanout, get_fanout
from services.message_service import MessageService
from services.poll_service import PollService
from services.profile_service import ProfileService
from services.vote_aggregator import VoteAggregator

# Security schemes
security = HTTPBearer()
security_optional = HTTPBearer(auto_error=False)


# =============================================================================
# Identity
# =============================================================================


async def get_current_profile_id(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
) -> str:
    """
    Resolve the caller's profile id from the bearer token.

    Raises:
        HTTPException: If the token is invalid or expired.
    """
    profile_id = resolve_profile_id(credentials.credentials)
    if profile_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return profile_id


async def get_optional_profile_id(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security_optional)],
) -> Optional[str]:
    """
    Resolve the caller's profile id if a valid token was sent.

    Returns None for anonymous callers (or a bad token) instead of raising.
    """
    if credentials is None:
        return None
    return resolve_profile_id(credentials.credentials)


CurrentProfileId = Annotated[str, Depends(get_current_profile_id)]
OptionalProfileId = Annotated[Optional[str], Depends(get_optional_profile_id)]


# =============================================================================
# Services
# =============================================================================


def get_message_service(
    db: AsyncSession = Depends(get_db),
    fanout: MessageFanout = Depends(get_fanout),
) -> MessageService:
    return MessageService(db, fanout)


def get_poll_service(db: AsyncSession = Depends(get_db)) -> PollService:
    return PollService(db)


def get_profile_service(db: AsyncSession = Depends(get_db)) -> ProfileService:
    return ProfileService(db)


def get_vote_aggregator(db: AsyncSession = Depends(get_db)) -> VoteAggregator:
    return VoteAggregator(db)


def get_analytics_service(db: AsyncSession = Depends(get_db)) -> AnalyticsService:
    return AnalyticsService(db)


def get_db_session_factory() -> async_sessionmaker[AsyncSession]:
    """Session factory for long-lived handlers (websockets) that open their own sessions."""
    return get_session_factory()
