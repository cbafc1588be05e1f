"""
Profile management.

Profiles are created once per identity; the username doubles as the public
share link and never changes afterwards.
"""

from typing import Any, Optional

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import ProfileExists, ProfileNotFound, UsernameTaken
from models.profile import Profile
from repositories.profile_repository import ProfileRepository

logger = structlog.get_logger(__name__)


class ProfileService:
    """Create, look up and update profiles."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.profile_repo = ProfileRepository(db)

    async def create_profile(
        self,
        profile_id: str,
        username: str,
        full_name: Optional[str] = None,
        avatar_url: Optional[str] = None,
        bio: Optional[str] = None,
        website: Optional[str] = None,
    ) -> Profile:
        """
        Create the profile for an identity.

        Raises:
            ProfileExists: the identity already has a profile
            UsernameTaken: another profile uses this username
        """
        if await self.profile_repo.get_by_id(profile_id) is not None:
            raise ProfileExists()

        try:
            profile = await self.profile_repo.create(
                profile_id=profile_id,
                username=username,
                full_name=full_name,
                avatar_url=avatar_url,
                bio=bio,
                website=website,
            )
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            # Concurrent sign-up of the same identity lands here too
            if await self.profile_repo.get_by_id(profile_id) is not None:
                raise ProfileExists()
            raise UsernameTaken()

        logger.info("profile_created", profile_id=profile_id)
        return profile

    async def get_profile(self, profile_id: str) -> Profile:
        profile = await self.profile_repo.get_by_id(profile_id)
        if profile is None:
            raise ProfileNotFound()
        return profile

    async def get_by_username(self, username: str) -> Profile:
        profile = await self.profile_repo.get_by_username(username)
        if profile is None:
            raise ProfileNotFound()
        return profile

    async def update_profile(self, profile_id: str, changes: dict[str, Any]) -> Profile:
        """Update display fields and the anonymous-message switch."""
        profile = await self.get_profile(profile_id)
        if not changes:
            return profile

        profile = await self.profile_repo.update(profile, changes)
        await self.db.commit()

        logger.info("profile_updated", profile_id=profile_id, fields=sorted(changes))
        return profile
