"""
Profile repository for database operations.
"""

from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models.profile import Profile


class ProfileRepository:
    """Repository for profile database operations."""

    # Fields an owner may change; username is not one of them
    UPDATABLE_FIELDS = frozenset(
        {"full_name", "avatar_url", "bio", "website", "allow_anonymous_messages"}
    )

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, profile_id: str) -> Optional[Profile]:
        """Get a profile by ID."""
        result = await self.db.execute(select(Profile).where(Profile.id == profile_id))
        return result.scalar_one_or_none()

    async def get_by_username(self, username: str) -> Optional[Profile]:
        """Get a profile by its public username."""
        result = await self.db.execute(select(Profile).where(Profile.username == username))
        return result.scalar_one_or_none()

    async def create(
        self,
        profile_id: str,
        username: str,
        full_name: Optional[str] = None,
        avatar_url: Optional[str] = None,
        bio: Optional[str] = None,
        website: Optional[str] = None,
    ) -> Profile:
        """
        Create a profile.

        Uniqueness of id and username is left to the database; the flush
        raises IntegrityError on conflict.
        """
        profile = Profile(
            id=profile_id,
            username=username,
            full_name=full_name,
            avatar_url=avatar_url,
            bio=bio,
            website=website,
            allow_anonymous_messages=True,
        )

        self.db.add(profile)
        await self.db.flush()
        await self.db.refresh(profile)

        return profile

    async def update(self, profile: Profile, changes: dict[str, Any]) -> Profile:
        """Apply display-field changes to a loaded profile."""
        for field, value in changes.items():
            if field not in self.UPDATABLE_FIELDS:
                raise ValueError(f"Profile field '{field}' cannot be updated")
            setattr(profile, field, value)

        await self.db.flush()
        await self.db.refresh(profile)

        return profile
