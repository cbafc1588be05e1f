"""
Profile endpoints.

A profile is created once per identity. The username is the public share
link (``/u/{username}``) and is fixed at creation.
"""

from fastapi import APIRouter, Depends, status

from api.deps import CurrentProfileId, get_profile_service
from schemas.profile import OwnProfile, ProfileCreate, ProfileUpdate, PublicProfile
from services.profile_service import ProfileService

router = APIRouter()


@router.post("", response_model=OwnProfile, status_code=status.HTTP_201_CREATED)
async def create_profile(
    profile_data: ProfileCreate,
    profile_id: CurrentProfileId,
    service: ProfileService = Depends(get_profile_service),
) -> OwnProfile:
    """
    Create the caller's profile.

    Returns 409 if the caller already has one or the username is taken.
    """
    profile = await service.create_profile(
        profile_id=profile_id,
        username=profile_data.username,
        full_name=profile_data.full_name,
        avatar_url=profile_data.avatar_url,
        bio=profile_data.bio,
        website=profile_data.website,
    )
    return OwnProfile.model_validate(profile)


@router.get("/me", response_model=OwnProfile)
async def get_my_profile(
    profile_id: CurrentProfileId,
    service: ProfileService = Depends(get_profile_service),
) -> OwnProfile:
    profile = await service.get_profile(profile_id)
    return OwnProfile.model_validate(profile)


@router.patch("/me", response_model=OwnProfile)
async def update_my_profile(
    update: ProfileUpdate,
    profile_id: CurrentProfileId,
    service: ProfileService = Depends(get_profile_service),
) -> OwnProfile:
    """
    Update display fields or switch anonymous messages on/off.

    Only fields present in the request body are changed.
    """
    changes = update.model_dump(exclude_unset=True)
    if changes.get("allow_anonymous_messages", False) is None:
        del changes["allow_anonymous_messages"]

    profile = await service.update_profile(profile_id, changes)
    return OwnProfile.model_validate(profile)


@router.get("/{username}", response_model=PublicProfile)
async def get_public_profile(
    username: str,
    service: ProfileService = Depends(get_profile_service),
) -> PublicProfile:
    """Public share-page lookup. No authentication required."""
    profile = await service.get_by_username(username)
    return PublicProfile.model_validate(profile)
