"""
Profile-related Pydantic schemas.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ProfileCreate(BaseModel):
    """Schema for creating the caller's profile."""

    username: str = Field(..., min_length=3, max_length=50, pattern=r"^[A-Za-z0-9_]+$")
    full_name: Optional[str] = Field(None, max_length=100)
    bio: Optional[str] = Field(None, max_length=500)
    website: Optional[str] = Field(None, max_length=255)
    avatar_url: Optional[str] = Field(None, max_length=500)


class ProfileUpdate(BaseModel):
    """Display-field update. The username cannot be changed."""

    full_name: Optional[str] = Field(None, max_length=100)
    bio: Optional[str] = Field(None, max_length=500)
    website: Optional[str] = Field(None, max_length=255)
    avatar_url: Optional[str] = Field(
        None, max_length=500, description="Public URL returned by the asset upload service"
    )
    allow_anonymous_messages: Optional[bool] = None

    model_config = {"extra": "forbid"}


class PublicProfile(BaseModel):
    """What anonymous visitors see on a share page."""

    id: str
    username: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    website: Optional[str] = None
    allow_anonymous_messages: bool = True

    model_config = {"from_attributes": True}


class OwnProfile(PublicProfile):
    """The owner's view of their profile."""

    created_at: datetime
    updated_at: datetime
