"""User profile schemas."""
from __future__ import annotations

from datetime import datetime
from typing import Annotated, Optional

from pydantic import StringConstraints

from src.models.recipe import ApiModel

Username = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=3, max_length=30, pattern=r"^[A-Za-z0-9_.-]+$"),
]


class SocialMedia(ApiModel):
    twitter: Annotated[str, StringConstraints(strip_whitespace=True, max_length=100)] = ""
    instagram: Annotated[str, StringConstraints(strip_whitespace=True, max_length=100)] = ""


class PublicUser(ApiModel):
    id: str
    username: str
    bio: Optional[str] = None
    location: Optional[str] = None
    website: Optional[str] = None
    social_media: SocialMedia = SocialMedia()
    avatar_url: Optional[str] = None
    created_at: Optional[datetime] = None


class User(PublicUser):
    """The caller's own account, with fields only its owner may see."""

    email: str


class ProfileStats(ApiModel):
    public_recipes: int
    total_recipes: int


class UserProfile(PublicUser):
    stats: ProfileStats


class ProfileUpdate(ApiModel):
    username: Optional[Username] = None
    bio: Optional[Annotated[str, StringConstraints(strip_whitespace=True, max_length=500)]] = None
    location: Optional[Annotated[str, StringConstraints(strip_whitespace=True, max_length=100)]] = None
    website: Optional[Annotated[str, StringConstraints(strip_whitespace=True, max_length=300)]] = None
    social_media: Optional[SocialMedia] = None
