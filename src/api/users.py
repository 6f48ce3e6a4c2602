"""User profile API: public profiles, profile edits and avatars."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import undefer

from config.settings import settings
from src.api.deps import ListingParams, listing_params
from src.auth import require_user
from src.db.engine import get_session
from src.db.repository import RecipeRepository, row_to_user
from src.db.user_tables import UserRow
from src.errors import ConflictError, NotFoundError, parse_id
from src.models import ProfileStats, ProfileUpdate, UserProfile
from src.services import images
from src.services.recipe_query import RecipeScope

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])


async def _get_user_or_404(user_id: str, session: AsyncSession) -> UserRow:
    user = (await session.execute(
        select(UserRow).where(UserRow.id == parse_id(user_id, "user id"))
    )).scalar_one_or_none()
    if not user:
        raise NotFoundError("User not found")
    return user


@router.get("/{user_id}/profile")
async def get_profile(user_id: str, session: AsyncSession = Depends(get_session)):
    """Public profile with recipe counts."""
    user = await _get_user_or_404(user_id, session)
    repo = RecipeRepository(session)
    profile = UserProfile(
        **row_to_user(user).model_dump(),
        stats=ProfileStats(
            public_recipes=await repo.count(user.id, public_only=True),
            total_recipes=await repo.count(user.id),
        ),
    )
    return {"success": True, "data": {"user": profile.to_api()}}


@router.get("/{user_id}/recipes")
async def get_user_recipes(
    user_id: str,
    params: ListingParams = Depends(listing_params),
    session: AsyncSession = Depends(get_session),
):
    """A user's public recipes, filtered and paginated like the explore feed."""
    user = await _get_user_or_404(user_id, session)
    page = await RecipeRepository(session).list_recipes(
        params.filter, RecipeScope.public_by(user.id), page=params.page, limit=params.limit,
    )
    return {"success": True, "data": {"recipes": [r.to_api() for r in page.items], **page.to_dict()}}


@router.put("/profile")
async def update_profile(
    req: ProfileUpdate,
    user: UserRow = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    """Update the caller's profile. Usernames stay unique."""
    updates = req.model_dump(exclude_none=True)

    new_username = updates.get("username")
    if new_username and new_username != user.username:
        taken = (await session.execute(
            select(func.count()).select_from(UserRow).where(
                UserRow.username == new_username, UserRow.id != user.id,
            )
        )).scalar()
        if taken:
            raise ConflictError("Username already taken")

    for key, value in updates.items():
        setattr(user, key, value)
    await session.commit()
    logger.info("User %s updated profile fields: %s", user.id, sorted(updates))
    return {
        "success": True,
        "message": "Profile updated successfully",
        "data": {"user": row_to_user(user, include_private=True).to_api()},
    }


@router.post("/avatar")
async def upload_avatar(
    avatar: UploadFile = File(...),
    user: UserRow = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    """Replace the caller's avatar (image/*, size-limited)."""
    image = await images.read_upload(avatar, settings.MAX_AVATAR_BYTES, field="avatar")
    images.set_avatar(user, image)
    await session.commit()
    logger.info("User %s uploaded avatar (%d bytes)", user.id, len(image.data))
    return {
        "success": True,
        "message": "Avatar uploaded successfully",
        "data": {"user": row_to_user(user, include_private=True).to_api()},
    }


@router.get("/{user_id}/avatar")
async def get_avatar(user_id: str, session: AsyncSession = Depends(get_session)):
    user = (await session.execute(
        select(UserRow)
        .options(undefer(UserRow.avatar_data))
        .where(UserRow.id == parse_id(user_id, "user id"))
    )).scalar_one_or_none()
    if not user or not user.avatar_data:
        raise NotFoundError("Avatar not found")
    return images.image_response(user.avatar_data, user.avatar_content_type)
