"""Public recipe API: explore feed, shared recipe pages, likes."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.deps import ListingParams, listing_params
from src.auth import require_user
from src.db.engine import get_session
from src.db.repository import RecipeRepository
from src.db.user_tables import UserRow
from src.errors import NotFoundError, parse_id
from src.services.interactions import record_view, toggle_like
from src.services.recipe_query import RecipeScope

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/public/recipes", tags=["public"])


@router.get("")
async def explore(
    params: ListingParams = Depends(listing_params),
    session: AsyncSession = Depends(get_session),
):
    """Every public recipe, with the same filters as the private listing."""
    page = await RecipeRepository(session).list_recipes(
        params.filter, RecipeScope.public(), page=params.page, limit=params.limit,
    )
    return {"success": True, "data": {"recipes": [r.to_api() for r in page.items], **page.to_dict()}}


@router.get("/liked/mine")
async def liked_recipes(
    params: ListingParams = Depends(listing_params),
    user: UserRow = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    """Public recipes the caller has liked."""
    page = await RecipeRepository(session).list_recipes(
        params.filter, RecipeScope.liked_public(user.id), page=params.page, limit=params.limit,
    )
    return {"success": True, "data": {"recipes": [r.to_api() for r in page.items], **page.to_dict()}}


@router.get("/{public_id}")
async def get_public_recipe(public_id: str, session: AsyncSession = Depends(get_session)):
    """Shared recipe page. Every successful fetch counts one view."""
    recipe = await RecipeRepository(session).get_public(public_id)
    if not recipe:
        raise NotFoundError("Recipe not found or not public")

    body = recipe.to_api()
    if await record_view(session, recipe.id):
        body["views"] = recipe.views + 1
    return {"success": True, "data": {"recipe": body}}


@router.post("/{recipe_id}/like")
async def like_recipe(
    recipe_id: str,
    user: UserRow = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    """Toggle the caller's like. Returns the new state and count."""
    result = await toggle_like(session, parse_id(recipe_id, "recipe id"), user.id)
    return {
        "success": True,
        "message": "Recipe liked" if result.liked else "Recipe unliked",
        "data": result.to_dict(),
    }
