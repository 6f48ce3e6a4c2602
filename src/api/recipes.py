"""Personal recipe API for the signed-in user's own collection."""
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
from src.models import RecipeCreate, RecipeUpdate
from src.services import images
from src.services.recipe_query import RecipeScope
from src.services.tag_index import distinct_tags

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/recipes", tags=["recipes"])


@router.get("")
async def list_my_recipes(
    params: ListingParams = Depends(listing_params),
    user: UserRow = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    """Filtered, sorted, paginated listing of the caller's recipes."""
    repo = RecipeRepository(session)
    page = await repo.list_recipes(
        params.filter, RecipeScope.owned_by(user.id), page=params.page, limit=params.limit,
    )
    return {
        "success": True,
        "data": {
            "recipes": [r.to_api() for r in page.items],
            **page.to_dict(),
            "availableTags": await distinct_tags(session, user.id),
        },
    }


@router.get("/stats")
async def recipe_stats(
    user: UserRow = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    stats = await RecipeRepository(session).stats(user.id)
    return {"success": True, "data": stats.to_api()}


@router.get("/tags/user-tags")
async def user_tags(
    user: UserRow = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    return {"success": True, "data": {"tags": await distinct_tags(session, user.id)}}


@router.get("/{recipe_id}")
async def get_recipe(
    recipe_id: str,
    user: UserRow = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    recipe = await RecipeRepository(session).get_owned(parse_id(recipe_id, "recipe id"), user.id)
    if not recipe:
        raise NotFoundError("Recipe not found")
    return {"success": True, "data": {"recipe": recipe.to_api()}}


@router.post("", status_code=201)
async def create_recipe(
    req: RecipeCreate,
    user: UserRow = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    recipe = await RecipeRepository(session).create(user, req)
    logger.info("User %s created recipe %s", user.id, recipe.id)
    return {"success": True, "message": "Recipe created successfully", "data": {"recipe": recipe.to_api()}}


@router.put("/{recipe_id}")
async def update_recipe(
    recipe_id: str,
    req: RecipeUpdate,
    user: UserRow = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    """Partial update. Someone else's recipe is reported as not found."""
    recipe = await RecipeRepository(session).update(parse_id(recipe_id, "recipe id"), user.id, req)
    if not recipe:
        raise NotFoundError("Recipe not found")
    return {"success": True, "message": "Recipe updated successfully", "data": {"recipe": recipe.to_api()}}


@router.delete("/{recipe_id}")
async def delete_recipe(
    recipe_id: str,
    user: UserRow = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    recipe_id = parse_id(recipe_id, "recipe id")
    if not await RecipeRepository(session).delete(recipe_id, user.id):
        raise NotFoundError("Recipe not found")
    logger.info("User %s deleted recipe %s", user.id, recipe_id)
    return {"success": True, "message": "Recipe deleted successfully"}


@router.get("/{recipe_id}/image")
async def get_recipe_image(recipe_id: str, session: AsyncSession = Depends(get_session)):
    """Raw image bytes. Public, so shared recipes can render their picture."""
    found = await RecipeRepository(session).get_image(parse_id(recipe_id, "recipe id"))
    if not found:
        raise NotFoundError("Image not found")
    data, content_type = found
    return images.image_response(data, content_type)
