"""Image upload endpoint for recipe pictures."""
from __future__ import annotations

import base64
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.auth import require_user
from src.db.engine import get_session
from src.db.repository import RecipeRepository
from src.db.user_tables import UserRow
from src.errors import NotFoundError, parse_id
from src.services import images

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/upload", tags=["upload"])


@router.post("/image")
async def upload_image(
    image: UploadFile = File(...),
    recipe_id: Optional[str] = Form(None, alias="recipeId"),
    user: UserRow = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    """Upload a recipe image.

    With ``recipeId`` the image is stored on that (owned) recipe. Without it
    the validated image is echoed back as base64, ready to be sent inline in a
    create request.
    """
    stored = await images.read_upload(image, settings.MAX_IMAGE_BYTES, field="image")

    if recipe_id:
        recipe_id = parse_id(recipe_id, "recipe id")
        if not await RecipeRepository(session).set_image(recipe_id, user.id, stored):
            raise NotFoundError("Recipe not found")
        logger.info("User %s set image on recipe %s", user.id, recipe_id)
        return {
            "success": True,
            "message": "Recipe image uploaded successfully",
            "data": {
                "recipeId": recipe_id,
                "image": {
                    "url": images.recipe_image_url(recipe_id),
                    "contentType": stored.content_type,
                    "filename": stored.filename,
                },
            },
        }

    return {
        "success": True,
        "message": "Image uploaded successfully",
        "data": {
            "image": {
                "data": base64.b64encode(stored.data).decode(),
                "contentType": stored.content_type,
                "filename": stored.filename,
            },
        },
    }
