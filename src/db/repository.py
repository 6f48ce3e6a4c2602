"""Recipe repository — DB CRUD operations + Pydantic conversion."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import undefer

from src.db.tables import RecipeIngredientRow, RecipeRow
from src.db.user_tables import UserRow
from src.models import (
    Author, CountBucket, ImageInfo, Ingredient, PublicUser, Recipe, RecipeCreate,
    RecipeStats, RecipeUpdate, SocialMedia, User,
)
from src.services import images
from src.services.pagination import Page, paginate
from src.services.recipe_query import RecipeFilter, RecipeScope, compile_filter


def _row_to_recipe(row: RecipeRow) -> Recipe:
    """Convert a DB row to a Pydantic Recipe (never includes image bytes)."""
    image = None
    if row.has_image:
        image = ImageInfo(
            content_type=row.image_content_type,
            filename=row.image_filename,
            url=images.recipe_image_url(row.id),
        )

    return Recipe(
        id=row.id,
        public_id=row.public_id,
        owner=Author(
            id=row.owner.id,
            username=row.owner.username,
            avatar_url=images.avatar_url(row.owner),
        ),
        title=row.title,
        description=row.description,
        ingredients=[
            Ingredient(name=i.name, quantity=i.quantity, unit=i.unit, notes=i.notes or "")
            for i in row.ingredients
        ],
        instructions=row.instructions or [],
        prep_time=row.prep_time,
        cook_time=row.cook_time,
        servings=row.servings,
        difficulty=row.difficulty,
        category=row.category,
        tags=row.tags or [],
        is_public=row.is_public,
        views=row.views or 0,
        likes=[like.user_id for like in row.likes],
        image=image,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def row_to_user(row: UserRow, *, include_private: bool = False) -> PublicUser:
    """Convert a user row; ``include_private`` adds the email (own account only)."""
    fields = dict(
        id=row.id,
        username=row.username,
        bio=row.bio,
        location=row.location,
        website=row.website,
        social_media=SocialMedia(**(row.social_media or {})),
        avatar_url=images.avatar_url(row),
        created_at=row.created_at,
    )
    if include_private:
        return User(email=row.email, **fields)
    return PublicUser(**fields)


def _ingredient_rows(ingredients: list[Ingredient]) -> list[RecipeIngredientRow]:
    return [
        RecipeIngredientRow(
            position=position,
            name=i.name,
            quantity=i.quantity,
            unit=i.unit.value,
            notes=i.notes,
        )
        for position, i in enumerate(ingredients)
    ]


class RecipeRepository:
    """Async recipe CRUD backed by SQLAlchemy.

    Owner-restricted operations take the owner id and match on it, so a recipe
    owned by someone else behaves exactly like a missing one.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, owner: UserRow, data: RecipeCreate) -> Recipe:
        now = datetime.now(timezone.utc)
        row = RecipeRow(
            owner_id=owner.id,
            owner=owner,
            title=data.title,
            description=data.description,
            ingredients=_ingredient_rows(data.ingredients),
            instructions=list(data.instructions),
            prep_time=data.prep_time,
            cook_time=data.cook_time,
            servings=data.servings,
            difficulty=data.difficulty.value,
            category=data.category.value,
            tags=list(data.tags),
            is_public=data.is_public,
            views=0,
            likes=[],
            created_at=now,
            updated_at=now,
        )
        if data.image is not None:
            images.set_recipe_image(row, images.from_payload(data.image))
        self.session.add(row)
        await self.session.commit()
        return _row_to_recipe(row)

    async def _get_owned_row(self, recipe_id: str, owner_id: str) -> Optional[RecipeRow]:
        stmt = select(RecipeRow).where(
            RecipeRow.id == recipe_id, RecipeRow.owner_id == owner_id
        )
        return (await self.session.execute(stmt)).scalar_one_or_none()

    async def get_owned(self, recipe_id: str, owner_id: str) -> Optional[Recipe]:
        row = await self._get_owned_row(recipe_id, owner_id)
        return _row_to_recipe(row) if row else None

    async def get_public(self, public_id: str) -> Optional[Recipe]:
        stmt = select(RecipeRow).where(
            RecipeRow.public_id == public_id, RecipeRow.is_public.is_(True)
        )
        row = (await self.session.execute(stmt)).scalar_one_or_none()
        return _row_to_recipe(row) if row else None

    async def get_image(self, recipe_id: str) -> Optional[tuple[bytes, str]]:
        """Return (bytes, content type) or None when there is no image."""
        stmt = (
            select(RecipeRow)
            .options(undefer(RecipeRow.image_data))
            .where(RecipeRow.id == recipe_id)
        )
        row = (await self.session.execute(stmt)).scalar_one_or_none()
        if not row or not row.image_data:
            return None
        return row.image_data, row.image_content_type

    async def update(self, recipe_id: str, owner_id: str, data: RecipeUpdate) -> Optional[Recipe]:
        row = await self._get_owned_row(recipe_id, owner_id)
        if not row:
            return None

        changes = data.model_dump(exclude_none=True, exclude={"image"})
        if "ingredients" in changes:
            row.ingredients = _ingredient_rows(data.ingredients)
            del changes["ingredients"]
        for key in ("difficulty", "category"):
            if key in changes:
                changes[key] = getattr(data, key).value
        for key, value in changes.items():
            setattr(row, key, value)
        if data.image is not None:
            images.set_recipe_image(row, images.from_payload(data.image))

        row.updated_at = datetime.now(timezone.utc)
        await self.session.commit()
        return _row_to_recipe(row)

    async def set_image(self, recipe_id: str, owner_id: str, image: images.StoredImage) -> bool:
        row = await self._get_owned_row(recipe_id, owner_id)
        if not row:
            return False
        images.set_recipe_image(row, image)
        row.updated_at = datetime.now(timezone.utc)
        await self.session.commit()
        return True

    async def delete(self, recipe_id: str, owner_id: str) -> bool:
        """Remove the recipe with its image, ingredients and likes in one commit."""
        row = await self._get_owned_row(recipe_id, owner_id)
        if not row:
            return False
        await self.session.delete(row)
        await self.session.commit()
        return True

    async def list_recipes(
        self,
        config: RecipeFilter,
        scope: RecipeScope,
        page: int = 1,
        limit: int = 12,
    ) -> Page[Recipe]:
        query = compile_filter(config, scope)
        result = await paginate(self.session, query, page=page, limit=limit)
        return Page(
            items=[_row_to_recipe(r) for r in result.items],
            current_page=result.current_page,
            total_pages=result.total_pages,
            total=result.total,
        )

    async def count(self, owner_id: str, public_only: bool = False) -> int:
        stmt = select(func.count(RecipeRow.id)).where(RecipeRow.owner_id == owner_id)
        if public_only:
            stmt = stmt.where(RecipeRow.is_public.is_(True))
        return (await self.session.execute(stmt)).scalar() or 0

    async def stats(self, owner_id: str) -> RecipeStats:
        async def _group(column) -> list[CountBucket]:
            stmt = (
                select(column, func.count(RecipeRow.id))
                .where(RecipeRow.owner_id == owner_id)
                .group_by(column)
                .order_by(column)
            )
            rows = (await self.session.execute(stmt)).all()
            return [CountBucket(value=value, count=count) for value, count in rows]

        return RecipeStats(
            total_recipes=await self.count(owner_id),
            category_stats=await _group(RecipeRow.category),
            difficulty_stats=await _group(RecipeRow.difficulty),
        )
