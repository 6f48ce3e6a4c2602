"""Likes and views: engagement counters on a recipe.

Likes are a set of user ids per recipe, stored as ``recipe_likes`` rows keyed
on (recipe_id, user_id). A toggle is a conditional delete followed, when
nothing was deleted, by an insert; the primary key turns a racing duplicate
insert into an IntegrityError, which is retried. Views are a single
``views = views + 1`` statement.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import delete, func, insert, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.tables import RecipeLikeRow, RecipeRow
from src.errors import ConflictError, NotFoundError

logger = logging.getLogger(__name__)

_MAX_TOGGLE_ATTEMPTS = 3


@dataclass(frozen=True)
class LikeResult:
    liked: bool
    like_count: int

    def to_dict(self) -> dict:
        return {"liked": self.liked, "likeCount": self.like_count}


async def like_count(session: AsyncSession, recipe_id: str) -> int:
    stmt = select(func.count()).select_from(RecipeLikeRow).where(
        RecipeLikeRow.recipe_id == recipe_id
    )
    return (await session.execute(stmt)).scalar() or 0


async def _ensure_likeable(session: AsyncSession, recipe_id: str, user_id: str) -> None:
    # Private recipes are invisible to everyone but their owner.
    stmt = select(RecipeRow.id).where(
        RecipeRow.id == recipe_id,
        or_(RecipeRow.is_public.is_(True), RecipeRow.owner_id == user_id),
    )
    if (await session.execute(stmt)).scalar_one_or_none() is None:
        raise NotFoundError("Recipe not found")


async def toggle_like(session: AsyncSession, recipe_id: str, user_id: str) -> LikeResult:
    """Flip ``user_id``'s membership in the recipe's like set."""
    await _ensure_likeable(session, recipe_id, user_id)

    for attempt in range(1, _MAX_TOGGLE_ATTEMPTS + 1):
        removed = await session.execute(
            delete(RecipeLikeRow).where(
                RecipeLikeRow.recipe_id == recipe_id,
                RecipeLikeRow.user_id == user_id,
            )
        )
        if removed.rowcount:
            liked = False
        else:
            try:
                await session.execute(
                    insert(RecipeLikeRow).values(recipe_id=recipe_id, user_id=user_id)
                )
            except IntegrityError:
                # A concurrent toggle inserted first, or the recipe is gone
                await session.rollback()
                await _ensure_likeable(session, recipe_id, user_id)
                logger.info(
                    "Like toggle conflict on recipe %s (attempt %d)", recipe_id, attempt
                )
                continue
            liked = True

        await session.commit()
        count = await like_count(session, recipe_id)
        logger.info("User %s %s recipe %s", user_id, "liked" if liked else "unliked", recipe_id)
        return LikeResult(liked=liked, like_count=count)

    raise ConflictError("Like toggle conflicted repeatedly, please retry")


async def record_view(session: AsyncSession, recipe_id: str) -> bool:
    """Add exactly one view. Returns False (and logs) instead of raising."""
    try:
        await session.execute(
            update(RecipeRow)
            .where(RecipeRow.id == recipe_id)
            .values(views=RecipeRow.views + 1)
            .execution_options(synchronize_session=False)
        )
        await session.commit()
    except SQLAlchemyError:
        await session.rollback()
        logger.warning("Failed to record view for recipe %s", recipe_id, exc_info=True)
        return False
    return True

