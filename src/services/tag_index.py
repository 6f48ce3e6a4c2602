"""Distinct tags across one owner's recipes, used for the tag filter options."""
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.tables import RecipeRow


async def distinct_tags(session: AsyncSession, owner_id: str) -> list[str]:
    """Unique tags on ``owner_id``'s recipes, sorted case-insensitively.

    Always owner-scoped so private listings never show other users' tags.
    """
    stmt = select(RecipeRow.tags).where(RecipeRow.owner_id == owner_id)
    tags: set[str] = set()
    for row_tags in (await session.execute(stmt)).scalars():
        tags.update(row_tags or [])
    return sorted(tags, key=lambda t: (t.lower(), t))
