"""Offset/limit pagination over a compiled recipe query."""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from src.db.tables import RecipeRow
from src.services.recipe_query import CompiledQuery

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    items: list[T] = field(default_factory=list)
    current_page: int = 1
    total_pages: int = 0
    total: int = 0

    def to_dict(self) -> dict:
        return {
            "currentPage": self.current_page,
            "totalPages": self.total_pages,
            "total": self.total,
        }


def offset_for(page: int, limit: int) -> int:
    if page < 1 or limit < 1:
        raise ValueError("page and limit must be >= 1")
    return (page - 1) * limit


async def paginate(
    session: AsyncSession,
    query: CompiledQuery,
    page: int = 1,
    limit: int = 12,
) -> Page[RecipeRow]:
    """Fetch one window of ``query`` plus the total match count.

    Count and window are separate statements with no shared transaction, so
    the total may drift from the window under concurrent writes. A page past
    the end comes back empty.
    """
    skip = offset_for(page, limit)

    total = (await session.execute(query.select_count())).scalar() or 0
    rows = list((await session.execute(query.select_page(skip, limit))).scalars().all())

    return Page(
        items=rows,
        current_page=page,
        total_pages=math.ceil(total / limit),
        total=total,
    )
