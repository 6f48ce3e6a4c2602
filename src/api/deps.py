"""Shared request parsing for recipe listings."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import Query

from config.settings import settings
from src.services.recipe_query import RecipeFilter


@dataclass(frozen=True)
class ListingParams:
    filter: RecipeFilter
    page: int
    limit: int


def listing_params(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    category: Optional[str] = Query(None),
    search: Optional[str] = Query(None, max_length=200),
    difficulty: Optional[str] = Query(None),
    max_time: Optional[int] = Query(None, alias="maxTime", ge=0),
    tags: Optional[list[str]] = Query(None),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
) -> ListingParams:
    """``page, limit, category, search, difficulty, maxTime, tags, sortBy, sortOrder``."""
    return ListingParams(
        filter=RecipeFilter.from_params(
            category=category,
            search=search,
            difficulty=difficulty,
            max_time=max_time,
            tags=tags,
            sort_by=sort_by,
            sort_order=sort_order,
        ),
        page=page,
        limit=limit,
    )
