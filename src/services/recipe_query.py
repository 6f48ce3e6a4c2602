"""Recipe filter/sort compiler.

Turns a :class:`RecipeFilter` plus a :class:`RecipeScope` into a
:class:`CompiledQuery`, a SQL predicate and an ordering over ``recipes``.
Nothing here touches the database; ``src.services.pagination`` runs the
statements.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from sqlalchemy import ColumnElement, String, and_, case, cast, func, or_, select, true
from sqlalchemy.sql import Select

from src.db.tables import RecipeIngredientRow, RecipeLikeRow, RecipeRow
from src.models import Difficulty

logger = logging.getLogger(__name__)

ALL = "All"  # sentinel meaning "no restriction" for category/difficulty

DEFAULT_SORT_BY = "createdAt"
DEFAULT_SORT_ORDER = "desc"

_DIFFICULTY_RANK = {d.value: rank for rank, d in enumerate(Difficulty, start=1)}


def _escape_like(value: str) -> str:
    """Escape LIKE wildcard characters in user input."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _like_count() -> ColumnElement:
    return (
        select(func.count())
        .where(RecipeLikeRow.recipe_id == RecipeRow.id)
        .correlate(RecipeRow)
        .scalar_subquery()
    )


def total_time_expr() -> ColumnElement:
    """prep + cook, computed per row at query time."""
    return RecipeRow.prep_time + RecipeRow.cook_time


# sortBy value -> column expression factory
SORT_FIELDS = {
    "createdAt": lambda: RecipeRow.created_at,
    "updatedAt": lambda: RecipeRow.updated_at,
    "title": lambda: func.lower(RecipeRow.title),
    "difficulty": lambda: case(_DIFFICULTY_RANK, value=RecipeRow.difficulty, else_=0),
    "totalTime": total_time_expr,
    "prepTime": lambda: RecipeRow.prep_time,
    "cookTime": lambda: RecipeRow.cook_time,
    "servings": lambda: RecipeRow.servings,
    "views": lambda: RecipeRow.views,
    "likes": _like_count,
}


@dataclass(frozen=True)
class RecipeScope:
    """Which recipes a listing may see at all.

    ``owner_id`` restricts to one owner, ``public_only`` to shared recipes and
    ``liked_by`` to recipes that user has liked. Fields combine with AND.
    """

    owner_id: Optional[str] = None
    public_only: bool = False
    liked_by: Optional[str] = None

    @classmethod
    def owned_by(cls, user_id: str) -> "RecipeScope":
        return cls(owner_id=user_id)

    @classmethod
    def public(cls) -> "RecipeScope":
        return cls(public_only=True)

    @classmethod
    def public_by(cls, user_id: str) -> "RecipeScope":
        return cls(owner_id=user_id, public_only=True)

    @classmethod
    def liked_public(cls, user_id: str) -> "RecipeScope":
        return cls(public_only=True, liked_by=user_id)


@dataclass(frozen=True)
class RecipeFilter:
    """Listing filter/sort configuration.

    Every field is optional; the defaults select everything in scope, newest
    first.

    - ``category`` / ``difficulty``: exact match; ``None`` or ``"All"`` disables.
    - ``search``: case-insensitive substring of title, description or any
      ingredient name.
    - ``max_time``: upper bound on prep + cook minutes.
    - ``tags``: match recipes carrying at least one of these tags.
    - ``sort_by``: a key of :data:`SORT_FIELDS`; anything else sorts by
      ``createdAt desc``.
    - ``sort_order``: ``"asc"`` or ``"desc"`` (anything else means ``desc``).
    """

    category: Optional[str] = None
    search: Optional[str] = None
    difficulty: Optional[str] = None
    max_time: Optional[int] = None
    tags: tuple[str, ...] = field(default_factory=tuple)
    sort_by: str = DEFAULT_SORT_BY
    sort_order: str = DEFAULT_SORT_ORDER

    @classmethod
    def from_params(
        cls,
        *,
        category: Optional[str] = None,
        search: Optional[str] = None,
        difficulty: Optional[str] = None,
        max_time: Optional[int] = None,
        tags: Optional[Iterable[str]] = None,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
    ) -> "RecipeFilter":
        """Build from raw query parameters.

        ``tags`` may mix repeated values and comma-separated lists.
        """
        tag_list: list[str] = []
        for raw in tags or ():
            for tag in raw.split(","):
                tag = tag.strip()
                if tag and tag not in tag_list:
                    tag_list.append(tag)
        return cls(
            category=category or None,
            search=(search or "").strip() or None,
            difficulty=difficulty or None,
            max_time=max_time,
            tags=tuple(tag_list),
            sort_by=sort_by or DEFAULT_SORT_BY,
            sort_order=sort_order or DEFAULT_SORT_ORDER,
        )


@dataclass(frozen=True)
class CompiledQuery:
    predicate: ColumnElement[bool]
    ordering: tuple[ColumnElement, ...]

    def select_page(self, offset: int, limit: int) -> Select:
        return (
            select(RecipeRow)
            .where(self.predicate)
            .order_by(*self.ordering)
            .offset(offset)
            .limit(limit)
        )

    def select_count(self) -> Select:
        return select(func.count()).select_from(RecipeRow).where(self.predicate)


def resolve_sort(sort_by: str, sort_order: str) -> tuple[str, str]:
    """Return a valid (sort_by, sort_order) pair, failing closed to the default."""
    if sort_by not in SORT_FIELDS:
        logger.debug("Unknown sortBy %r, using %s %s", sort_by, DEFAULT_SORT_BY, DEFAULT_SORT_ORDER)
        return DEFAULT_SORT_BY, DEFAULT_SORT_ORDER
    if sort_order not in ("asc", "desc"):
        return sort_by, DEFAULT_SORT_ORDER
    return sort_by, sort_order


def _scope_conditions(scope: RecipeScope) -> list[ColumnElement[bool]]:
    conditions = []
    if scope.owner_id is not None:
        conditions.append(RecipeRow.owner_id == scope.owner_id)
    if scope.public_only:
        conditions.append(RecipeRow.is_public.is_(True))
    if scope.liked_by is not None:
        conditions.append(RecipeRow.likes.any(RecipeLikeRow.user_id == scope.liked_by))
    return conditions


def _contains(haystack: ColumnElement, needle: str) -> ColumnElement[bool]:
    # replace() compares bytes on every backend; SQLite's LIKE folds ASCII case
    return func.length(func.replace(haystack, needle, "")) < func.length(haystack)


def _tag_condition(tags: tuple[str, ...]) -> ColumnElement[bool]:
    # Tags live in a JSON array. Looking for the JSON-encoded, quoted element
    # in the serialized array matches whole elements, case included.
    serialized = cast(RecipeRow.tags, String)
    return or_(*(_contains(serialized, json.dumps(tag)) for tag in tags))


def _search_condition(search: str) -> ColumnElement[bool]:
    term = f"%{_escape_like(search.lower())}%"
    return or_(
        func.lower(RecipeRow.title).like(term, escape="\\"),
        func.lower(RecipeRow.description).like(term, escape="\\"),
        RecipeRow.ingredients.any(
            func.lower(RecipeIngredientRow.name).like(term, escape="\\")
        ),
    )


def compile_filter(config: RecipeFilter, scope: RecipeScope) -> CompiledQuery:
    """Translate a filter configuration into a predicate and an ordering."""
    conditions = _scope_conditions(scope)

    if config.category and config.category != ALL:
        conditions.append(RecipeRow.category == config.category)

    if config.difficulty and config.difficulty != ALL:
        conditions.append(RecipeRow.difficulty == config.difficulty)

    if config.max_time is not None:
        conditions.append(total_time_expr() <= config.max_time)

    if config.tags:
        conditions.append(_tag_condition(config.tags))

    if config.search:
        conditions.append(_search_condition(config.search))

    predicate = and_(*conditions) if conditions else true()

    sort_by, sort_order = resolve_sort(config.sort_by, config.sort_order)
    column = SORT_FIELDS[sort_by]()
    primary = column.asc() if sort_order == "asc" else column.desc()
    # id tie-breaker keeps page windows stable between requests
    return CompiledQuery(predicate=predicate, ordering=(primary, RecipeRow.id.asc()))
