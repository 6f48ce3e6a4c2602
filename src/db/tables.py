"""SQLAlchemy ORM models for recipes, their ingredients and likes."""
from __future__ import annotations

import secrets
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column, String, Integer, Float, Text, DateTime, JSON, Boolean, LargeBinary,
    ForeignKey, Index,
)
from sqlalchemy.orm import DeclarativeBase, deferred, relationship


class Base(DeclarativeBase):
    pass


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_public_id() -> str:
    """Opaque, non-sequential identifier used in public recipe URLs."""
    return secrets.token_urlsafe(12)


class RecipeRow(Base):
    __tablename__ = "recipes"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    public_id = Column(String(32), nullable=False, unique=True, index=True, default=new_public_id)
    owner_id = Column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )

    title = Column(String(100), nullable=False, index=True)
    description = Column(String(500), nullable=True)
    instructions = Column(JSON, default=list)  # list[str]
    tags = Column(JSON, default=list)  # list[str], display order

    prep_time = Column(Integer, nullable=False, default=0)  # minutes
    cook_time = Column(Integer, nullable=False, default=0)  # minutes
    servings = Column(Integer, nullable=False, default=1)
    difficulty = Column(String(10), nullable=False, default="Medium")
    category = Column(String(20), nullable=False, default="Other", index=True)

    is_public = Column(Boolean, nullable=False, default=False, index=True)
    views = Column(Integer, nullable=False, default=0)

    # Embedded image blob; deferred so listings never load the bytes
    image_data = deferred(Column(LargeBinary, nullable=True))
    image_content_type = Column(String(100), nullable=True)
    image_filename = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), default=_utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=_utcnow)

    owner = relationship("UserRow", lazy="selectin")
    ingredients = relationship(
        "RecipeIngredientRow",
        order_by="RecipeIngredientRow.position",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )
    likes = relationship(
        "RecipeLikeRow",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )

    __table_args__ = (
        Index("ix_recipes_owner_created", "owner_id", "created_at"),
    )

    @property
    def has_image(self) -> bool:
        return bool(self.image_content_type)


class RecipeIngredientRow(Base):
    """One line of a recipe's ingredient list."""
    __tablename__ = "recipe_ingredients"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    recipe_id = Column(
        String(36), ForeignKey("recipes.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    position = Column(Integer, nullable=False, default=0)
    name = Column(String(200), nullable=False)
    quantity = Column(Float, nullable=False, default=0)
    unit = Column(String(20), nullable=False)
    notes = Column(Text, nullable=False, default="")


class RecipeLikeRow(Base):
    """Membership of a user in a recipe's like set.

    The composite primary key makes (recipe, user) unique, so a user appears
    at most once per recipe.
    """
    __tablename__ = "recipe_likes"

    recipe_id = Column(
        String(36), ForeignKey("recipes.id", ondelete="CASCADE"), primary_key=True,
    )
    user_id = Column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True, index=True,
    )
    liked_at = Column(DateTime(timezone=True), default=_utcnow)
