"""Recipe data models — request and response schemas."""
from __future__ import annotations

import base64
import binascii
from datetime import datetime
from enum import Enum
from typing import Annotated, Optional

from pydantic import (
    BaseModel, ConfigDict, Field, StringConstraints, computed_field, field_validator,
)
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_api(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class Unit(str, Enum):
    G = "g"
    KG = "kg"
    ML = "ml"
    L = "l"
    CUP = "cup"
    TBSP = "tbsp"
    TSP = "tsp"
    PIECE = "piece"
    PINCH = "pinch"
    TO_TASTE = "to taste"


class Difficulty(str, Enum):
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"


class Category(str, Enum):
    BREAKFAST = "Breakfast"
    LUNCH = "Lunch"
    DINNER = "Dinner"
    DESSERT = "Dessert"
    SNACK = "Snack"
    BEVERAGE = "Beverage"
    OTHER = "Other"


Title = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]
Description = Annotated[str, StringConstraints(strip_whitespace=True, max_length=500)]
Step = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


def clean_tags(tags: list[str]) -> list[str]:
    """Trim, drop empties and de-duplicate while keeping first-seen order."""
    seen: set[str] = set()
    cleaned = []
    for tag in tags:
        tag = tag.strip()
        if tag and tag not in seen:
            seen.add(tag)
            cleaned.append(tag)
    return cleaned


class Ingredient(ApiModel):
    name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]
    quantity: float = Field(ge=0)
    unit: Unit
    notes: Annotated[str, StringConstraints(strip_whitespace=True, max_length=500)] = ""


class ImagePayload(ApiModel):
    """Inline image sent with a create/update body (base64 encoded)."""

    data: str
    content_type: str
    filename: str = ""

    @field_validator("content_type")
    @classmethod
    def must_be_image(cls, v: str) -> str:
        if not v.startswith("image/"):
            raise ValueError("Only image files are allowed")
        return v

    @field_validator("data")
    @classmethod
    def must_be_base64(cls, v: str) -> str:
        try:
            base64.b64decode(v, validate=True)
        except (binascii.Error, ValueError):
            raise ValueError("Image data must be base64 encoded") from None
        return v

    def decode(self) -> bytes:
        return base64.b64decode(self.data)


class RecipeCreate(ApiModel):
    title: Title
    description: Optional[Description] = None
    ingredients: list[Ingredient] = Field(min_length=1)
    instructions: list[Step] = Field(min_length=1)
    prep_time: int = Field(ge=0)
    cook_time: int = Field(ge=0)
    servings: int = Field(ge=1)
    difficulty: Difficulty = Difficulty.MEDIUM
    category: Category = Category.OTHER
    tags: list[str] = []
    is_public: bool = False
    image: Optional[ImagePayload] = None

    @field_validator("tags")
    @classmethod
    def clean_tag_list(cls, v: list[str]) -> list[str]:
        return clean_tags(v)


class RecipeUpdate(ApiModel):
    """Partial update; fields left out (or null) keep their stored value."""

    title: Optional[Title] = None
    description: Optional[Description] = None
    ingredients: Optional[list[Ingredient]] = Field(None, min_length=1)
    instructions: Optional[list[Step]] = Field(None, min_length=1)
    prep_time: Optional[int] = Field(None, ge=0)
    cook_time: Optional[int] = Field(None, ge=0)
    servings: Optional[int] = Field(None, ge=1)
    difficulty: Optional[Difficulty] = None
    category: Optional[Category] = None
    tags: Optional[list[str]] = None
    is_public: Optional[bool] = None
    image: Optional[ImagePayload] = None

    @field_validator("tags")
    @classmethod
    def clean_tag_list(cls, v: Optional[list[str]]) -> Optional[list[str]]:
        return clean_tags(v) if v is not None else None


class ImageInfo(ApiModel):
    content_type: str
    filename: Optional[str] = None
    url: str


class Author(ApiModel):
    id: str
    username: str
    avatar_url: Optional[str] = None


class Recipe(ApiModel):
    id: str
    public_id: str
    owner: Author
    title: str
    description: Optional[str] = None
    ingredients: list[Ingredient] = []
    instructions: list[str] = []
    prep_time: int
    cook_time: int
    servings: int
    difficulty: Difficulty
    category: Category
    tags: list[str] = []
    is_public: bool = False

    # Engagement
    views: int = 0
    likes: list[str] = []  # user ids

    image: Optional[ImageInfo] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @computed_field(alias="totalTime")
    @property
    def total_time(self) -> int:
        return self.prep_time + self.cook_time

    @computed_field(alias="likeCount")
    @property
    def like_count(self) -> int:
        return len(self.likes)


class CountBucket(ApiModel):
    value: str
    count: int


class RecipeStats(ApiModel):
    total_recipes: int
    category_stats: list[CountBucket]
    difficulty_stats: list[CountBucket]
