"""Shared test fixtures: one in-memory DB, recreated for every test."""
from __future__ import annotations

from contextlib import asynccontextmanager

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# StaticPool keeps a single connection so every session sees the same
# in-memory database.
from sqlalchemy.pool import StaticPool

import src.db  # noqa: F401
from src.auth import create_token
from src.db.engine import get_session
from src.db.repository import RecipeRepository
from src.db.tables import Base
from src.db.user_tables import UserRow
from src.models import Ingredient, Recipe, RecipeCreate

TEST_DB_URL = "sqlite+aiosqlite://"

test_engine = create_async_engine(
    TEST_DB_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSession = async_sessionmaker(test_engine, expire_on_commit=False, class_=AsyncSession)


async def override_get_session():
    async with TestSession() as session:
        yield session


# Import app and override BEFORE any test module imports app
from src.api.main import app  # noqa: E402

app.dependency_overrides[get_session] = override_get_session


@asynccontextmanager
async def get_test_session():
    """Context manager for seeding data in tests."""
    async with TestSession() as session:
        yield session


@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create tables before each test, drop after."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ── Seeding helpers ──────────────────────────────────────────────────────────

async def make_user(username: str = "alice", email: str | None = None) -> UserRow:
    """Insert a user directly (skips the slow password hash)."""
    async with get_test_session() as session:
        user = UserRow(
            username=username,
            email=email or f"{username}@example.com",
            password_hash="unused$unused",
            social_media={},
        )
        session.add(user)
        await session.commit()
        return user


def auth(user_or_id) -> dict:
    user_id = getattr(user_or_id, "id", user_or_id)
    return {"Authorization": f"Bearer {create_token(user_id)}"}


def recipe_payload(**overrides) -> dict:
    """A valid create body in wire (camelCase) format."""
    body = {
        "title": "Tomato Soup",
        "description": "Simple weeknight soup",
        "ingredients": [
            {"name": "tomato", "quantity": 4, "unit": "piece"},
            {"name": "salt", "quantity": 1, "unit": "pinch"},
        ],
        "instructions": ["Chop tomatoes", "Simmer for 20 minutes"],
        "prepTime": 10,
        "cookTime": 20,
        "servings": 2,
        "difficulty": "Easy",
        "category": "Lunch",
        "tags": ["soup", "vegetarian"],
        "isPublic": False,
    }
    body.update(overrides)
    return body


async def make_recipe(owner_id: str, **overrides) -> Recipe:
    """Create a recipe through the repository; ``overrides`` use snake_case."""
    fields = dict(
        title="Tomato Soup",
        ingredients=[Ingredient(name="tomato", quantity=4, unit="piece")],
        instructions=["Simmer"],
        prep_time=10,
        cook_time=20,
        servings=2,
    )
    fields.update(overrides)
    async with get_test_session() as session:
        owner = await session.get(UserRow, owner_id)
        return await RecipeRepository(session).create(owner, RecipeCreate(**fields))
