#!/usr/bin/env python3
"""Seed the database with a demo user and a handful of DevDish recipes."""
import asyncio
import logging
import os
import sys
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import select

from src.logging_config import setup_logging
from src.auth import hash_password
from src.db.engine import engine, async_session
from src.db.repository import RecipeRepository
from src.db.tables import Base, RecipeRow
from src.db.user_tables import UserRow
from src.models import RecipeCreate

logger = logging.getLogger("seed")

DEMO_USER = {"username": "demo_chef", "email": "demo@devdish.dev", "password": "devdish123"}

RECIPES = [
    {
        "title": "Saffron Paella",
        "description": "Seafood paella with a proper socarrat.",
        "ingredients": [
            {"name": "bomba rice", "quantity": 400, "unit": "g"},
            {"name": "saffron", "quantity": 1, "unit": "pinch"},
            {"name": "prawns", "quantity": 300, "unit": "g"},
            {"name": "chicken stock", "quantity": 1.2, "unit": "l"},
        ],
        "instructions": [
            "Toast the rice in olive oil",
            "Add stock and saffron, do not stir",
            "Lay prawns on top for the last 8 minutes",
        ],
        "prep_time": 20, "cook_time": 40, "servings": 4,
        "difficulty": "Hard", "category": "Dinner",
        "tags": ["spanish", "seafood"], "is_public": True,
    },
    {
        "title": "Overnight Oats",
        "description": "Five minutes tonight, breakfast tomorrow.",
        "ingredients": [
            {"name": "rolled oats", "quantity": 0.5, "unit": "cup"},
            {"name": "milk", "quantity": 120, "unit": "ml"},
            {"name": "honey", "quantity": 1, "unit": "tbsp"},
        ],
        "instructions": ["Mix everything in a jar", "Refrigerate overnight"],
        "prep_time": 5, "cook_time": 0, "servings": 1,
        "difficulty": "Easy", "category": "Breakfast",
        "tags": ["quick", "vegetarian", "make-ahead"], "is_public": True,
    },
    {
        "title": "Weeknight Tomato Soup",
        "ingredients": [
            {"name": "tomato", "quantity": 6, "unit": "piece"},
            {"name": "onion", "quantity": 1, "unit": "piece"},
            {"name": "salt", "quantity": 1, "unit": "to taste"},
        ],
        "instructions": ["Soften the onion", "Add tomatoes and simmer 20 minutes", "Blend"],
        "prep_time": 10, "cook_time": 25, "servings": 2,
        "difficulty": "Easy", "category": "Lunch",
        "tags": ["soup", "vegetarian"], "is_public": False,
    },
    {
        "title": "Dark Chocolate Mousse",
        "ingredients": [
            {"name": "dark chocolate", "quantity": 200, "unit": "g"},
            {"name": "eggs", "quantity": 4, "unit": "piece"},
            {"name": "sugar", "quantity": 2, "unit": "tbsp"},
        ],
        "instructions": ["Melt chocolate", "Whip whites with sugar", "Fold together and chill"],
        "prep_time": 25, "cook_time": 0, "servings": 6,
        "difficulty": "Medium", "category": "Dessert",
        "tags": ["chocolate", "make-ahead"], "is_public": True,
    },
]


async def seed():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as session:
        user = (await session.execute(
            select(UserRow).where(UserRow.email == DEMO_USER["email"])
        )).scalar_one_or_none()
        if user:
            # Clear the previous demo data (ORM cascade removes ingredients and likes)
            recipes = (await session.execute(
                select(RecipeRow).where(RecipeRow.owner_id == user.id)
            )).scalars().all()
            for recipe in recipes:
                await session.delete(recipe)
            await session.delete(user)
            await session.commit()

        user = UserRow(
            username=DEMO_USER["username"],
            email=DEMO_USER["email"],
            password_hash=hash_password(DEMO_USER["password"]),
            bio="Demo account",
            social_media={},
        )
        session.add(user)
        await session.commit()

        repo = RecipeRepository(session)
        for r in RECIPES:
            await repo.create(user, RecipeCreate(**r))

    logger.info("✅ Seeded %d recipes for %s (password: %s)",
                len(RECIPES), DEMO_USER["email"], DEMO_USER["password"])


if __name__ == "__main__":
    setup_logging()
    asyncio.run(seed())
