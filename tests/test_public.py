"""Tests for the public feed, shared recipe pages, likes and views."""
from __future__ import annotations

import logging

import pytest
from sqlalchemy import delete, insert, select
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.sql.dml import Insert

from src.db.tables import RecipeLikeRow, RecipeRow
from src.errors import ConflictError, NotFoundError
from src.services import interactions
from src.services.interactions import like_count, record_view, toggle_like
from tests.conftest import auth, get_test_session, make_recipe, make_user


async def _views(recipe_id: str) -> int:
    async with get_test_session() as session:
        return (await session.execute(select(RecipeRow.views).where(RecipeRow.id == recipe_id))).scalar()


# ── Service ──────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_double_toggle_restores_like_set():
    owner = await make_user("owner")
    fan = await make_user("fan")
    recipe = await make_recipe(owner.id, is_public=True)

    async with get_test_session() as session:
        first = await toggle_like(session, recipe.id, fan.id)
        assert first.liked is True and first.like_count == 1
        second = await toggle_like(session, recipe.id, fan.id)
        assert second.liked is False and second.like_count == 0
        assert await like_count(session, recipe.id) == 0


@pytest.mark.asyncio
async def test_like_set_has_one_entry_per_user():
    owner = await make_user("owner")
    fans = [await make_user(f"fan{i}") for i in range(3)]
    recipe = await make_recipe(owner.id, is_public=True)

    async with get_test_session() as session:
        for fan in fans:
            await toggle_like(session, recipe.id, fan.id)
        await toggle_like(session, recipe.id, fans[0].id)
        rows = (await session.execute(
            select(RecipeLikeRow.user_id).where(RecipeLikeRow.recipe_id == recipe.id)
        )).scalars().all()
    assert sorted(rows) == sorted(f.id for f in fans[1:])


@pytest.mark.asyncio
async def test_private_recipe_not_likeable_by_others():
    owner = await make_user("owner")
    other = await make_user("other")
    recipe = await make_recipe(owner.id, is_public=False)

    async with get_test_session() as session:
        with pytest.raises(NotFoundError):
            await toggle_like(session, recipe.id, other.id)
        # The owner still sees their own private recipe
        assert (await toggle_like(session, recipe.id, owner.id)).liked is True


def _is_like_insert(stmt) -> bool:
    return isinstance(stmt, Insert) and stmt.table.name == RecipeLikeRow.__tablename__


@pytest.mark.asyncio
async def test_toggle_retries_when_concurrent_like_lands_first(monkeypatch):
    owner = await make_user("owner")
    fan = await make_user("fan")
    recipe = await make_recipe(owner.id, is_public=True)

    async with get_test_session() as session:
        real_execute = session.execute
        raced = []

        async def execute(stmt, *args, **kwargs):
            if _is_like_insert(stmt) and not raced:
                # Another request from the same user commits its like first
                raced.append(stmt)
                await real_execute(insert(RecipeLikeRow).values(recipe_id=recipe.id, user_id=fan.id))
                await session.commit()
            return await real_execute(stmt, *args, **kwargs)

        monkeypatch.setattr(session, "execute", execute)
        result = await toggle_like(session, recipe.id, fan.id)

    assert raced
    assert result.liked is False
    assert result.like_count == 0
    async with get_test_session() as session:
        assert await like_count(session, recipe.id) == 0


@pytest.mark.asyncio
async def test_toggle_gives_up_after_repeated_conflicts(monkeypatch):
    owner = await make_user("owner")
    fan = await make_user("fan")
    recipe = await make_recipe(owner.id, is_public=True)

    async with get_test_session() as session:
        real_execute = session.execute
        attempts = []

        async def execute(stmt, *args, **kwargs):
            if _is_like_insert(stmt):
                attempts.append(stmt)
                raise IntegrityError("INSERT INTO recipe_likes", {}, Exception("UNIQUE constraint failed"))
            return await real_execute(stmt, *args, **kwargs)

        monkeypatch.setattr(session, "execute", execute)
        with pytest.raises(ConflictError):
            await toggle_like(session, recipe.id, fan.id)

    assert len(attempts) == 3


@pytest.mark.asyncio
async def test_toggle_on_recipe_deleted_mid_insert_is_not_found(monkeypatch):
    owner = await make_user("owner")
    fan = await make_user("fan")
    recipe = await make_recipe(owner.id, is_public=True)

    async with get_test_session() as session:
        real_execute = session.execute
        attempts = []

        async def execute(stmt, *args, **kwargs):
            if _is_like_insert(stmt):
                # The owner deletes the recipe; the insert then breaks the foreign key
                attempts.append(stmt)
                await real_execute(delete(RecipeRow).where(RecipeRow.id == recipe.id))
                await session.commit()
                raise IntegrityError("INSERT INTO recipe_likes", {}, Exception("FOREIGN KEY constraint failed"))
            return await real_execute(stmt, *args, **kwargs)

        monkeypatch.setattr(session, "execute", execute)
        with pytest.raises(NotFoundError):
            await toggle_like(session, recipe.id, fan.id)

    assert len(attempts) == 1


@pytest.mark.asyncio
async def test_record_view_increments_once():
    owner = await make_user()
    recipe = await make_recipe(owner.id, is_public=True)

    async with get_test_session() as session:
        assert await record_view(session, recipe.id) is True
    assert await _views(recipe.id) == 1


# ── Endpoints ────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_public_fetch_counts_views_for_any_caller(client):
    owner = await make_user()
    recipe = await make_recipe(owner.id, is_public=True)

    r1 = await client.get(f"/api/public/recipes/{recipe.public_id}")
    r2 = await client.get(f"/api/public/recipes/{recipe.public_id}", headers=auth(owner))
    assert r1.status_code == 200
    assert r1.json()["data"]["recipe"]["views"] == 1
    assert r2.json()["data"]["recipe"]["views"] == 2
    assert await _views(recipe.id) == 2


@pytest.mark.asyncio
async def test_failed_view_increment_still_serves_recipe(client, monkeypatch, caplog):
    owner = await make_user()
    recipe = await make_recipe(owner.id, is_public=True)

    def broken_update(*args, **kwargs):
        raise OperationalError("UPDATE recipes", {}, Exception("database is locked"))

    monkeypatch.setattr(interactions, "update", broken_update)
    with caplog.at_level(logging.WARNING, logger="src.services.interactions"):
        resp = await client.get(f"/api/public/recipes/{recipe.public_id}")

    assert resp.status_code == 200
    assert resp.json()["data"]["recipe"]["views"] == 0
    assert "Failed to record view" in caplog.text
    assert await _views(recipe.id) == 0


@pytest.mark.asyncio
async def test_private_recipe_hidden_from_public_page(client):
    owner = await make_user()
    recipe = await make_recipe(owner.id, is_public=False)

    resp = await client.get(f"/api/public/recipes/{recipe.public_id}")
    assert resp.status_code == 404
    assert resp.json()["success"] is False
    assert await _views(recipe.id) == 0


@pytest.mark.asyncio
async def test_explore_lists_only_public(client):
    alice = await make_user("alice")
    bob = await make_user("bob")
    await make_recipe(alice.id, title="Secret", is_public=False)
    await make_recipe(bob.id, title="Shared", is_public=True, tags=["quick"])

    resp = await client.get("/api/public/recipes")
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert [r["title"] for r in data["recipes"]] == ["Shared"]
    assert data["recipes"][0]["owner"]["username"] == "bob"
    assert "availableTags" not in data


@pytest.mark.asyncio
async def test_like_endpoint_toggles(client):
    owner = await make_user("owner")
    fan = await make_user("fan")
    recipe = await make_recipe(owner.id, is_public=True)

    resp = await client.post(f"/api/public/recipes/{recipe.id}/like", headers=auth(fan))
    assert resp.status_code == 200
    assert resp.json()["data"] == {"liked": True, "likeCount": 1}

    detail = await client.get(f"/api/public/recipes/{recipe.public_id}")
    assert detail.json()["data"]["recipe"]["likes"] == [fan.id]
    assert detail.json()["data"]["recipe"]["likeCount"] == 1

    resp = await client.post(f"/api/public/recipes/{recipe.id}/like", headers=auth(fan))
    assert resp.json()["data"] == {"liked": False, "likeCount": 0}


@pytest.mark.asyncio
async def test_like_requires_auth_and_valid_id(client):
    user = await make_user()
    resp = await client.post("/api/public/recipes/whatever/like")
    assert resp.status_code == 401

    resp = await client.post("/api/public/recipes/not-a-uuid/like", headers=auth(user))
    assert resp.status_code == 400
    assert resp.json()["error"] == "cast_error"


@pytest.mark.asyncio
async def test_liked_mine(client):
    owner = await make_user("owner")
    fan = await make_user("fan")
    liked = await make_recipe(owner.id, title="Liked", is_public=True)
    await make_recipe(owner.id, title="Ignored", is_public=True)
    await client.post(f"/api/public/recipes/{liked.id}/like", headers=auth(fan))

    resp = await client.get("/api/public/recipes/liked/mine", headers=auth(fan))
    assert resp.status_code == 200
    assert [r["title"] for r in resp.json()["data"]["recipes"]] == ["Liked"]


@pytest.mark.asyncio
async def test_sort_by_likes(client):
    owner = await make_user("owner")
    fans = [await make_user(f"fan{i}") for i in range(2)]
    popular = await make_recipe(owner.id, title="Popular", is_public=True)
    await make_recipe(owner.id, title="Quiet", is_public=True)
    for fan in fans:
        await client.post(f"/api/public/recipes/{popular.id}/like", headers=auth(fan))

    resp = await client.get("/api/public/recipes?sortBy=likes&sortOrder=desc")
    assert [r["title"] for r in resp.json()["data"]["recipes"]] == ["Popular", "Quiet"]
