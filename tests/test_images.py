"""Tests for recipe image upload and serving."""
from __future__ import annotations

import base64
import io
import uuid

import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers

from config.settings import settings
from src.errors import ValidationError
from src.services import images
from tests.conftest import auth, make_recipe, make_user, recipe_payload

JPEG = b"\xff\xd8\xff\xe0" + b"\x01" * 64


@pytest.mark.asyncio
async def test_upload_without_recipe_returns_base64(client):
    user = await make_user()
    resp = await client.post(
        "/api/upload/image",
        files={"image": ("photos/dish.jpg", JPEG, "image/jpeg")},
        headers=auth(user),
    )
    assert resp.status_code == 200
    data = resp.json()["data"]["image"]
    assert base64.b64decode(data["data"]) == JPEG
    assert data["contentType"] == "image/jpeg"
    assert data["filename"] == "dish.jpg"


@pytest.mark.asyncio
async def test_inline_image_on_create_is_served(client):
    user = await make_user()
    uploaded = (await client.post(
        "/api/upload/image",
        files={"image": ("dish.jpg", JPEG, "image/jpeg")},
        headers=auth(user),
    )).json()["data"]["image"]

    resp = await client.post("/api/recipes", json=recipe_payload(image=uploaded), headers=auth(user))
    assert resp.status_code == 201
    image = resp.json()["data"]["recipe"]["image"]
    assert image["contentType"] == "image/jpeg"
    assert image["url"].endswith("/image")
    assert "data" not in image

    recipe_id = resp.json()["data"]["recipe"]["id"]
    served = await client.get(f"/api/recipes/{recipe_id}/image")
    assert served.status_code == 200
    assert served.content == JPEG
    assert served.headers["content-type"] == "image/jpeg"


@pytest.mark.asyncio
async def test_upload_onto_owned_recipe(client):
    user = await make_user()
    recipe = await make_recipe(user.id)
    resp = await client.post(
        "/api/upload/image",
        data={"recipeId": recipe.id},
        files={"image": ("dish.jpg", JPEG, "image/jpeg")},
        headers=auth(user),
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["recipeId"] == recipe.id
    assert data["image"]["url"].endswith(f"/api/recipes/{recipe.id}/image")

    detail = await client.get(f"/api/recipes/{recipe.id}", headers=auth(user))
    assert detail.json()["data"]["recipe"]["image"]["filename"] == "dish.jpg"


@pytest.mark.asyncio
async def test_upload_onto_someone_elses_recipe(client):
    owner = await make_user("owner")
    other = await make_user("other")
    recipe = await make_recipe(owner.id)
    resp = await client.post(
        "/api/upload/image",
        data={"recipeId": recipe.id},
        files={"image": ("dish.jpg", JPEG, "image/jpeg")},
        headers=auth(other),
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_upload_rejects_non_image(client):
    user = await make_user()
    resp = await client.post(
        "/api/upload/image",
        files={"image": ("doc.pdf", b"%PDF-1.4", "application/pdf")},
        headers=auth(user),
    )
    assert resp.status_code == 400
    assert resp.json()["error"] == "validation_error"


@pytest.mark.asyncio
async def test_upload_rejects_oversized(client, monkeypatch):
    monkeypatch.setattr(settings, "MAX_IMAGE_BYTES", 16)
    user = await make_user()
    resp = await client.post(
        "/api/upload/image",
        files={"image": ("dish.jpg", JPEG, "image/jpeg")},
        headers=auth(user),
    )
    assert resp.status_code == 400
    assert "too large" in resp.json()["message"]


@pytest.mark.asyncio
async def test_inline_image_must_be_base64(client):
    user = await make_user()
    body = recipe_payload(image={"data": "***", "contentType": "image/png"})
    resp = await client.post("/api/recipes", json=body, headers=auth(user))
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_recipe_without_image(client):
    user = await make_user()
    recipe = await make_recipe(user.id)
    assert (await client.get(f"/api/recipes/{recipe.id}/image")).status_code == 404
    assert (await client.get(f"/api/recipes/{uuid.uuid4()}/image")).status_code == 404


class _TrackingBuffer(io.BytesIO):
    """Remembers every read size requested by the upload handler."""

    def __init__(self, data: bytes):
        super().__init__(data)
        self.requested = []

    def read(self, size=-1):
        self.requested.append(size)
        return super().read(size)


@pytest.mark.asyncio
async def test_oversized_upload_is_not_read_in_full():
    buffer = _TrackingBuffer(JPEG * 1000)
    upload = UploadFile(
        file=buffer, filename="huge.jpg", headers=Headers({"content-type": "image/jpeg"}),
    )

    with pytest.raises(ValidationError) as exc:
        await images.read_upload(upload, max_bytes=16)

    assert "too large" in exc.value.message
    assert buffer.requested == [17]


@pytest.mark.asyncio
async def test_upload_at_exact_limit_is_accepted():
    upload = UploadFile(
        file=io.BytesIO(JPEG), filename="dish.jpg", headers=Headers({"content-type": "image/jpeg"}),
    )
    stored = await images.read_upload(upload, max_bytes=len(JPEG))
    assert stored.data == JPEG
    assert stored.content_type == "image/jpeg"
