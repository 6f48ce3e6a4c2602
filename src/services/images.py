"""Recipe images and user avatars, stored as embedded blobs.

The row keeps the bytes (deferred column), the content type and the original
filename. API payloads only ever carry the URL of the serving endpoint.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import PurePath
from typing import Optional

from fastapi import UploadFile
from fastapi.responses import Response

from config.settings import settings
from src.db.tables import RecipeRow
from src.db.user_tables import UserRow
from src.errors import ValidationError
from src.models import ImagePayload

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredImage:
    data: bytes
    content_type: str
    filename: str


def _clean_filename(filename: Optional[str]) -> str:
    # Browsers may send a full client path; keep only the last component
    return PurePath((filename or "").replace("\\", "/")).name[:255]


def _check(data: bytes, content_type: Optional[str], max_bytes: int, field: str) -> None:
    if not content_type or not content_type.startswith("image/"):
        raise ValidationError(
            "Only image files are allowed",
            [{"field": field, "message": f"Unsupported content type: {content_type}"}],
        )
    if not data:
        raise ValidationError("No file uploaded", [{"field": field, "message": "File is empty"}])
    if len(data) > max_bytes:
        raise ValidationError(
            f"File too large. Max size: {max_bytes / 1024 / 1024:.1f}MB",
            [{"field": field, "message": f"Larger than {max_bytes} bytes"}],
        )


async def read_upload(file: UploadFile, max_bytes: int, field: str = "image") -> StoredImage:
    """Validate a multipart upload and return its bytes."""
    # One byte past the limit is enough to reject an oversized file
    data = await file.read(max_bytes + 1)
    _check(data, file.content_type, max_bytes, field)
    return StoredImage(data=data, content_type=file.content_type, filename=_clean_filename(file.filename))


def from_payload(payload: ImagePayload, max_bytes: Optional[int] = None) -> StoredImage:
    """Validate an inline base64 image from a JSON body."""
    data = payload.decode()
    _check(data, payload.content_type, max_bytes or settings.MAX_IMAGE_BYTES, "image")
    return StoredImage(data=data, content_type=payload.content_type, filename=_clean_filename(payload.filename))


def set_recipe_image(row: RecipeRow, image: StoredImage) -> None:
    row.image_data = image.data
    row.image_content_type = image.content_type
    row.image_filename = image.filename


def set_avatar(user: UserRow, image: StoredImage) -> None:
    user.avatar_data = image.data
    user.avatar_content_type = image.content_type
    user.avatar_filename = image.filename


def recipe_image_url(recipe_id: str) -> str:
    return f"{settings.API_BASE_URL}/api/recipes/{recipe_id}/image"


def avatar_url(user: UserRow) -> Optional[str]:
    if not user.has_avatar:
        return None
    return f"{settings.API_BASE_URL}/api/users/{user.id}/avatar"


def image_response(data: bytes, content_type: str) -> Response:
    return Response(
        content=data,
        media_type=content_type,
        headers={"Cache-Control": "public, max-age=300"},
    )
