"""User accounts and public profile fields."""
from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Text, DateTime, JSON, LargeBinary
from sqlalchemy.orm import deferred

from src.db.tables import Base


class UserRow(Base):
    """Registered user. Owns recipes through ``RecipeRow.owner_id``."""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    username = Column(String(30), nullable=False, unique=True, index=True)
    email = Column(String(320), nullable=False, unique=True, index=True)
    password_hash = Column(String(256), nullable=False)  # PBKDF2-SHA256

    # Profile
    bio = Column(Text, nullable=True)
    location = Column(String(100), nullable=True)
    website = Column(String(300), nullable=True)
    social_media = Column(JSON, default=dict)  # {"twitter": ..., "instagram": ...}

    # Embedded avatar blob, same layout as recipe images
    avatar_data = deferred(Column(LargeBinary, nullable=True))
    avatar_content_type = Column(String(100), nullable=True)
    avatar_filename = Column(String(255), nullable=True)

    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    @property
    def has_avatar(self) -> bool:
        return bool(self.avatar_content_type)
