"""Startup validation — catch misconfigurations before the app serves traffic."""
from __future__ import annotations

import logging
import sys

from config.settings import DEFAULT_JWT_SECRET, settings

logger = logging.getLogger(__name__)


def validate_settings() -> list[str]:
    """Validate configuration. Returns list of warnings (empty = all good).

    Raises SystemExit for critical misconfigurations in production.
    """
    warnings: list[str] = []

    # Critical: JWT secret must be changed in production
    if settings.is_production and settings.JWT_SECRET == DEFAULT_JWT_SECRET:
        logger.critical("JWT_SECRET is still the default! Set a real secret for production.")
        sys.exit(1)

    if settings.is_production and "*" in settings.CORS_ORIGINS:
        warnings.append("CORS_ORIGINS is set to * — restrict in production")

    if settings.is_production and "sqlite" in settings.DATABASE_URL:
        warnings.append("DATABASE_URL points at SQLite in production")

    if settings.MAX_PAGE_SIZE < settings.DEFAULT_PAGE_SIZE:
        warnings.append(
            f"MAX_PAGE_SIZE ({settings.MAX_PAGE_SIZE}) is below DEFAULT_PAGE_SIZE "
            f"({settings.DEFAULT_PAGE_SIZE})"
        )

    for w in warnings:
        logger.warning("⚠️  %s", w)

    if not warnings:
        logger.info("✅ All startup checks passed")

    return warnings
