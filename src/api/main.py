"""DevDish API: FastAPI application with DB-backed storage."""
from __future__ import annotations

import logging

from src.logging_config import setup_logging
setup_logging()
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.exceptions import HTTPException as StarletteHTTPException

import src.db  # noqa: F401  (registers every table on Base.metadata)
from config.settings import settings
from src.db.engine import engine, get_session
from src.db.repository import row_to_user
from src.db.tables import Base
from src.db.user_tables import UserRow
from src.errors import AppError, ConflictError, UnauthorizedError

# ── Sentry Error Tracking ────────────────────────
if settings.SENTRY_DSN:
    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration
    from sentry_sdk.integrations.logging import LoggingIntegration

    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.SENTRY_ENVIRONMENT,
        traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
        integrations=[
            FastApiIntegration(),
            SqlalchemyIntegration(),
            LoggingIntegration(level=logging.WARNING, event_level=logging.ERROR),
        ],
        # Scrub sensitive data
        send_default_pii=False,
        before_send=lambda event, hint: (
            {**event, "request": {**event.get("request", {}), "cookies": None}}
            if "request" in event else event
        ),
    )

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Validate settings and create tables on startup."""
    from src.startup_checks import validate_settings
    validate_settings()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ready")

    yield

    logger.info("Shutting down — draining connections...")
    await engine.dispose()
    logger.info("Shutdown complete")


app = FastAPI(
    title="DevDish API",
    version=VERSION,
    description="Personal recipe management with public sharing",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Security headers wrap every response
from src.middleware.security_headers import SecurityHeadersMiddleware
app.add_middleware(SecurityHeadersMiddleware)

# Request ID tracing
from src.middleware.request_id import RequestIDMiddleware
app.add_middleware(RequestIDMiddleware)


# ---- Auth routes ----
from src.auth import (
    LoginRequest, RegisterRequest, create_token, hash_password, require_user, verify_password,
)


@app.post("/api/auth/register", status_code=201)
async def register(req: RegisterRequest, session: AsyncSession = Depends(get_session)):
    """Create a new account and return it with a bearer token."""
    email = req.email.lower()
    existing = (await session.execute(
        select(UserRow).where((UserRow.email == email) | (UserRow.username == req.username))
    )).scalars().first()
    if existing:
        field = "email" if existing.email == email else "username"
        raise ConflictError(
            f"User with this {field} already exists",
            [{"field": field, "message": "Already in use"}],
        )
    user = UserRow(
        username=req.username,
        email=email,
        password_hash=hash_password(req.password),
        social_media={},
    )
    session.add(user)
    await session.commit()
    logger.info("Registered user %s", user.id)
    return {
        "success": True,
        "message": "User registered successfully",
        "data": {"user": row_to_user(user, include_private=True).to_api(), "token": create_token(user.id)},
    }


@app.post("/api/auth/login")
async def login(req: LoginRequest, session: AsyncSession = Depends(get_session)):
    """Log in with email + password, returns a JWT."""
    result = await session.execute(select(UserRow).where(UserRow.email == req.email.lower()))
    user = result.scalar_one_or_none()
    if not user or not verify_password(req.password, user.password_hash):
        raise UnauthorizedError("Invalid email or password")
    return {
        "success": True,
        "message": "Login successful",
        "data": {"user": row_to_user(user, include_private=True).to_api(), "token": create_token(user.id)},
    }


@app.get("/api/auth/me")
async def me(user: UserRow = Depends(require_user)):
    return {"success": True, "data": {"user": row_to_user(user, include_private=True).to_api()}}


from src.api.recipes import router as recipes_router
app.include_router(recipes_router)

from src.api.public import router as public_router
app.include_router(public_router)

from src.api.users import router as users_router
app.include_router(users_router)

from src.api.upload import router as upload_router
app.include_router(upload_router)


@app.get("/health")
async def health(session: AsyncSession = Depends(get_session)):
    """Deep health check, validating DB connectivity."""
    try:
        await session.execute(text("SELECT 1"))
        db_status = "connected"
    except SQLAlchemyError:
        logger.warning("Health check could not reach the database", exc_info=True)
        db_status = "error"
    status = "ok" if db_status == "connected" else "degraded"
    return {"status": status, "db": db_status, "version": VERSION}


@app.get("/ready")
async def readiness(session: AsyncSession = Depends(get_session)):
    """Readiness probe. Returns 503 if not ready to serve traffic."""
    try:
        await session.execute(text("SELECT 1"))
    except SQLAlchemyError:
        return JSONResponse(status_code=503, content={"ready": False, "reason": "database unavailable"})
    return {"ready": True}


# --- Structured Error Responses ---


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Return clean, structured validation errors instead of raw Pydantic output."""
    errors = []
    for err in exc.errors():
        # Drop the "body"/"query" prefix so the field reads like the client sent it
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path", "form")]
        errors.append({"field": ".".join(loc) or "unknown", "message": err["msg"]})
    return JSONResponse(status_code=400, content={
        "success": False,
        "error": "validation_error",
        "message": "Invalid request data",
        "errors": errors,
    })


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    """Consistent error envelope for framework HTTP errors (404 route, 405...)."""
    return JSONResponse(status_code=exc.status_code, headers=getattr(exc, "headers", None), content={
        "success": False,
        "error": "not_found" if exc.status_code == 404 else "http_error",
        "message": exc.detail if isinstance(exc.detail, str) else "Request failed",
    })


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={
        "success": False,
        "error": "database_error",
        "message": "A database error occurred. Please try again.",
    })


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    """Catch-all for unhandled exceptions. Stack traces never leave the server."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    body = {
        "success": False,
        "error": "internal_error",
        "message": "Something went wrong. Please try again.",
    }
    if not settings.is_production:
        body["detail"] = str(exc)
    return JSONResponse(status_code=500, content=body)
