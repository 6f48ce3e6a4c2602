"""JWT authentication for DevDish: PBKDF2 passwords, HS256 bearer tokens."""
from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json
import logging
import time
import uuid
from typing import Annotated, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, EmailStr, Field, StringConstraints
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.db.engine import get_session
from src.db.user_tables import UserRow
from src.errors import UnauthorizedError
from src.models.user import Username

logger = logging.getLogger(__name__)

# ---- Password hashing (PBKDF2, stdlib only) ----

_ITERATIONS = 260_000
_SALT_LEN = 32


def hash_password(password: str) -> str:
    salt = uuid.uuid4().hex[:_SALT_LEN]
    dk = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), _ITERATIONS)
    return f"{salt}${dk.hex()}"


def verify_password(password: str, stored: str) -> bool:
    salt, _, dk_hex = stored.partition("$")
    if not dk_hex:
        return False
    dk = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), _ITERATIONS)
    return hmac.compare_digest(dk.hex(), dk_hex)


# ---- JWT (minimal, no PyJWT dependency) ----

_JWT_ALGO = "HS256"


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode()


def _b64url_decode(s: str) -> bytes:
    s += "=" * (-len(s) % 4)
    return base64.urlsafe_b64decode(s)


def _signature(sig_input: bytes) -> bytes:
    return hmac.new(settings.JWT_SECRET.encode(), sig_input, hashlib.sha256).digest()


def _sign(payload: dict) -> str:
    header = _b64url(json.dumps({"alg": _JWT_ALGO, "typ": "JWT"}).encode())
    body = _b64url(json.dumps(payload).encode())
    sig = _signature(f"{header}.{body}".encode())
    return f"{header}.{body}.{_b64url(sig)}"


def verify_token(token: str) -> Optional[dict]:
    """Return the payload of a valid, unexpired token, else None."""
    parts = token.split(".")
    if len(parts) != 3:
        return None
    try:
        expected = _signature(f"{parts[0]}.{parts[1]}".encode())
        if not hmac.compare_digest(expected, _b64url_decode(parts[2])):
            return None
        payload = json.loads(_b64url_decode(parts[1]))
    except (binascii.Error, ValueError):
        return None
    if not isinstance(payload, dict) or payload.get("exp", 0) < time.time():
        return None
    return payload


def create_token(user_id: str) -> str:
    now = int(time.time())
    return _sign({
        "sub": user_id,
        "iat": now,
        "exp": now + settings.JWT_EXPIRE_HOURS * 3600,
        "jti": uuid.uuid4().hex[:8],
    })


# ---- FastAPI dependency ----

_bearer = HTTPBearer(auto_error=False)


async def get_current_user(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    session: AsyncSession = Depends(get_session),
) -> Optional[UserRow]:
    if not creds:
        return None
    payload = verify_token(creds.credentials)
    if not payload or "sub" not in payload:
        return None
    result = await session.execute(select(UserRow).where(UserRow.id == payload["sub"]))
    return result.scalar_one_or_none()


async def require_user(user: Optional[UserRow] = Depends(get_current_user)) -> UserRow:
    if not user:
        raise UnauthorizedError("Not authorized, token missing or invalid")
    return user


# ---- Request models ----

class RegisterRequest(BaseModel):
    username: Username
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)


class LoginRequest(BaseModel):
    email: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
    password: str = Field(min_length=1)
