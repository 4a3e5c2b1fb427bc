"""Security helpers (password hashing and JWT encoding)."""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from argon2 import PasswordHasher, exceptions as argon_exc

from .config import get_settings
from .errors import AuthExpiredError, InvalidCredentialError

_ph = PasswordHasher()
_PREFIX = "argon2$"


def hash_password(password: str) -> str:
    """Create a modern Argon2 hash with a prefix for detection."""
    hashed = _ph.hash(password)
    return f"{_PREFIX}{hashed}"


def verify_password(password: str, stored_hash: str | None) -> bool:
    stored = stored_hash or ""
    if not stored.startswith(_PREFIX):
        return False
    hashed = stored[len(_PREFIX) :]
    try:
        return _ph.verify(hashed, password)
    except (argon_exc.VerifyMismatchError, argon_exc.VerificationError, argon_exc.InvalidHashError):
        return False


def encode_token(subject: str, *, ttl_seconds: int | None = None, now: datetime | None = None) -> tuple[str, dict[str, Any]]:
    """Create a signed JWT for ``subject``; returns the token and its claims."""
    settings = get_settings()
    issued = now or datetime.now(timezone.utc)
    ttl = ttl_seconds if ttl_seconds is not None else settings.jwt_ttl_seconds
    claims: dict[str, Any] = {
        "sub": subject,
        "iat": int(issued.timestamp()),
        "exp": int((issued + timedelta(seconds=ttl)).timestamp()),
        "jti": uuid.uuid4().hex,
    }
    token = jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)
    return token, claims


def decode_token(token: str, *, verify_exp: bool = True) -> dict[str, Any]:
    """Decode and validate a JWT, returning its claims."""
    settings = get_settings()
    try:
        return jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"verify_exp": verify_exp, "require": ["sub", "iat", "exp", "jti"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise AuthExpiredError("Token has expired") from exc
    except jwt.InvalidTokenError as exc:
        raise InvalidCredentialError("Invalid token") from exc
