"""Password hashing and JWT creation/verification for access and refresh tokens."""

import secrets
from datetime import UTC, datetime, timedelta
from functools import lru_cache
from typing import Any, Protocol

import bcrypt
import jwt

from app.core.config import Settings, get_settings
from app.core.errors import InvalidTokenError

# Min/max lengths for email and password validation.
EMAIL_MAX_LEN = 255
PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


class TokenSubject(Protocol):
    """Anything carrying the identity claims (ORM User or a projection of it)."""

    id: int
    email: str
    role_id: int


def hash_password(plain_password: str, rounds: int | None = None) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    if rounds is None:
        rounds = get_settings().BCRYPT_ROUNDS
    # bcrypt has a 72-byte limit; truncate to avoid errors (validation already limits length).
    pw_bytes = plain_password.encode("utf-8")[:72]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash."""
    pw_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


@lru_cache
def dummy_password_hash(rounds: int) -> str:
    """Hash compared against when the email is unknown, so both login failures cost the same."""
    return hash_password(secrets.token_urlsafe(16), rounds=rounds)


def _encode(payload: dict[str, Any], secret: str, algorithm: str) -> str:
    return jwt.encode(payload, secret, algorithm=algorithm)


def create_access_token(user: TokenSubject, settings: Settings | None = None) -> str:
    """Create a short-lived access token carrying sub (user id), email and role_id."""
    settings = settings or get_settings()
    now = datetime.now(UTC)
    payload: dict[str, Any] = {
        "sub": str(user.id),
        "email": user.email,
        "role_id": user.role_id,
        "type": ACCESS_TOKEN_TYPE,
        "iat": now,
        "exp": now + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    }
    return _encode(
        payload,
        settings.JWT_ACCESS_SECRET.get_secret_value(),
        settings.JWT_ALGORITHM,
    )


def create_refresh_token(user: TokenSubject, settings: Settings | None = None) -> str:
    """
    Create a refresh token carrying sub (user id) and email.

    The random jti makes every issued refresh token unique, even two minted for
    the same user within the same second.
    """
    settings = settings or get_settings()
    now = datetime.now(UTC)
    payload: dict[str, Any] = {
        "sub": str(user.id),
        "email": user.email,
        "type": REFRESH_TOKEN_TYPE,
        "jti": secrets.token_hex(16),
        "iat": now,
        "exp": now + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
    }
    return _encode(
        payload,
        settings.JWT_REFRESH_SECRET.get_secret_value(),
        settings.JWT_ALGORITHM,
    )


def _decode(token: str, secret: str, algorithm: str, expected_type: str) -> dict[str, Any]:
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[algorithm],
            options={"require": ["exp", "iat", "sub"]},
        )
    except jwt.ExpiredSignatureError as e:
        raise InvalidTokenError("Token expired") from e
    except jwt.PyJWTError as e:
        raise InvalidTokenError("Invalid token") from e
    if payload.get("type") != expected_type:
        raise InvalidTokenError("Invalid token type")
    return payload


def decode_access_token(token: str, settings: Settings | None = None) -> dict[str, Any]:
    """
    Decode and validate an access token; return its claims.
    Raises InvalidTokenError on bad signature, expiry, or a non-access token.
    """
    settings = settings or get_settings()
    return _decode(
        token,
        settings.JWT_ACCESS_SECRET.get_secret_value(),
        settings.JWT_ALGORITHM,
        ACCESS_TOKEN_TYPE,
    )


def decode_refresh_token(token: str, settings: Settings | None = None) -> dict[str, Any]:
    """
    Decode and validate a refresh token against the refresh secret only.
    Raises InvalidTokenError on bad signature, expiry, or a non-refresh token.
    """
    settings = settings or get_settings()
    return _decode(
        token,
        settings.JWT_REFRESH_SECRET.get_secret_value(),
        settings.JWT_ALGORITHM,
        REFRESH_TOKEN_TYPE,
    )
