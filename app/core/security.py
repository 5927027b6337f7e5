"""Password hashing and JWT access/refresh token creation and verification."""

from datetime import UTC, datetime, timedelta
from typing import Any, Literal, NamedTuple

import bcrypt
import jwt

from app.core.config import settings

# Bcrypt cost (rounds); 12 is a good default for security vs speed.
BCRYPT_ROUNDS = 12

# Min/max lengths for email, name and password validation.
EMAIL_MAX_LEN = 255
NAME_MIN_LEN = 1
NAME_MAX_LEN = 100
PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"

TokenType = Literal["access", "refresh"]


class InvalidTokenError(Exception):
    """Raised when a token is malformed, expired, badly signed or of the wrong type."""


class TokenPair(NamedTuple):
    access_token: str
    refresh_token: str


def hash_password(plain_password: str) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    # bcrypt has a 72-byte limit; truncate to avoid errors (validation already limits length).
    pw_bytes = plain_password.encode("utf-8")[:72]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash."""
    pw_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def _create_token(subject_id: int, token_type: TokenType, lifetime: timedelta) -> str:
    now = datetime.now(UTC)
    payload: dict[str, Any] = {
        "sub": str(subject_id),
        "type": token_type,
        "iat": now,
        "exp": now + lifetime,
    }
    return jwt.encode(
        payload,
        settings.JWT_SECRET.get_secret_value(),
        algorithm=settings.JWT_ALGORITHM,
    )


def create_access_token(subject_id: int) -> str:
    """Create a short-lived access token for the given user id."""
    return _create_token(
        subject_id,
        ACCESS_TOKEN_TYPE,
        timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )


def create_refresh_token(subject_id: int) -> str:
    """Create a long-lived refresh token for the given user id."""
    return _create_token(
        subject_id,
        REFRESH_TOKEN_TYPE,
        timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
    )


def create_token_pair(subject_id: int) -> TokenPair:
    return TokenPair(
        access_token=create_access_token(subject_id),
        refresh_token=create_refresh_token(subject_id),
    )


def decode_token(token: str, expected_type: TokenType | None = None) -> dict[str, Any]:
    """
    Decode and validate a JWT; return its claims (sub, type, iat, exp).

    When expected_type is given, the token's type claim must match it, so a
    refresh token is never accepted where an access token is required (and
    vice versa). Raises InvalidTokenError on any failure.
    """
    try:
        claims = jwt.decode(
            token,
            settings.JWT_SECRET.get_secret_value(),
            algorithms=[settings.JWT_ALGORITHM],
            options={"require": ["exp", "sub"]},
        )
    except jwt.PyJWTError as e:
        raise InvalidTokenError(str(e)) from e
    if expected_type is not None and claims.get("type") != expected_type:
        raise InvalidTokenError(f"Expected a {expected_type} token")
    return claims


def subject_id_from_claims(claims: dict[str, Any]) -> int:
    """Return the integer user id carried in the sub claim."""
    try:
        return int(claims["sub"])
    except (KeyError, TypeError, ValueError) as e:
        raise InvalidTokenError("Invalid token payload") from e
