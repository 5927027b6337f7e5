"""Account lifecycle: registration, login, token refresh, profile changes, deactivation."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.core.errors import Conflict, NotFound, Unauthenticated
from app.core.logging import redact_email
from app.core.security import (
    REFRESH_TOKEN_TYPE,
    InvalidTokenError,
    TokenPair,
    create_access_token,
    create_token_pair,
    decode_token,
    hash_password,
    subject_id_from_claims,
    verify_password,
)
from app.models import User
from app.services.email import notify_safely
from app.services.rbac import get_default_role, get_user_with_grants

if TYPE_CHECKING:
    from app.schemas.auth import RegisterRequest
    from app.services.email import EmailService

logger = logging.getLogger(__name__)

# One message for unknown email, inactive account and wrong password.
INVALID_CREDENTIALS = "Invalid credentials or inactive account"
EMAIL_TAKEN = "Email already registered"


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def register(db: Session, data: RegisterRequest, notifier: EmailService) -> tuple[str, User]:
    """
    Create an account, assign the default role (if any) and return (access_token, user).

    The unique index on email is the authoritative duplicate guard: a
    violation at commit time is reported as Conflict just like the pre-check.
    The welcome email is best-effort and never fails registration.
    """
    email = _normalize_email(str(data.email))
    if db.query(User.id).filter(User.email == email).first() is not None:
        raise Conflict(EMAIL_TAKEN)

    user = User(
        email=email,
        password_hash=hash_password(data.password),
        first_name=data.first_name,
        last_name=data.last_name,
        is_active=True,
    )
    default_role = get_default_role(db)
    if default_role is not None:
        user.roles.append(default_role)
    else:
        logger.warning("No default role configured; registering without roles")
    db.add(user)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise Conflict(EMAIL_TAKEN) from e
    db.refresh(user)
    logger.info("User registered: user_id=%s email=%s", user.id, redact_email(email))

    notify_safely(notifier.send_welcome_email, user)
    return create_access_token(user.id), user


def login(db: Session, email: str, password: str) -> tuple[TokenPair, User]:
    """Verify credentials, stamp last_login and issue an access/refresh pair."""
    user = (
        db.query(User)
        .options(selectinload(User.roles))
        .filter(User.email == _normalize_email(email))
        .first()
    )
    if user is None or not user.is_active or not verify_password(password, user.password_hash):
        logger.info("Login failed: email=%s", redact_email(email))
        raise Unauthenticated(INVALID_CREDENTIALS)

    user.last_login = datetime.now(UTC)
    db.commit()
    db.refresh(user)
    logger.info("Login successful: user_id=%s", user.id)
    return create_token_pair(user.id), user


def refresh(db: Session, refresh_token: str) -> str:
    """Exchange a valid refresh token of an active user for a new access token."""
    try:
        claims = decode_token(refresh_token, expected_type=REFRESH_TOKEN_TYPE)
        user_id = subject_id_from_claims(claims)
    except InvalidTokenError as e:
        raise Unauthenticated("Invalid token") from e
    user = db.query(User).filter(User.id == user_id).first()
    if user is None or not user.is_active:
        raise Unauthenticated("Invalid token")
    return create_access_token(user.id)


def get_profile(db: Session, user_id: int) -> User:
    user = get_user_with_grants(db, user_id)
    if user is None:
        raise NotFound("User not found")
    return user


def update_profile(
    db: Session,
    user: User,
    first_name: str | None = None,
    last_name: str | None = None,
    password: str | None = None,
) -> User:
    """Apply only the supplied fields; a new password is hashed, never stored raw."""
    if first_name is not None:
        user.first_name = first_name
    if last_name is not None:
        user.last_name = last_name
    if password is not None:
        user.password_hash = hash_password(password)
    db.commit()
    db.refresh(user)
    logger.info(
        "Profile updated: user_id=%s password_changed=%s", user.id, password is not None
    )
    return user


def deactivate(db: Session, user_id: int, notifier: EmailService) -> User:
    """
    Soft-deactivate an account.

    Outstanding tokens stay cryptographically valid until expiry; the
    authentication gate rejects them because it re-checks is_active.
    """
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise NotFound("User not found")
    user.is_active = False
    db.commit()
    logger.info("User deactivated: user_id=%s", user_id)

    notify_safely(notifier.send_deactivation_email, user)
    return user


def list_users(db: Session, page: int, limit: int) -> tuple[list[User], int]:
    """Return one page of users (newest first) and the total count."""
    total = db.query(User).count()
    users = (
        db.query(User)
        .options(selectinload(User.roles))
        .order_by(User.created_at.desc(), User.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return users, total
