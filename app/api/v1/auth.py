"""Registration, login and token refresh, plus the auth dependencies (get_current_user, require_permissions)."""

import logging
from collections.abc import Callable
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.errors import Unauthenticated
from app.core.security import (
    ACCESS_TOKEN_TYPE,
    InvalidTokenError,
    decode_token,
    subject_id_from_claims,
)
from app.models import User
from app.schemas.auth import (
    LoginRequest,
    LoginResponse,
    RefreshRequest,
    RefreshResponse,
    RegisterRequest,
    RegisterResponse,
    UserPublic,
    UserWithRoles,
)
from app.services import accounts
from app.services.email import EmailService, get_email_service
from app.services.rbac import ensure_permissions, get_user_with_grants

logger = logging.getLogger(__name__)

router = APIRouter()
security = HTTPBearer(auto_error=False)


def get_current_user(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
) -> User:
    """
    Dependency: require a valid Bearer access token for an active user.

    Returns the user with roles and permissions loaded and attaches it to
    request.state.user. Every failure after the header check collapses to the
    same 401 so callers cannot tell which step failed.
    """
    # Only the exact "Bearer <token>" form counts as a credential. Everything after
    # the first space is the token, so "Bearer a b" fails decoding as "Invalid token".
    if credentials is None or credentials.scheme != "Bearer" or not credentials.credentials:
        raise Unauthenticated("Authentication required")
    try:
        claims = decode_token(credentials.credentials, expected_type=ACCESS_TOKEN_TYPE)
        user_id = subject_id_from_claims(claims)
    except InvalidTokenError as e:
        logger.debug("Token rejected: %s", e)
        raise Unauthenticated("Invalid token") from e
    user = get_user_with_grants(db, user_id)
    if user is None or not user.is_active:
        raise Unauthenticated("Invalid token")
    request.state.user = user
    return user


def require_permissions(*required: str) -> Callable[..., User]:
    """
    Dependency factory: authenticated user holding every listed permission.

    Usage: ``user: Annotated[User, Depends(require_permissions("document:read"))]``
    """

    def check_permissions(
        current_user: Annotated[User, Depends(get_current_user)],
    ) -> User:
        ensure_permissions(current_user, required)
        return current_user

    return check_permissions


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterRequest,
    db: Annotated[Session, Depends(get_db)],
    notifier: Annotated[EmailService, Depends(get_email_service)],
) -> RegisterResponse:
    """Create an account with the default role; returns an access token and public user fields."""
    token, user = accounts.register(db, body, notifier)
    return RegisterResponse(token=token, user=UserPublic.model_validate(user))


@router.post("/login", response_model=LoginResponse)
def login(
    body: LoginRequest,
    db: Annotated[Session, Depends(get_db)],
) -> LoginResponse:
    """
    Authenticate with email and password; returns an access and a refresh token.
    Include the access token in the Authorization header as: Bearer <token>
    """
    tokens, user = accounts.login(db, str(body.email), body.password)
    return LoginResponse(
        token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        user=UserWithRoles.model_validate(user),
    )


@router.post("/refresh", response_model=RefreshResponse)
def refresh(
    body: RefreshRequest,
    db: Annotated[Session, Depends(get_db)],
) -> RefreshResponse:
    """Exchange a refresh token for a new access token."""
    return RefreshResponse(token=accounts.refresh(db, body.refresh_token))
