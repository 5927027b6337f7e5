"""Profile and user administration endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.v1.auth import get_current_user, require_permissions
from app.core.database import get_db
from app.models import User
from app.schemas.auth import UserProfile, UserPublic
from app.schemas.common import MessageResponse, total_pages
from app.schemas.users import (
    ProfileResponse,
    ProfileUpdateRequest,
    ProfileUpdateResponse,
    UsersListResponse,
)
from app.services import accounts
from app.services.email import EmailService, get_email_service

router = APIRouter()

MAX_PAGE_SIZE = 100


@router.get("/profile", response_model=ProfileResponse)
def get_profile(
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> ProfileResponse:
    """Return the caller's profile with roles."""
    user = accounts.get_profile(db, current_user.id)
    return ProfileResponse(user=UserProfile.model_validate(user))


@router.put("/profile", response_model=ProfileUpdateResponse)
def update_profile(
    body: ProfileUpdateRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> ProfileUpdateResponse:
    """Update first name, last name and/or password; omitted fields are unchanged."""
    user = accounts.update_profile(
        db,
        current_user,
        first_name=body.first_name,
        last_name=body.last_name,
        password=body.password,
    )
    return ProfileUpdateResponse(user=UserPublic.model_validate(user))


@router.get("", response_model=UsersListResponse)
def list_users(
    _admin: Annotated[User, Depends(require_permissions("user:read"))],
    db: Annotated[Session, Depends(get_db)],
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=MAX_PAGE_SIZE)] = 10,
) -> UsersListResponse:
    """List users newest first (requires user:read)."""
    users, total = accounts.list_users(db, page, limit)
    return UsersListResponse(
        users=[UserProfile.model_validate(u) for u in users],
        total=total,
        page=page,
        total_pages=total_pages(total, limit),
    )


@router.post("/{user_id}/deactivate", response_model=MessageResponse)
def deactivate_user(
    user_id: int,
    _admin: Annotated[User, Depends(require_permissions("user:update"))],
    db: Annotated[Session, Depends(get_db)],
    notifier: Annotated[EmailService, Depends(get_email_service)],
) -> MessageResponse:
    """
    Deactivate an account (requires user:update).

    The user's outstanding tokens are refused from the next request on.
    """
    accounts.deactivate(db, user_id, notifier)
    return MessageResponse(message="User deactivated successfully")
