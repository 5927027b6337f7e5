"""Request/response schemas for profile and user administration endpoints."""

from pydantic import Field

from app.core.security import PASSWORD_MAX_LEN, PASSWORD_MIN_LEN
from app.schemas.auth import UserProfile, UserPublic
from app.schemas.common import CamelModel, PersonName


class ProfileUpdateRequest(CamelModel):
    """Only supplied fields are changed."""

    first_name: PersonName | None = None
    last_name: PersonName | None = None
    password: str | None = Field(
        default=None, min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN
    )


class ProfileResponse(CamelModel):
    user: UserProfile


class ProfileUpdateResponse(CamelModel):
    message: str = "Profile updated successfully"
    user: UserPublic


class UsersListResponse(CamelModel):
    """Paginated user list (no password hashes)."""

    users: list[UserProfile]
    total: int
    page: int
    total_pages: int
