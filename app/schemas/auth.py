"""Request/response schemas for registration, login and token refresh."""

from datetime import datetime

from pydantic import EmailStr, Field

from app.core.security import EMAIL_MAX_LEN, PASSWORD_MAX_LEN, PASSWORD_MIN_LEN
from app.schemas.common import CamelModel, PersonName


class RegisterRequest(CamelModel):
    """New account details."""

    email: EmailStr = Field(..., max_length=EMAIL_MAX_LEN, description="Unique email")
    password: str = Field(
        ..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN, description="Password"
    )
    first_name: PersonName
    last_name: PersonName


class LoginRequest(CamelModel):
    """Credentials for login."""

    email: EmailStr = Field(..., max_length=EMAIL_MAX_LEN, description="Account email")
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN, description="Password")


class RefreshRequest(CamelModel):
    refresh_token: str = Field(..., min_length=1, description="Refresh token from login")


class RoleRef(CamelModel):
    id: int
    name: str


class UserPublic(CamelModel):
    """Public user fields (never the password hash)."""

    id: int
    email: str
    first_name: str
    last_name: str


class UserWithRoles(UserPublic):
    roles: list[RoleRef] = Field(default_factory=list)


class UserProfile(UserWithRoles):
    """Full profile view for the account owner and administrators."""

    is_active: bool
    last_login: datetime | None = None
    created_at: datetime | None = None


class RegisterResponse(CamelModel):
    message: str = "User registered successfully"
    token: str = Field(..., description="JWT access token")
    user: UserPublic


class LoginResponse(CamelModel):
    token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="JWT refresh token")
    user: UserWithRoles


class RefreshResponse(CamelModel):
    token: str = Field(..., description="New JWT access token")
