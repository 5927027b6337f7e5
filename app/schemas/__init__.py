"""Pydantic request/response schemas."""

from app.schemas.auth import (
    LoginRequest,
    LoginResponse,
    RefreshRequest,
    RefreshResponse,
    RegisterRequest,
    RegisterResponse,
    RoleRef,
    UserProfile,
    UserPublic,
    UserWithRoles,
)
from app.schemas.common import CamelModel, MessageResponse
from app.schemas.documents import (
    DocumentMessageResponse,
    DocumentOut,
    DocumentResponse,
    DocumentsListResponse,
    DocumentUpdateRequest,
)
from app.schemas.health import HealthResponse
from app.schemas.roles import (
    AssignRoleRequest,
    PermissionCreateRequest,
    PermissionOut,
    PermissionResponse,
    PermissionsListResponse,
    RoleCreateRequest,
    RoleOut,
    RoleResponse,
    RolesListResponse,
    RoleUpdateRequest,
    UserRolesResponse,
)
from app.schemas.users import (
    ProfileResponse,
    ProfileUpdateRequest,
    ProfileUpdateResponse,
    UsersListResponse,
)

__all__ = [
    "AssignRoleRequest",
    "CamelModel",
    "DocumentMessageResponse",
    "DocumentOut",
    "DocumentResponse",
    "DocumentUpdateRequest",
    "DocumentsListResponse",
    "HealthResponse",
    "LoginRequest",
    "LoginResponse",
    "MessageResponse",
    "PermissionCreateRequest",
    "PermissionOut",
    "PermissionResponse",
    "PermissionsListResponse",
    "ProfileResponse",
    "ProfileUpdateRequest",
    "ProfileUpdateResponse",
    "RefreshRequest",
    "RefreshResponse",
    "RegisterRequest",
    "RegisterResponse",
    "RoleCreateRequest",
    "RoleOut",
    "RoleRef",
    "RoleResponse",
    "RoleUpdateRequest",
    "RolesListResponse",
    "UserProfile",
    "UserPublic",
    "UserRolesResponse",
    "UserWithRoles",
    "UsersListResponse",
]
