"""Request/response schemas for role, permission and membership management."""

from typing import Literal

from pydantic import Field

from app.schemas.auth import UserWithRoles
from app.schemas.common import CamelModel, PermissionName, RoleName

PermissionAction = Literal["create", "read", "update", "delete", "manage"]


class PermissionOut(CamelModel):
    id: int
    name: str
    description: str | None = None
    resource: str
    action: PermissionAction


class RoleOut(CamelModel):
    id: int
    name: str
    description: str | None = None
    is_default: bool
    permissions: list[PermissionOut] = Field(default_factory=list)


class RoleCreateRequest(CamelModel):
    name: RoleName
    description: str | None = Field(default=None, max_length=255)
    is_default: bool = False
    permissions: list[str] = Field(
        default_factory=list, description="Permission names to grant (full set)"
    )


class RoleUpdateRequest(CamelModel):
    """Only supplied fields are changed; permissions replaces the full grant set."""

    name: RoleName | None = None
    description: str | None = Field(default=None, max_length=255)
    is_default: bool | None = None
    permissions: list[str] | None = None


class RoleResponse(CamelModel):
    message: str | None = None
    role: RoleOut


class RolesListResponse(CamelModel):
    roles: list[RoleOut]


class AssignRoleRequest(CamelModel):
    user_id: int = Field(..., ge=1)
    role_id: int = Field(..., ge=1)


class UserRolesResponse(CamelModel):
    message: str
    user: UserWithRoles


class PermissionCreateRequest(CamelModel):
    """name defaults to resource:action when omitted."""

    name: PermissionName | None = None
    description: str | None = Field(default=None, max_length=255)
    resource: str = Field(..., min_length=1, max_length=100, pattern=r"^[a-z][a-z0-9_\-]*$")
    action: PermissionAction


class PermissionResponse(CamelModel):
    message: str
    permission: PermissionOut


class PermissionsListResponse(CamelModel):
    permissions: list[PermissionOut]
