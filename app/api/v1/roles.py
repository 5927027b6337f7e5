"""Role management and user-role membership endpoints (require role:manage)."""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from app.api.v1.auth import require_permissions
from app.core.database import get_db
from app.models import User
from app.schemas.auth import UserWithRoles
from app.schemas.roles import (
    AssignRoleRequest,
    RoleCreateRequest,
    RoleOut,
    RoleResponse,
    RolesListResponse,
    RoleUpdateRequest,
    UserRolesResponse,
)
from app.services import rbac

router = APIRouter()

RoleManager = Annotated[User, Depends(require_permissions("role:manage"))]


@router.get("", response_model=RolesListResponse)
def list_roles(
    _manager: RoleManager,
    db: Annotated[Session, Depends(get_db)],
) -> RolesListResponse:
    return RolesListResponse(roles=[RoleOut.model_validate(r) for r in rbac.list_roles(db)])


@router.post("", response_model=RoleResponse, status_code=status.HTTP_201_CREATED)
def create_role(
    body: RoleCreateRequest,
    _manager: RoleManager,
    db: Annotated[Session, Depends(get_db)],
) -> RoleResponse:
    """Create a role with the given permission names as its full grant set."""
    role = rbac.create_role(
        db,
        name=body.name,
        description=body.description,
        is_default=body.is_default,
        permission_names=body.permissions,
    )
    return RoleResponse(message="Role created successfully", role=RoleOut.model_validate(role))


@router.post("/assign", response_model=UserRolesResponse)
def assign_role(
    body: AssignRoleRequest,
    _manager: RoleManager,
    db: Annotated[Session, Depends(get_db)],
) -> UserRolesResponse:
    user = rbac.assign_role(db, body.user_id, body.role_id)
    return UserRolesResponse(
        message="Role assigned successfully", user=UserWithRoles.model_validate(user)
    )


@router.delete("/users/{user_id}/roles/{role_id}", response_model=UserRolesResponse)
def remove_role(
    user_id: int,
    role_id: int,
    _manager: RoleManager,
    db: Annotated[Session, Depends(get_db)],
) -> UserRolesResponse:
    user = rbac.remove_role(db, user_id, role_id)
    return UserRolesResponse(
        message="Role removed successfully", user=UserWithRoles.model_validate(user)
    )


@router.get("/{role_id}", response_model=RoleResponse)
def get_role(
    role_id: int,
    _manager: RoleManager,
    db: Annotated[Session, Depends(get_db)],
) -> RoleResponse:
    return RoleResponse(role=RoleOut.model_validate(rbac.get_role(db, role_id)))


@router.put("/{role_id}", response_model=RoleResponse)
def update_role(
    role_id: int,
    body: RoleUpdateRequest,
    _manager: RoleManager,
    db: Annotated[Session, Depends(get_db)],
) -> RoleResponse:
    """Update a role; a supplied permissions list replaces the whole grant set."""
    role = rbac.update_role(
        db,
        role_id,
        name=body.name,
        description=body.description,
        is_default=body.is_default,
        permission_names=body.permissions,
    )
    return RoleResponse(message="Role updated successfully", role=RoleOut.model_validate(role))


@router.delete("/{role_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_role(
    role_id: int,
    _manager: RoleManager,
    db: Annotated[Session, Depends(get_db)],
) -> Response:
    """Delete a role (the default role cannot be deleted)."""
    rbac.delete_role(db, role_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
