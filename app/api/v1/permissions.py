"""Permission catalogue endpoints (require role:manage)."""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.v1.auth import require_permissions
from app.core.database import get_db
from app.models import User
from app.schemas.roles import (
    PermissionCreateRequest,
    PermissionOut,
    PermissionResponse,
    PermissionsListResponse,
)
from app.services import rbac

router = APIRouter()


@router.get("", response_model=PermissionsListResponse)
def list_permissions(
    _manager: Annotated[User, Depends(require_permissions("role:manage"))],
    db: Annotated[Session, Depends(get_db)],
) -> PermissionsListResponse:
    return PermissionsListResponse(
        permissions=[PermissionOut.model_validate(p) for p in rbac.list_permissions(db)]
    )


@router.post("", response_model=PermissionResponse, status_code=status.HTTP_201_CREATED)
def create_permission(
    body: PermissionCreateRequest,
    _manager: Annotated[User, Depends(require_permissions("role:manage"))],
    db: Annotated[Session, Depends(get_db)],
) -> PermissionResponse:
    """Create a permission; name defaults to resource:action."""
    permission = rbac.create_permission(
        db,
        resource=body.resource,
        action=body.action,
        name=body.name,
        description=body.description,
    )
    return PermissionResponse(
        message="Permission created successfully",
        permission=PermissionOut.model_validate(permission),
    )
