"""SQLAlchemy ORM models."""

from app.models.base import Base
from app.models.document import Document
from app.models.rbac import PERMISSION_ACTIONS, Permission, Role, role_permissions, user_roles
from app.models.user import User

__all__ = [
    "Base",
    "Document",
    "PERMISSION_ACTIONS",
    "Permission",
    "Role",
    "User",
    "role_permissions",
    "user_roles",
]
