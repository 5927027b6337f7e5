"""
Seed the default permissions and roles. Safe to run repeatedly. Run from project root:
  python -m app.scripts.seed
"""
import logging
import sys

from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.database import SessionLocal
from app.core.logging import configure_logging
from app.models import Permission, Role

logger = logging.getLogger(__name__)

# (name, description) per permission; resource and action come from the name.
DEFAULT_PERMISSIONS = (
    ("user:create", "Create new users"),
    ("user:read", "View user information"),
    ("user:update", "Update user information"),
    ("user:delete", "Delete users"),
    ("document:create", "Upload new documents"),
    ("document:read", "View documents"),
    ("document:update", "Update document information"),
    ("document:delete", "Delete documents"),
    ("role:manage", "Manage roles and permissions"),
)

SUPER_ADMIN_ROLE = "Super Admin"
DEFAULT_USER_ROLE = "User"

# role name -> (description, is_default, permission names)
DEFAULT_ROLES = {
    SUPER_ADMIN_ROLE: (
        "Super administrator with full system access",
        False,
        tuple(name for name, _ in DEFAULT_PERMISSIONS),
    ),
    DEFAULT_USER_ROLE: (
        "Regular user with basic privileges",
        True,
        ("document:create", "document:read", "document:update", "document:delete"),
    ),
}


def seed_defaults(db: Session) -> tuple[int, int]:
    """
    Insert missing default permissions and roles; existing rows are left alone.

    Returns (permissions_created, roles_created).
    """
    existing = {p.name: p for p in db.query(Permission).all()}
    permissions_created = 0
    for name, description in DEFAULT_PERMISSIONS:
        if name in existing:
            continue
        resource, action = name.split(":", 1)
        permission = Permission(
            name=name, description=description, resource=resource, action=action
        )
        db.add(permission)
        existing[name] = permission
        permissions_created += 1

    roles_created = 0
    for role_name, (description, is_default, grant_names) in DEFAULT_ROLES.items():
        if db.query(Role).filter(Role.name == role_name).first() is not None:
            continue
        db.add(
            Role(
                name=role_name,
                description=description,
                is_default=is_default,
                permissions=[existing[n] for n in grant_names],
            )
        )
        roles_created += 1

    db.commit()
    return permissions_created, roles_created


def main() -> int:
    configure_logging(get_settings().LOG_LEVEL)
    db = SessionLocal()
    try:
        permissions_created, roles_created = seed_defaults(db)
        logger.info(
            "Seed completed: permissions_created=%s roles_created=%s",
            permissions_created,
            roles_created,
        )
        return 0
    except Exception as e:
        logger.exception("Seed failed: %s", e)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
