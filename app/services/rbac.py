"""Role/permission graph: permission resolution, role and grant management, membership."""

import logging
from collections.abc import Iterable

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.core.errors import Conflict, Forbidden, NotFound
from app.models import Permission, Role, User

logger = logging.getLogger(__name__)


def role_permission_map(roles: Iterable[Role]) -> dict[int, frozenset[str]]:
    """Map each role id to the set of permission names it grants."""
    return {role.id: frozenset(p.name for p in role.permissions) for role in roles}


def permission_names_for_user(user: User) -> frozenset[str]:
    """All permission names held by the user through any of its roles (duplicates collapsed)."""
    names: set[str] = set()
    for granted in role_permission_map(user.roles).values():
        names |= granted
    return frozenset(names)


def has_permissions(user: User, required: Iterable[str]) -> bool:
    """
    True iff the user holds every required permission (logical AND).

    Names are matched exactly; resource:manage does not imply other actions.
    """
    held = permission_names_for_user(user)
    return all(name in held for name in required)


def ensure_permissions(user: User, required: Iterable[str]) -> None:
    """Raise Forbidden unless the user holds every required permission."""
    required = tuple(required)
    if not has_permissions(user, required):
        logger.info(
            "Permission denied: user_id=%s required=%s",
            user.id,
            ",".join(required),
        )
        raise Forbidden("Insufficient permissions")


def get_user_with_grants(db: Session, user_id: int) -> User | None:
    """Load a user with roles and their permissions eagerly."""
    return (
        db.query(User)
        .options(selectinload(User.roles).selectinload(Role.permissions))
        .filter(User.id == user_id)
        .first()
    )


def get_default_role(db: Session) -> Role | None:
    """Role assigned at registration; the lowest id wins if several are flagged."""
    return (
        db.query(Role)
        .filter(Role.is_default.is_(True))
        .order_by(Role.id)
        .first()
    )


def list_roles(db: Session) -> list[Role]:
    return (
        db.query(Role)
        .options(selectinload(Role.permissions))
        .order_by(Role.name)
        .all()
    )


def get_role(db: Session, role_id: int) -> Role:
    role = (
        db.query(Role)
        .options(selectinload(Role.permissions))
        .filter(Role.id == role_id)
        .first()
    )
    if role is None:
        raise NotFound("Role not found")
    return role


def _permissions_by_name(db: Session, names: Iterable[str]) -> list[Permission]:
    wanted = set(names)
    if not wanted:
        return []
    found = db.query(Permission).filter(Permission.name.in_(wanted)).all()
    missing = wanted - {p.name for p in found}
    if missing:
        raise NotFound(f"Unknown permissions: {', '.join(sorted(missing))}")
    return found


def _commit_or_conflict(db: Session, message: str) -> None:
    """Commit; a uniqueness violation at write time becomes Conflict."""
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise Conflict(message) from e


def create_role(
    db: Session,
    name: str,
    description: str | None = None,
    is_default: bool = False,
    permission_names: Iterable[str] = (),
) -> Role:
    """Create a role with its initial grant set in a single transaction."""
    if db.query(Role).filter(Role.name == name).first() is not None:
        raise Conflict("Role already exists")
    role = Role(name=name, description=description, is_default=is_default)
    role.permissions = _permissions_by_name(db, permission_names)
    db.add(role)
    _commit_or_conflict(db, "Role already exists")
    logger.info("Role created: role_id=%s name=%s", role.id, role.name)
    return get_role(db, role.id)


def update_role(
    db: Session,
    role_id: int,
    name: str | None = None,
    description: str | None = None,
    is_default: bool | None = None,
    permission_names: Iterable[str] | None = None,
) -> Role:
    """
    Apply supplied fields; permission_names, when given, replaces the full grant set.

    Field changes and the new grant set are committed together.
    """
    role = get_role(db, role_id)
    if name is not None and name != role.name:
        if db.query(Role).filter(Role.name == name, Role.id != role_id).first() is not None:
            raise Conflict("Role already exists")
        role.name = name
    if description is not None:
        role.description = description
    if is_default is not None:
        role.is_default = is_default
    if permission_names is not None:
        return replace_role_grants(db, role_id, permission_names)
    _commit_or_conflict(db, "Role already exists")
    return get_role(db, role_id)


def replace_role_grants(db: Session, role_id: int, permission_names: Iterable[str]) -> Role:
    """Replace the role's full grant set atomically (one transaction)."""
    role = get_role(db, role_id)
    role.permissions = _permissions_by_name(db, permission_names)
    _commit_or_conflict(db, "Role already exists")
    logger.info(
        "Role grants replaced: role_id=%s permissions=%s",
        role_id,
        ",".join(sorted(p.name for p in role.permissions)),
    )
    return get_role(db, role_id)


def delete_role(db: Session, role_id: int) -> None:
    """Delete a role; its membership and grant rows go with it. The default role is kept."""
    role = get_role(db, role_id)
    if role.is_default:
        raise Conflict("Cannot delete default role")
    db.delete(role)
    db.commit()
    logger.info("Role deleted: role_id=%s", role_id)


def _get_user(db: Session, user_id: int) -> User:
    user = get_user_with_grants(db, user_id)
    if user is None:
        raise NotFound("User not found")
    return user


def assign_role(db: Session, user_id: int, role_id: int) -> User:
    """Add role to the user's memberships; assigning a held role is a no-op."""
    user = _get_user(db, user_id)
    role = get_role(db, role_id)
    if all(r.id != role.id for r in user.roles):
        user.roles.append(role)
        db.commit()
        logger.info("Role assigned: user_id=%s role_id=%s", user_id, role_id)
    return _get_user(db, user_id)


def remove_role(db: Session, user_id: int, role_id: int) -> User:
    """Remove role from the user's memberships; removing an unheld role is a no-op."""
    user = _get_user(db, user_id)
    role = get_role(db, role_id)
    remaining = [r for r in user.roles if r.id != role.id]
    if len(remaining) != len(user.roles):
        user.roles = remaining
        db.commit()
        logger.info("Role removed: user_id=%s role_id=%s", user_id, role_id)
    return _get_user(db, user_id)


def list_permissions(db: Session) -> list[Permission]:
    return db.query(Permission).order_by(Permission.name).all()


def create_permission(
    db: Session,
    resource: str,
    action: str,
    name: str | None = None,
    description: str | None = None,
) -> Permission:
    """Create a permission; the name defaults to resource:action."""
    name = name or f"{resource}:{action}"
    if db.query(Permission).filter(Permission.name == name).first() is not None:
        raise Conflict("Permission already exists")
    permission = Permission(
        name=name,
        description=description,
        resource=resource,
        action=action,
    )
    db.add(permission)
    _commit_or_conflict(db, "Permission already exists")
    return permission
