"""ORM models for roles, permissions and their many-to-many association tables."""

from sqlalchemy import Boolean, Column, Enum, ForeignKey, Integer, String, Table
from sqlalchemy.orm import relationship

from app.models.base import Base, TimestampMixin

PERMISSION_ACTIONS = ("create", "read", "update", "delete", "manage")

# Association rows are removed with either side (ON DELETE CASCADE).
user_roles = Table(
    "user_roles",
    Base.metadata,
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("role_id", Integer, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
)

role_permissions = Table(
    "role_permissions",
    Base.metadata,
    Column("role_id", Integer, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
    Column(
        "permission_id",
        Integer,
        ForeignKey("permissions.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class Role(TimestampMixin, Base):
    """
    Named set of permission grants held by users.

    is_default marks the role assigned at registration. Uniqueness of the flag
    is not enforced by the schema; the lowest-id default role wins.
    """

    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False, unique=True, index=True)
    description = Column(String(255), nullable=True)
    is_default = Column(Boolean, nullable=False, default=False)

    permissions = relationship(
        "Permission",
        secondary=role_permissions,
        back_populates="roles",
        order_by="Permission.name",
    )
    users = relationship("User", secondary=user_roles, back_populates="roles")


class Permission(TimestampMixin, Base):
    """
    A single grantable capability, conventionally named resource:action.

    The manage action is not expanded to other actions; every permission a
    role needs must be granted explicitly.
    """

    __tablename__ = "permissions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False, unique=True, index=True)
    description = Column(String(255), nullable=True)
    resource = Column(String(100), nullable=False)
    action = Column(Enum(*PERMISSION_ACTIONS, name="permission_action"), nullable=False)

    roles = relationship("Role", secondary=role_permissions, back_populates="permissions")
