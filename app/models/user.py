"""ORM model for application users (auth and RBAC)."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String
from sqlalchemy.orm import relationship

from app.models.base import Base, TimestampMixin
from app.models.rbac import user_roles


class User(TimestampMixin, Base):
    """
    User account for JWT authentication and role-based access control.

    Accounts are never deleted by the API; deactivation clears is_active.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    last_login = Column(DateTime(timezone=True), nullable=True)

    roles = relationship(
        "Role",
        secondary=user_roles,
        back_populates="users",
        order_by="Role.id",
    )
    documents = relationship(
        "Document",
        back_populates="uploader",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
