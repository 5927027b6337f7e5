"""Core configuration, database session, domain errors and token helpers."""

from app.core.config import get_settings, settings
from app.core.database import get_db
from app.core.errors import (
    Conflict,
    Forbidden,
    InvalidInput,
    NotFound,
    PayloadTooLarge,
    ServiceError,
    Unauthenticated,
)

__all__ = [
    "Conflict",
    "Forbidden",
    "InvalidInput",
    "NotFound",
    "PayloadTooLarge",
    "ServiceError",
    "Unauthenticated",
    "get_db",
    "get_settings",
    "settings",
]
