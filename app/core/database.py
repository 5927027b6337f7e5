"""PostgreSQL connection and session management."""

import logging
from collections.abc import Generator

from sqlalchemy import create_engine, text
from sqlalchemy.orm import Session, sessionmaker

from app.core.config import settings

logger = logging.getLogger(__name__)

engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    echo=settings.DEBUG,
    connect_args={
        "connect_timeout": settings.DB_CONNECT_TIMEOUT_SEC,
        "options": f"-c statement_timeout={settings.DB_STATEMENT_TIMEOUT_MS}",
    },
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

_initialized = False


def get_db() -> Generator[Session, None, None]:
    """Dependency that yields a DB session and closes it when done."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def check_db_connected(db: Session) -> bool:
    """Run a trivial query to verify the database is reachable."""
    try:
        db.execute(text("SELECT 1"))
        return True
    except Exception:
        return False


def init_db() -> bool:
    """
    One-time process initialization: verify the database is reachable.

    Idempotent; call once at startup, never from request handlers. Schema is
    owned by Alembic, so no tables are created here. Returns connectivity.
    """
    global _initialized
    if _initialized:
        return True
    db = SessionLocal()
    try:
        connected = check_db_connected(db)
    finally:
        db.close()
    if connected:
        _initialized = True
        logger.info("Database connection established")
    else:
        logger.warning("Database not reachable at startup; requests will retry per session")
    return connected
