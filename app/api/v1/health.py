"""Health check endpoint with database and blob storage checks."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import check_db_connected, get_db
from app.schemas.health import HealthResponse
from app.services.storage import LocalBlobStorage, get_storage

router = APIRouter()


@router.get("/", response_model=HealthResponse)
def get_health(
    db: Annotated[Session, Depends(get_db)],
    storage: Annotated[LocalBlobStorage, Depends(get_storage)],
) -> HealthResponse:
    """
    Return service health status, database connectivity and storage availability.
    Used by load balancers and monitoring.
    """
    return HealthResponse(
        status="ok",
        environment=settings.APP_ENV,
        database="connected" if check_db_connected(db) else "disconnected",
        storage="available" if storage.is_available() else "unavailable",
    )
