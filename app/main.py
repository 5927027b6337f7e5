"""FastAPI application entrypoint. No business logic; only wiring, middleware and error mapping."""

from dotenv import load_dotenv

load_dotenv()

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.v1 import router as v1_router
from app.core.config import settings
from app.core.database import init_db
from app.core.errors import ServiceError, Unauthenticated
from app.core.logging import configure_logging
from app.services.storage import get_storage

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """One-time process initialization; request handlers never initialize lazily."""
    init_db()
    get_storage().ensure_ready()
    yield


def _subject_id(request: Request) -> int | None:
    user = getattr(request.state, "user", None)
    return getattr(user, "id", None)


async def handle_service_error(request: Request, exc: ServiceError) -> JSONResponse:
    """Expected domain failures: status and message come from the exception."""
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthenticated) else None
    if exc.status_code >= 500:
        logger.error(
            "Service error: operation=%s %s user_id=%s message=%s",
            request.method,
            request.url.path,
            _subject_id(request),
            exc.message,
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message},
        headers=headers,
    )


async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={
            "message": "Invalid request body",
            "errors": jsonable_encoder(exc.errors(), exclude={"input", "ctx"}),
        },
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    """Anything else: log with context, return a generic 500 (detail only in dev)."""
    logger.exception(
        "Unhandled error: operation=%s %s user_id=%s",
        request.method,
        request.url.path,
        _subject_id(request),
    )
    content: dict[str, str] = {"message": "Internal Server Error"}
    if settings.APP_ENV == "dev":
        content["error"] = str(exc)
    return JSONResponse(status_code=500, content=content)


app = FastAPI(
    title="Bastion API",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.APP_ENV == "dev" else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(ServiceError, handle_service_error)
app.add_exception_handler(StarletteHTTPException, handle_http_exception)
app.add_exception_handler(RequestValidationError, handle_validation_error)
app.add_exception_handler(Exception, handle_unexpected_error)

app.include_router(v1_router, prefix=settings.API_V1_PREFIX)


@app.get("/")
def root() -> dict[str, str]:
    """Root route; minimal payload for discovery."""
    return {"message": "Bastion API"}
