"""FastAPI application entry point.

Configures CORS, structured logging, lifespan events (store and list cache
construction), error serialization and router registration.
"""

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse

from app.core.config import settings
from app.core.errors import ErrorKind, ServiceError, StorageFailure
from app.core.logging import setup_logging
from app.db.seed import seed_store
from app.db.store import build_store
from app.routers import candidates, health
from app.services.cache import ListCache

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Application lifespan: build the store and the list cache.

    The memory backend is seeded from ``SEED_DATA_PATH`` on startup.
    """
    setup_logging()
    store = build_store(settings)
    if settings.STORE_BACKEND == "memory" and settings.SEED_DATA_PATH:
        seed_store(store, settings.SEED_DATA_PATH)
    application.state.store = store
    application.state.list_cache = ListCache(ttl_seconds=settings.LIST_CACHE_TTL_SECONDS)
    logger.info("Application starting up", extra={"backend": settings.STORE_BACKEND})
    yield
    application.state.list_cache.clear()
    logger.info("Application shutting down")


app = FastAPI(
    title="Candidate Profiles API",
    description="Search, review and shortlist candidate profiles with an audit trail",
    version="0.1.0",
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# CORS Configuration
# ---------------------------------------------------------------------------
_raw_origins = settings.ALLOWED_ORIGINS.strip()
if _raw_origins == "*":
    _allowed_origins: list[str] = ["*"]
else:
    _allowed_origins = [o.strip() for o in _raw_origins.split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Error serialization
# ---------------------------------------------------------------------------

def _error_body(code: str, message: str, details: list[str] | None = None) -> dict:
    return {"error": {"code": code, "message": message, "details": details or []}}


def status_for(exc: ServiceError) -> int:
    """HTTP status for each error kind."""
    match exc.kind:
        case ErrorKind.validation:
            return 400
        case ErrorKind.unauthorized:
            return 401
        case ErrorKind.not_found:
            return 404
        case ErrorKind.storage:
            if exc.failure in (StorageFailure.conflict, StorageFailure.constraint):
                return 409
            return 500
    raise ValueError(f"Unhandled error kind: {exc.kind!r}")


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    status_code = status_for(exc)
    log = logger.error if status_code >= 500 else logger.warning
    log(
        "request_failed",
        extra={
            "method": request.method,
            "path": request.url.path,
            "status_code": status_code,
            "code": exc.kind.value,
            "error_message": exc.message,
            "retryable": exc.retryable,
        },
    )
    return JSONResponse(
        status_code=status_code,
        content=_error_body(exc.kind.value, exc.message, exc.detail_lines()),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    details = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        details.append(f"{location or 'body'}: {err.get('msg', 'Invalid value')}")
    return JSONResponse(
        status_code=400,
        content=_error_body(ErrorKind.validation.value, "Invalid request", details),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    if exc.status_code == 404:
        return JSONResponse(
            status_code=404,
            content=_error_body(
                "ROUTE_NOT_FOUND", f"Route not found: {request.method} {request.url.path}"
            ),
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body("HTTP_ERROR", str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


# ---------------------------------------------------------------------------
# Router Registration
# ---------------------------------------------------------------------------
app.include_router(health.router, tags=["Health"])
app.include_router(candidates.router, prefix="/candidates", tags=["Candidates"])
