"""Health check endpoint.

Returns service status including store connectivity.  Unauthenticated so
load balancers can probe it.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends
from starlette.responses import JSONResponse

from app.core.config import settings
from app.db.store import CandidateStore
from app.routers.deps import get_store

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
def health_check(store: CandidateStore = Depends(get_store)) -> Any:
    """Return 200 when the store answers, 503 otherwise."""
    db_status = "disconnected"
    try:
        if store.ping():
            db_status = "connected"
    except Exception:
        logger.warning("Health check: store ping failed", exc_info=True)

    payload: dict[str, str] = {
        "status": "ok" if db_status == "connected" else "degraded",
        "database": db_status,
        "backend": settings.STORE_BACKEND,
    }

    if db_status != "connected":
        return JSONResponse(status_code=503, content=payload)

    return payload
