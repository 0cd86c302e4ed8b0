"""Shared FastAPI dependencies: store, list cache and API-key check."""

from __future__ import annotations

import secrets
from typing import Any

from fastapi import Header, Request

from app.core.config import settings
from app.core.errors import unauthorized_error
from app.db.store import CandidateStore
from app.services.cache import ListCache


def get_store(request: Request) -> CandidateStore:
    """Return the store created in the application lifespan."""
    return request.app.state.store


def get_list_cache(request: Request) -> ListCache[Any]:
    """Return the list cache created in the application lifespan."""
    return request.app.state.list_cache


def require_api_key(x_api_key: str | None = Header(default=None)) -> None:
    """Reject requests whose ``x-api-key`` does not match ``API_KEY``.

    An unset ``API_KEY`` rejects every request.
    """
    expected = settings.API_KEY
    if not expected or not x_api_key or not secrets.compare_digest(
        x_api_key.encode(), expected.encode()
    ):
        raise unauthorized_error()
