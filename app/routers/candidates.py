"""Candidate endpoints.

GET    /candidates              -- search, filter, sort, paginate
GET    /candidates/{id}         -- single candidate with audit log
PATCH  /candidates/{id}         -- update status / shortlisted / rejected
GET    /candidates/{id}/related -- most similar candidates

Query parameters are received as plain strings and validated by the query
compiler so that every error is reported with its API field name.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, Query

from app.core.constants import DEFAULT_RELATED_LIMIT, MAX_RELATED_LIMIT
from app.db.store import CandidateStore
from app.models.candidate import Candidate, CandidateDetail, CandidateListResponse
from app.routers.deps import get_list_cache, get_store, require_api_key
from app.services.audit import update_candidate
from app.services.cache import ListCache
from app.services.candidates import get_candidate, list_candidates
from app.services.similarity import related_candidates

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_api_key)])


@router.get("", response_model=CandidateListResponse)
def list_candidates_endpoint(
    q: str | None = Query(default=None, description="Matches name, headline or skill"),
    location: str | None = Query(default=None, description="Substring, case-insensitive"),
    skill: str | None = Query(default=None, description="Exact skill, case-sensitive"),
    status: str | None = Query(default=None, description="Substring, case-insensitive"),
    availability: str | None = Query(default=None, description="Substring, case-insensitive"),
    min_exp: str | None = Query(default=None, alias="minExp"),
    max_exp: str | None = Query(default=None, alias="maxExp"),
    sort: str | None = Query(
        default=None,
        description="updatedAt | createdAt | fullName | yearsOfExperience | score",
    ),
    order: str | None = Query(default=None, description="asc | desc"),
    page: str | None = Query(default=None),
    page_size: str | None = Query(default=None, alias="pageSize"),
    store: CandidateStore = Depends(get_store),
    cache: ListCache[Any] = Depends(get_list_cache),
) -> CandidateListResponse:
    """Return one page of candidates plus pagination metadata."""
    params = {
        "q": q,
        "location": location,
        "skill": skill,
        "status": status,
        "availability": availability,
        "minExp": min_exp,
        "maxExp": max_exp,
        "sort": sort,
        "order": order,
        "page": page,
        "pageSize": page_size,
    }
    return list_candidates(store, cache, params)


@router.get(
    "/{candidate_id}",
    response_model=CandidateDetail,
    response_model_exclude_none=True,
)
def get_candidate_endpoint(
    candidate_id: str,
    store: CandidateStore = Depends(get_store),
) -> CandidateDetail:
    return get_candidate(store, candidate_id)


@router.patch(
    "/{candidate_id}",
    response_model=CandidateDetail,
    response_model_exclude_none=True,
)
def update_candidate_endpoint(
    candidate_id: str,
    body: Any = Body(...),
    store: CandidateStore = Depends(get_store),
    cache: ListCache[Any] = Depends(get_list_cache),
) -> CandidateDetail:
    """Apply a partial update and return the candidate with its audit log."""
    return update_candidate(store, cache, candidate_id, body)


@router.get("/{candidate_id}/related", response_model=list[Candidate])
def related_candidates_endpoint(
    candidate_id: str,
    limit: int = Query(default=DEFAULT_RELATED_LIMIT, ge=1, le=MAX_RELATED_LIMIT),
    store: CandidateStore = Depends(get_store),
) -> list[Candidate]:
    """Return candidates ranked by skill, location and experience similarity."""
    return related_candidates(store, candidate_id, limit)
