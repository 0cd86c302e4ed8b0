"""Candidate read service: cached listing and lookup by id."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from app.db.store import CandidateStore
from app.models.candidate import CandidateDetail, CandidateListResponse, PageMeta
from app.services.cache import ListCache
from app.services.query import compile_list_query

logger = logging.getLogger(__name__)


def list_candidates(
    store: CandidateStore,
    cache: ListCache[CandidateListResponse],
    params: Mapping[str, Any],
) -> CandidateListResponse:
    """Search, filter, sort and paginate candidates.

    Parameters are validated before the cache or the store is consulted.
    A hit within the cache window returns the previously built response
    object unchanged.
    """
    query = compile_list_query(params)
    key = query.cache_key()

    cached = cache.get(key)
    if cached is not None:
        logger.debug("list_cache_hit", extra={"cache_key": key})
        return cached

    generation = cache.generation
    rows, total = store.list(query)
    result = CandidateListResponse(
        data=rows,
        meta=PageMeta(
            page=query.page,
            page_size=query.page_size,
            total=total,
            total_pages=query.total_pages(total),
        ),
    )
    cache.set(key, result, generation)
    return result


def get_candidate(store: CandidateStore, candidate_id: str) -> CandidateDetail:
    """Return a candidate with its audit trail, newest event first."""
    return store.get_by_id(candidate_id)
