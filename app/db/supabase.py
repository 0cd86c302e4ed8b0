"""Supabase client singleton and the PostgREST-backed candidate store.

``get_supabase()`` returns a lazily-initialized, process-wide Supabase
client using credentials from ``settings``.  ``SupabaseCandidateStore``
translates ``ListQuery`` descriptors into PostgREST filters and performs
updates through the ``apply_candidate_update`` PL/pgSQL function (see
``supabase/migrations``), which writes the row and its audit events in one
transaction.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Any

import httpx
from postgrest.exceptions import APIError
from supabase import Client, create_client

from app.core.config import settings
from app.core.constants import (
    APPLY_UPDATE_FUNCTION,
    AUDIT_EVENTS_TABLE,
    CANDIDATES_TABLE,
    POSTGREST_PAGE_SIZE,
)
from app.core.errors import (
    ServiceError,
    StorageFailure,
    not_found_error,
    storage_error,
)
from app.models.audit import AuditEvent, CandidatePatch
from app.models.candidate import Candidate, CandidateDetail
from app.services.query import (
    AnyOfFilter,
    ContainsFilter,
    Filter,
    ListQuery,
    MembershipFilter,
    RangeFilter,
)

logger = logging.getLogger(__name__)

_client: Client | None = None


def get_supabase() -> Client:
    """Return the singleton Supabase client, creating it on first call."""
    global _client
    if _client is None:
        _client = create_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)
    return _client


# ---------------------------------------------------------------------------
# Error translation
# ---------------------------------------------------------------------------

# Postgres SQLSTATE -> (failure, retryable)
_SQLSTATE_FAILURES: dict[str, tuple[StorageFailure, bool]] = {
    "40001": (StorageFailure.conflict, True),     # serialization / version mismatch
    "40P01": (StorageFailure.conflict, True),     # deadlock detected
    "23505": (StorageFailure.constraint, False),  # unique violation
    "23503": (StorageFailure.constraint, False),  # foreign key violation
    "57014": (StorageFailure.timeout, True),      # statement timeout
}


def translate_api_error(exc: APIError, operation: str) -> ServiceError:
    """Map a PostgREST error onto a storage ``ServiceError``."""
    failure, retryable = _SQLSTATE_FAILURES.get(
        exc.code or "", (StorageFailure.unavailable, False)
    )
    return storage_error(
        f"{operation} failed: {exc.message or exc}",
        failure,
        retryable=retryable,
    )


@contextmanager
def _translate_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except APIError as exc:
        raise translate_api_error(exc, operation) from exc
    except httpx.TimeoutException as exc:
        raise storage_error(
            f"{operation} timed out", StorageFailure.timeout, retryable=True
        ) from exc
    except httpx.HTTPError as exc:
        raise storage_error(
            f"{operation} failed: {exc}", StorageFailure.unavailable, retryable=True
        ) from exc


# ---------------------------------------------------------------------------
# Filter rendering
# ---------------------------------------------------------------------------

def _quote(value: str) -> str:
    """Double-quote a value for PostgREST logic trees and array literals."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _like_pattern(value: str) -> str:
    """Substring pattern with LIKE wildcards in ``value`` escaped."""
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"*{escaped}*"


def _array_literal(values: list[str]) -> str:
    return "{" + ",".join(_quote(v) for v in values) + "}"


def _render_option(f: ContainsFilter | MembershipFilter) -> str:
    if isinstance(f, ContainsFilter):
        return f"{f.column}.ilike.{_quote(_like_pattern(f.value))}"
    return f"{f.column}.cs.{_array_literal([f.value])}"


def apply_filter(request: Any, f: Filter) -> Any:
    """Attach one filter variant to a PostgREST request builder."""
    if isinstance(f, ContainsFilter):
        return request.ilike(f.column, _like_pattern(f.value))
    if isinstance(f, MembershipFilter):
        return request.filter(f.column, "cs", _array_literal([f.value]))
    if isinstance(f, RangeFilter):
        if f.minimum is not None:
            request = request.gte(f.column, f.minimum)
        if f.maximum is not None:
            request = request.lte(f.column, f.maximum)
        return request
    if isinstance(f, AnyOfFilter):
        return request.or_(",".join(_render_option(o) for o in f.options))
    raise TypeError(f"Unsupported filter: {f!r}")


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class SupabaseCandidateStore:
    """``CandidateStore`` backed by the Supabase ``candidates`` table."""

    def __init__(self, client: Client) -> None:
        self._client = client

    def list(self, query: ListQuery) -> tuple[list[Candidate], int]:
        request = self._client.table(CANDIDATES_TABLE).select("*", count="exact")
        for f in query.filters:
            request = apply_filter(request, f)
        request = (
            request.order(query.sort_column, desc=query.descending)
            .order("id")
            .range(query.offset, query.offset + query.page_size - 1)
        )
        with _translate_errors("List candidates"):
            result = request.execute()
        rows = result.data or []
        total = result.count if result.count is not None else len(rows)
        return [Candidate.model_validate(row) for row in rows], total

    def get_by_id(self, candidate_id: str) -> CandidateDetail:
        with _translate_errors("Get candidate"):
            result = (
                self._client.table(CANDIDATES_TABLE)
                .select("*")
                .eq("id", candidate_id)
                .limit(1)
                .execute()
            )
            if not result.data:
                raise not_found_error(candidate_id)
            events = (
                self._client.table(AUDIT_EVENTS_TABLE)
                .select("*")
                .eq("candidate_id", candidate_id)
                .order("at", desc=True)
                .execute()
            )
        return CandidateDetail(
            **Candidate.model_validate(result.data[0]).model_dump(),
            audit_log=[AuditEvent.from_row(row) for row in events.data or []],
        )

    def list_all(self) -> list[Candidate]:
        candidates: list[Candidate] = []
        start = 0
        while True:
            with _translate_errors("Scan candidates"):
                result = (
                    self._client.table(CANDIDATES_TABLE)
                    .select("*")
                    .order("id")
                    .range(start, start + POSTGREST_PAGE_SIZE - 1)
                    .execute()
                )
            rows = result.data or []
            candidates.extend(Candidate.model_validate(row) for row in rows)
            if len(rows) < POSTGREST_PAGE_SIZE:
                return candidates
            start += POSTGREST_PAGE_SIZE

    def apply_update(
        self,
        candidate_id: str,
        expected_updated_at: datetime,
        patch: CandidatePatch,
        updated_at: datetime,
        events: list[AuditEvent],
    ) -> None:
        params = {
            "p_candidate_id": candidate_id,
            "p_expected_updated_at": expected_updated_at.isoformat(),
            "p_status": patch.status,
            "p_shortlisted": patch.shortlisted,
            "p_rejected": patch.rejected,
            "p_updated_at": updated_at.isoformat(),
            "p_events": [e.to_row() for e in events],
        }
        with _translate_errors("Update candidate"):
            try:
                self._client.rpc(APPLY_UPDATE_FUNCTION, params).execute()
            except APIError as exc:
                # no_data_found: the row vanished between load and write
                if exc.code == "P0002":
                    raise not_found_error(candidate_id) from exc
                raise
        logger.debug(
            "supabase_update_applied",
            extra={"candidate_id": candidate_id, "events": len(events)},
        )

    def upsert_many(self, candidates: Iterable[Candidate]) -> int:
        rows = [c.model_dump(mode="json") for c in candidates]
        if not rows:
            return 0
        with _translate_errors("Upsert candidates"):
            self._client.table(CANDIDATES_TABLE).upsert(rows, on_conflict="id").execute()
        return len(rows)

    def ping(self) -> bool:
        try:
            with _translate_errors("Ping"):
                self._client.table(CANDIDATES_TABLE).select("id").limit(1).execute()
        except ServiceError:
            logger.warning("Supabase ping failed", exc_info=True)
            return False
        return True
