"""In-process candidate store.

Holds candidates and audit events in dictionaries behind one re-entrant
lock.  Used for local runs (seeded from JSON) and by the test suite.
Reads hand out deep copies so callers cannot mutate stored state.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from datetime import datetime

from app.core.errors import StorageFailure, not_found_error, storage_error
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


def matches(candidate: Candidate, f: Filter) -> bool:
    """Evaluate one filter variant against a candidate."""
    if isinstance(f, ContainsFilter):
        return f.value.lower() in str(getattr(candidate, f.column)).lower()
    if isinstance(f, MembershipFilter):
        return f.value in getattr(candidate, f.column)
    if isinstance(f, RangeFilter):
        value = getattr(candidate, f.column)
        if f.minimum is not None and value < f.minimum:
            return False
        if f.maximum is not None and value > f.maximum:
            return False
        return True
    if isinstance(f, AnyOfFilter):
        return any(matches(candidate, option) for option in f.options)
    raise TypeError(f"Unsupported filter: {f!r}")


class InMemoryCandidateStore:
    """Lock-protected ``CandidateStore`` implementation."""

    def __init__(self, candidates: Iterable[Candidate] = ()) -> None:
        self._lock = threading.RLock()
        self._candidates: dict[str, Candidate] = {}
        self._events: dict[str, list[AuditEvent]] = {}
        self.upsert_many(candidates)

    # -- reads --------------------------------------------------------------

    def list(self, query: ListQuery) -> tuple[list[Candidate], int]:
        with self._lock:
            rows = [
                c for c in self._candidates.values()
                if all(matches(c, f) for f in query.filters)
            ]
            # Tie-break on id first; the stable sort keeps it within equal keys
            rows.sort(key=lambda c: c.id)
            rows.sort(key=lambda c: getattr(c, query.sort_column), reverse=query.descending)
            page = rows[query.offset:query.offset + query.page_size]
            return [c.model_copy(deep=True) for c in page], len(rows)

    def get_by_id(self, candidate_id: str) -> CandidateDetail:
        with self._lock:
            candidate = self._candidates.get(candidate_id)
            if candidate is None:
                raise not_found_error(candidate_id)
            events = sorted(
                reversed(self._events.get(candidate_id, [])),
                key=lambda e: e.at,
                reverse=True,
            )
            return CandidateDetail(
                **candidate.model_dump(),
                audit_log=[e.model_copy() for e in events],
            )

    def list_all(self) -> list[Candidate]:
        with self._lock:
            return [
                self._candidates[cid].model_copy(deep=True)
                for cid in sorted(self._candidates)
            ]

    def ping(self) -> bool:
        return True

    # -- writes -------------------------------------------------------------

    def apply_update(
        self,
        candidate_id: str,
        expected_updated_at: datetime,
        patch: CandidatePatch,
        updated_at: datetime,
        events: list[AuditEvent],
    ) -> None:
        with self._lock:
            current = self._candidates.get(candidate_id)
            if current is None:
                raise not_found_error(candidate_id)
            if current.updated_at != expected_updated_at:
                raise storage_error(
                    f"Candidate {candidate_id} was modified concurrently",
                    StorageFailure.conflict,
                    retryable=True,
                )
            for event in events:
                if event.candidate_id != candidate_id:
                    raise storage_error(
                        f"Audit event {event.id} references another candidate",
                        StorageFailure.constraint,
                    )
            self._candidates[candidate_id] = current.model_copy(
                update={**patch.present_fields(), "updated_at": updated_at}
            )
            self._events.setdefault(candidate_id, []).extend(
                e.model_copy() for e in events
            )
        logger.debug(
            "memory_store_update_applied",
            extra={"candidate_id": candidate_id, "events": len(events)},
        )

    def upsert_many(self, candidates: Iterable[Candidate]) -> int:
        written = 0
        with self._lock:
            for candidate in candidates:
                self._candidates[candidate.id] = candidate.model_copy(deep=True)
                self._events.setdefault(candidate.id, [])
                written += 1
        return written
