"""Candidate store protocol and backend selection.

Both backends (``SupabaseCandidateStore`` and ``InMemoryCandidateStore``)
implement ``CandidateStore``.  ``build_store`` picks one from settings.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Protocol

from app.core.config import Settings
from app.models.audit import AuditEvent, CandidatePatch
from app.models.candidate import Candidate, CandidateDetail
from app.services.query import ListQuery


class CandidateStore(Protocol):
    """Persistence contract consumed by the candidate services."""

    def list(self, query: ListQuery) -> tuple[list[Candidate], int]:
        """Return one page of matching candidates and the full match count."""
        ...

    def get_by_id(self, candidate_id: str) -> CandidateDetail:
        """Return the candidate with its audit trail (newest first).

        Raises ``ServiceError(not_found)`` when the id does not exist.
        """
        ...

    def list_all(self) -> list[Candidate]:
        """Return every candidate ordered by id."""
        ...

    def apply_update(
        self,
        candidate_id: str,
        expected_updated_at: datetime,
        patch: CandidatePatch,
        updated_at: datetime,
        events: list[AuditEvent],
    ) -> None:
        """Atomically write the patch, the new ``updated_at`` and the events.

        Succeeds only if the stored ``updated_at`` still equals
        ``expected_updated_at``; otherwise raises a retryable storage
        conflict and writes nothing.
        """
        ...

    def upsert_many(self, candidates: Iterable[Candidate]) -> int:
        """Insert or replace candidates by id; returns the number written."""
        ...

    def ping(self) -> bool:
        """Return True when the backend is reachable."""
        ...


def build_store(config: Settings) -> CandidateStore:
    """Instantiate the backend named by ``STORE_BACKEND``."""
    if config.STORE_BACKEND == "memory":
        from app.db.memory import InMemoryCandidateStore

        return InMemoryCandidateStore()

    from app.db.supabase import SupabaseCandidateStore, get_supabase

    return SupabaseCandidateStore(get_supabase())
