"""Candidate update service with audit trail.

Applies partial updates to the tracked fields (status, shortlisted,
rejected).  Every field whose value actually changes yields one audit
event; the candidate write and its events are persisted by a single store
call, so they commit together or not at all.

Concurrent updates are detected optimistically: the store only writes if
``updated_at`` still matches the value the diff was computed against.  On
a conflict the candidate is reloaded and the diff recomputed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from app.core.config import settings
from app.core.constants import TRACKED_FIELDS
from app.core.errors import (
    ErrorKind,
    ServiceError,
    StorageFailure,
    validation_error,
)
from app.db.store import CandidateStore
from app.models.audit import AuditEvent, CandidatePatch
from app.models.candidate import Candidate, CandidateDetail
from app.models.enums import AuditAction
from app.services.cache import ListCache

logger = logging.getLogger(__name__)


def validate_patch(body: Any) -> CandidatePatch:
    """Validate a raw request body into a ``CandidatePatch``.

    Reports every unknown key and every mistyped value at once.
    """
    if not isinstance(body, dict):
        raise validation_error(
            "Invalid request body", {"body": ["Body must be a JSON object"]}
        )

    errors: dict[str, list[str]] = {}
    for key in body:
        if key not in TRACKED_FIELDS:
            errors[key] = ["Unknown field"]

    if "status" in body:
        status = body["status"]
        if not isinstance(status, str) or not status.strip():
            errors["status"] = ["Status must be a non-empty string"]

    for name in ("shortlisted", "rejected"):
        # JSON booleans only; 0/1 and "true" are rejected
        if name in body and not isinstance(body[name], bool):
            errors[name] = [f"{name.capitalize()} must be a boolean"]

    if errors:
        raise validation_error("Invalid request body", errors)

    return CandidatePatch(**{k: body[k] for k in TRACKED_FIELDS if k in body})


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def diff_patch(
    current: Candidate,
    patch: CandidatePatch,
    at: datetime,
) -> list[AuditEvent]:
    """Stage one audit event per tracked field whose value changes."""
    events: list[AuditEvent] = []
    for name, new_value in patch.present_fields().items():
        old_value = getattr(current, name)
        if new_value == old_value:
            continue
        events.append(
            AuditEvent(
                id=str(uuid4()),
                candidate_id=current.id,
                at=at,
                action=AuditAction.for_field(name),
                from_=_stringify(old_value),
                to=_stringify(new_value),
            )
        )
    return events


def _is_version_conflict(exc: ServiceError) -> bool:
    return exc.kind is ErrorKind.storage and exc.failure is StorageFailure.conflict


def update_candidate(
    store: CandidateStore,
    cache: ListCache[Any],
    candidate_id: str,
    body: Any,
    max_retries: int | None = None,
) -> CandidateDetail:
    """Validate and apply a patch, append audit events, invalidate the cache.

    Raises ``ServiceError`` with kind ``validation`` for a bad body,
    ``not_found`` for an unknown id and ``storage`` when the write fails or
    keeps conflicting after ``max_retries`` reloads.

    The returned detail is assembled from the loaded record and the write
    that committed, so no read happens after the commit.
    """
    patch = validate_patch(body)
    retries = settings.UPDATE_CONFLICT_RETRIES if max_retries is None else max_retries

    attempt = 0
    while True:
        current = store.get_by_id(candidate_id)
        now = datetime.now(timezone.utc)
        # updatedAt never moves backwards, even if clocks disagree
        updated_at = max(now, current.updated_at)
        events = diff_patch(current, patch, updated_at)
        try:
            store.apply_update(
                candidate_id,
                expected_updated_at=current.updated_at,
                patch=patch,
                updated_at=updated_at,
                events=events,
            )
            break
        except ServiceError as exc:
            if not _is_version_conflict(exc) or attempt >= retries:
                raise
            attempt += 1
            logger.info(
                "candidate_update_conflict_retry",
                extra={"candidate_id": candidate_id, "attempt": attempt},
            )

    cache.clear()
    logger.info(
        "candidate_updated",
        extra={
            "candidate_id": candidate_id,
            "actions": [e.action.value for e in events],
        },
    )
    # Events of one update share a timestamp; the last appended is listed first
    return current.model_copy(
        update={
            **patch.present_fields(),
            "updated_at": updated_at,
            "audit_log": [*reversed(events), *current.audit_log],
        }
    )
