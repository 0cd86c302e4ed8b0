"""Unit tests for candidate updates and the audit trail."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from conftest import make_candidate

from app.core.errors import ErrorKind, ServiceError, StorageFailure, storage_error
from app.db.memory import InMemoryCandidateStore
from app.models.audit import CandidatePatch
from app.models.enums import AuditAction
from app.services.audit import diff_patch, update_candidate, validate_patch
from app.services.cache import ListCache


# ---------------------------------------------------------------------------
# Patch validation
# ---------------------------------------------------------------------------


class TestValidatePatch:
    """Bodies are checked field by field before anything is loaded."""

    def test_accepts_tracked_fields(self) -> None:
        patch = validate_patch({"status": "interviewing", "shortlisted": True})
        assert patch == CandidatePatch(status="interviewing", shortlisted=True)

    def test_empty_body_is_valid(self) -> None:
        assert validate_patch({}).present_fields() == {}

    def test_unknown_fields_rejected(self) -> None:
        with pytest.raises(ServiceError) as excinfo:
            validate_patch({"score": 99, "fullName": "x", "status": "new"})
        assert excinfo.value.kind is ErrorKind.validation
        assert excinfo.value.details == {
            "score": ["Unknown field"],
            "fullName": ["Unknown field"],
        }

    @pytest.mark.parametrize("value", ["true", 1, 0, None])
    def test_non_boolean_flags_rejected(self, value: object) -> None:
        with pytest.raises(ServiceError) as excinfo:
            validate_patch({"shortlisted": value, "rejected": value})
        assert set(excinfo.value.details) == {"shortlisted", "rejected"}

    @pytest.mark.parametrize("value", ["", "   ", 3, None])
    def test_status_must_be_non_empty_string(self, value: object) -> None:
        with pytest.raises(ServiceError) as excinfo:
            validate_patch({"status": value})
        assert excinfo.value.details == {"status": ["Status must be a non-empty string"]}

    def test_non_object_body_rejected(self) -> None:
        with pytest.raises(ServiceError) as excinfo:
            validate_patch(["status"])
        assert excinfo.value.kind is ErrorKind.validation


# ---------------------------------------------------------------------------
# Diffing
# ---------------------------------------------------------------------------


class TestDiffPatch:
    """One event per field whose value actually changes."""

    def test_only_changed_fields_produce_events(self) -> None:
        current = make_candidate("x", status="new", shortlisted=False, rejected=False)
        at = datetime(2026, 3, 1, tzinfo=timezone.utc)
        events = diff_patch(
            current,
            CandidatePatch(status="new", shortlisted=True, rejected=False),
            at,
        )
        assert [(e.action, e.from_, e.to) for e in events] == [
            (AuditAction.shortlisted_updated, "false", "true"),
        ]
        assert events[0].at == at
        assert events[0].candidate_id == "x"


# ---------------------------------------------------------------------------
# update_candidate
# ---------------------------------------------------------------------------


class TestUpdateCandidate:
    """Updates persist fields and audit entries together."""

    def test_status_change_adds_one_audit_entry(
        self, store: InMemoryCandidateStore, list_cache: ListCache
    ) -> None:
        # c1 starts in "screening"
        result = update_candidate(store, list_cache, "c1", {"status": "interviewing"})

        assert result.status == "interviewing"
        assert len(result.audit_log) == 1
        event = result.audit_log[0]
        assert event.action is AuditAction.status_updated
        assert event.from_ == "screening"
        assert event.to == "interviewing"

    def test_identical_values_add_no_entries(
        self, store: InMemoryCandidateStore, list_cache: ListCache
    ) -> None:
        update_candidate(store, list_cache, "c1", {"status": "interviewing"})
        again = update_candidate(store, list_cache, "c1", {"status": "interviewing"})
        assert len(again.audit_log) == 1

    def test_boolean_flags_are_audited_as_strings(
        self, store: InMemoryCandidateStore, list_cache: ListCache
    ) -> None:
        result = update_candidate(
            store, list_cache, "c2", {"shortlisted": True, "rejected": False}
        )
        assert result.shortlisted is True
        assert [(e.action, e.from_, e.to) for e in result.audit_log] == [
            (AuditAction.shortlisted_updated, "false", "true"),
        ]

    def test_audit_log_is_newest_first(
        self, store: InMemoryCandidateStore, list_cache: ListCache
    ) -> None:
        update_candidate(store, list_cache, "c3", {"status": "screening"})
        result = update_candidate(store, list_cache, "c3", {"status": "offer"})
        assert [e.to for e in result.audit_log] == ["offer", "screening"]
        assert result.audit_log[0].at >= result.audit_log[1].at

    def test_absent_fields_keep_their_values(
        self, store: InMemoryCandidateStore, list_cache: ListCache
    ) -> None:
        result = update_candidate(store, list_cache, "c4", {"rejected": True})
        assert result.status == "screening"
        assert result.shortlisted is False
        assert result.rejected is True

    def test_updated_at_advances_even_without_changes(
        self, store: InMemoryCandidateStore, list_cache: ListCache
    ) -> None:
        before = store.get_by_id("c5")
        result = update_candidate(store, list_cache, "c5", {"status": before.status})
        assert result.audit_log == []
        assert result.updated_at > before.updated_at
        assert result.created_at == before.created_at

    def test_updated_at_never_moves_backwards(self, list_cache: ListCache) -> None:
        future = datetime.now(timezone.utc) + timedelta(days=1)
        store = InMemoryCandidateStore([make_candidate("f", updated_at=future)])
        result = update_candidate(store, list_cache, "f", {"status": "screening"})
        assert result.updated_at == future

    def test_naive_stored_timestamp_is_treated_as_utc(self, list_cache: ListCache) -> None:
        store = InMemoryCandidateStore(
            [make_candidate("n", updated_at=datetime(2026, 1, 1))]
        )
        result = update_candidate(store, list_cache, "n", {"status": "screening"})
        assert result.updated_at.tzinfo is not None
        assert result.updated_at > datetime(2026, 1, 1, tzinfo=timezone.utc)

    def test_unknown_candidate_is_not_found(
        self, store: InMemoryCandidateStore, list_cache: ListCache
    ) -> None:
        with pytest.raises(ServiceError) as excinfo:
            update_candidate(store, list_cache, "missing", {"status": "new"})
        assert excinfo.value.kind is ErrorKind.not_found

    def test_invalid_body_touches_nothing(self, list_cache: ListCache) -> None:
        spy = MagicMock()
        list_cache.set("k", "cached")
        with pytest.raises(ServiceError):
            update_candidate(spy, list_cache, "c1", {"shortlisted": "yes"})
        spy.get_by_id.assert_not_called()
        spy.apply_update.assert_not_called()
        assert list_cache.get("k") == "cached"

    def test_successful_update_clears_cache(
        self, store: InMemoryCandidateStore, list_cache: ListCache
    ) -> None:
        list_cache.set("k", "cached")
        update_candidate(store, list_cache, "c1", {"shortlisted": True})
        assert len(list_cache) == 0


class TestUpdateFailures:
    """Storage failures abort the update without partial writes."""

    def test_storage_failure_leaves_no_audit_entries(
        self, store: InMemoryCandidateStore, list_cache: ListCache
    ) -> None:
        failing = MagicMock(wraps=store)
        failing.apply_update.side_effect = storage_error(
            "connection reset", StorageFailure.unavailable
        )
        list_cache.set("k", "cached")

        with pytest.raises(ServiceError) as excinfo:
            update_candidate(failing, list_cache, "c1", {"status": "offer"})

        assert excinfo.value.kind is ErrorKind.storage
        detail = store.get_by_id("c1")
        assert detail.status == "screening"
        assert detail.audit_log == []
        assert list_cache.get("k") == "cached"
        # Non-conflict failures are not retried
        assert failing.apply_update.call_count == 1

    def test_committed_update_does_not_depend_on_a_later_read(
        self, store: InMemoryCandidateStore, list_cache: ListCache
    ) -> None:
        flaky = MagicMock(wraps=store)
        flaky.get_by_id.side_effect = [
            store.get_by_id("c1"),
            storage_error("connection reset", StorageFailure.unavailable),
        ]

        result = update_candidate(flaky, list_cache, "c1", {"status": "offer"})

        assert flaky.get_by_id.call_count == 1
        assert result == store.get_by_id("c1")
        assert result.status == "offer"

    def test_returned_detail_matches_stored_audit_order(
        self, store: InMemoryCandidateStore, list_cache: ListCache
    ) -> None:
        result = update_candidate(
            store, list_cache, "c1", {"status": "offer", "shortlisted": True}
        )
        assert result == store.get_by_id("c1")

    def test_version_conflict_is_retried_with_fresh_diff(
        self, store: InMemoryCandidateStore, list_cache: ListCache
    ) -> None:
        racing = MagicMock(wraps=store)
        real_apply = store.apply_update
        calls = {"n": 0}

        def apply_with_race(*args: object, **kwargs: object) -> None:
            calls["n"] += 1
            if calls["n"] == 1:
                # Another request changes the status between load and write
                update_candidate(store, ListCache(), "c1", {"status": "offer"})
            real_apply(*args, **kwargs)

        racing.apply_update.side_effect = apply_with_race

        result = update_candidate(racing, list_cache, "c1", {"status": "interviewing"})

        assert calls["n"] == 2
        assert result.status == "interviewing"
        assert [(e.from_, e.to) for e in result.audit_log] == [
            ("offer", "interviewing"),
            ("screening", "offer"),
        ]

    def test_conflicts_exhaust_retries(
        self, store: InMemoryCandidateStore, list_cache: ListCache
    ) -> None:
        conflicting = MagicMock(wraps=store)
        conflicting.apply_update.side_effect = storage_error(
            "modified concurrently", StorageFailure.conflict, retryable=True
        )

        with pytest.raises(ServiceError) as excinfo:
            update_candidate(
                conflicting, list_cache, "c1", {"status": "offer"}, max_retries=2
            )

        assert excinfo.value.failure is StorageFailure.conflict
        assert excinfo.value.retryable is True
        assert conflicting.apply_update.call_count == 3
        assert store.get_by_id("c1").audit_log == []
