"""Pydantic models for the ``audit_events`` table and candidate patches.

``from`` is a Python keyword, so the attribute is ``from_`` and the wire
name comes from its alias.  The table stores it as ``from_value`` /
``to_value``; see ``AuditEvent.from_row``.
"""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.models.enums import AuditAction


class AuditEvent(BaseModel):
    """A single field-level change recorded against a candidate."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str
    candidate_id: str
    at: datetime
    action: AuditAction
    from_: str | None = Field(default=None, alias="from")
    to: str | None = None

    @field_validator("at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "AuditEvent":
        """Build an event from an ``audit_events`` row."""
        return cls(
            id=str(row["id"]),
            candidate_id=str(row["candidate_id"]),
            at=row["at"],
            action=row["action"],
            from_=row.get("from_value"),
            to=row.get("to_value"),
        )

    def to_row(self) -> dict[str, Any]:
        """Serialize for insertion into ``audit_events``."""
        return {
            "id": self.id,
            "candidate_id": self.candidate_id,
            "at": self.at.isoformat(),
            "action": self.action.value,
            "from_value": self.from_,
            "to_value": self.to,
        }


class CandidatePatch(BaseModel):
    """Validated partial update; ``None`` means "leave unchanged"."""
    status: str | None = None
    shortlisted: bool | None = None
    rejected: bool | None = None

    def present_fields(self) -> dict[str, Any]:
        """Fields supplied by the caller, in tracked-field order."""
        return self.model_dump(exclude_none=True)
