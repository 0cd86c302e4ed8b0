"""Pydantic models for the ``candidates`` table and list responses.

Attributes are snake_case (matching the table columns) and serialize with
camelCase aliases, which are the field names of the public API.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.models.audit import AuditEvent


class ApiModel(BaseModel):
    """Base for models exchanged with clients (camelCase on the wire)."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class Candidate(ApiModel):
    """Full candidate record returned from the store."""
    id: str
    full_name: str
    headline: str
    location: str
    years_of_experience: int = Field(ge=0)
    skills: list[str] = []
    availability: str
    status: str
    score: int
    shortlisted: bool = False
    rejected: bool = False
    created_at: datetime
    updated_at: datetime

    @field_validator("created_at", "updated_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # Naive timestamps (hand-written seed files) are taken as UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class CandidateDetail(Candidate):
    """Candidate plus its audit trail, newest event first."""
    audit_log: list[AuditEvent] = []


class PageMeta(ApiModel):
    """Pagination block of a list response."""
    page: int
    page_size: int
    total: int
    total_pages: int


class CandidateListResponse(ApiModel):
    """Full response for GET /candidates."""
    data: list[Candidate] = []
    meta: PageMeta
