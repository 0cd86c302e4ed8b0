"""Enum types shared by the API models and the query compiler."""

from enum import Enum


class AuditAction(str, Enum):
    """Action recorded on an audit event, one per tracked field."""
    status_updated = "status_updated"
    shortlisted_updated = "shortlisted_updated"
    rejected_updated = "rejected_updated"

    @classmethod
    def for_field(cls, field: str) -> "AuditAction":
        return cls(f"{field}_updated")


class SortField(str, Enum):
    """Sortable candidate fields (API names)."""
    updatedAt = "updatedAt"
    createdAt = "createdAt"
    fullName = "fullName"
    yearsOfExperience = "yearsOfExperience"
    score = "score"


class SortOrder(str, Enum):
    """Sort direction."""
    asc = "asc"
    desc = "desc"
