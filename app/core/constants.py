"""Application constants.

Contains list-query bounds, sortable columns, tracked audit fields, and the
weights used by the related-candidates scoring.
"""

# ---------------------------------------------------------------------------
# List query defaults and bounds
# ---------------------------------------------------------------------------
DEFAULT_PAGE: int = 1
DEFAULT_PAGE_SIZE: int = 12
MAX_PAGE_SIZE: int = 100

# API sort name -> Candidate attribute / table column
SORT_COLUMNS: dict[str, str] = {
    "updatedAt": "updated_at",
    "createdAt": "created_at",
    "fullName": "full_name",
    "yearsOfExperience": "years_of_experience",
    "score": "score",
}

# ---------------------------------------------------------------------------
# Update / audit
# ---------------------------------------------------------------------------
# Patchable fields; each change appends a "<field>_updated" audit event
TRACKED_FIELDS: tuple[str, ...] = ("status", "shortlisted", "rejected")

# ---------------------------------------------------------------------------
# Related candidates
# ---------------------------------------------------------------------------
DEFAULT_RELATED_LIMIT: int = 8
MAX_RELATED_LIMIT: int = 50

SKILL_WEIGHT: float = 50.0
LOCATION_WEIGHT: float = 30.0
EXPERIENCE_WEIGHT: float = 20.0
# Points lost per year of experience difference
EXPERIENCE_DECAY_PER_YEAR: float = 2.0

# ---------------------------------------------------------------------------
# Supabase tables / functions
# ---------------------------------------------------------------------------
CANDIDATES_TABLE: str = "candidates"
AUDIT_EVENTS_TABLE: str = "audit_events"
APPLY_UPDATE_FUNCTION: str = "apply_candidate_update"
# PostgREST caps rows per response; full scans page through it
POSTGREST_PAGE_SIZE: int = 1000
