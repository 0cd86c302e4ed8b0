"""Related-candidates ranking.

Scores every other candidate against the target with a weighted sum of
skill overlap, location match and experience closeness:

* skills: shared skills / max(|skills(C)|, |skills(T)|, 1) x 50
* location: 30 when locations are equal ignoring case
* experience: max(0, 20 - 2 x |years(C) - years(T)|)

All candidates are loaded and scored in memory, so each call is O(N) in
the number of stored candidates.
"""

from __future__ import annotations

from dataclasses import dataclass

from app.core.constants import (
    DEFAULT_RELATED_LIMIT,
    EXPERIENCE_DECAY_PER_YEAR,
    EXPERIENCE_WEIGHT,
    LOCATION_WEIGHT,
    SKILL_WEIGHT,
)
from app.db.store import CandidateStore
from app.models.candidate import Candidate


@dataclass(frozen=True)
class SimilarityBreakdown:
    """Per-component similarity of one candidate to the target."""
    skill: float
    location: float
    experience: float

    @property
    def total(self) -> float:
        return self.skill + self.location + self.experience


def score_similarity(target: Candidate, other: Candidate) -> SimilarityBreakdown:
    target_skills = set(target.skills)
    other_skills = set(other.skills)
    shared = len(other_skills & target_skills)
    skill = shared / max(len(other_skills), len(target_skills), 1) * SKILL_WEIGHT

    location = (
        LOCATION_WEIGHT
        if other.location.lower() == target.location.lower()
        else 0.0
    )

    gap = abs(other.years_of_experience - target.years_of_experience)
    experience = max(0.0, EXPERIENCE_WEIGHT - EXPERIENCE_DECAY_PER_YEAR * gap)

    return SimilarityBreakdown(skill=skill, location=location, experience=experience)


def rank_related(
    target: Candidate,
    candidates: list[Candidate],
    limit: int = DEFAULT_RELATED_LIMIT,
) -> list[tuple[Candidate, float]]:
    """Return up to ``limit`` (candidate, score) pairs, best first.

    ``sorted`` is stable, so equal scores keep the order of ``candidates``.
    """
    scored = [
        (c, score_similarity(target, c).total)
        for c in candidates
        if c.id != target.id
    ]
    scored = sorted(scored, key=lambda pair: pair[1], reverse=True)
    return scored[:limit]


def related_candidates(
    store: CandidateStore,
    candidate_id: str,
    limit: int = DEFAULT_RELATED_LIMIT,
) -> list[Candidate]:
    """Most similar candidates to ``candidate_id``, excluding itself.

    Raises ``ServiceError(not_found)`` when the target does not exist.
    """
    target = store.get_by_id(candidate_id)
    return [c for c, _ in rank_related(target, store.list_all(), limit)]
