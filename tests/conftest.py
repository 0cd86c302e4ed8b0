"""Shared test fixtures.

Forces the in-memory store and a known API key before the application is
imported, and provides sample candidates, a seeded store, a list cache with
a controllable clock, and an authenticated FastAPI ``TestClient``.
"""

import os
from collections.abc import Generator
from datetime import datetime, timezone
from pathlib import Path

import pytest

os.environ["STORE_BACKEND"] = "memory"
os.environ["API_KEY"] = "test-api-key"
os.environ["SEED_DATA_PATH"] = str(
    Path(__file__).resolve().parents[1] / "data" / "candidates.json"
)

from fastapi.testclient import TestClient  # noqa: E402

from app.db.memory import InMemoryCandidateStore  # noqa: E402
from app.models.candidate import Candidate  # noqa: E402
from app.services.cache import ListCache  # noqa: E402

API_KEY = "test-api-key"
AUTH_HEADERS = {"x-api-key": API_KEY}


def make_candidate(candidate_id: str, **overrides: object) -> Candidate:
    """Build a candidate with sensible defaults."""
    base = datetime(2026, 1, 1, tzinfo=timezone.utc)
    data: dict[str, object] = {
        "id": candidate_id,
        "full_name": f"Candidate {candidate_id}",
        "headline": "Software Engineer",
        "location": "Remote",
        "years_of_experience": 5,
        "skills": ["Python"],
        "availability": "Immediate",
        "status": "new",
        "score": 50,
        "created_at": base,
        "updated_at": base,
    }
    data.update(overrides)
    return Candidate(**data)


class FakeClock:
    """Monotonic clock stand-in advanced manually by tests."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def sample_candidates() -> list[Candidate]:
    """Eight candidates covering every filterable field."""
    return [
        make_candidate(
            "c1", full_name="Ava Thompson", headline="Senior Frontend Engineer",
            location="San Francisco, CA", years_of_experience=8,
            skills=["JavaScript", "React", "Node.js"], availability="2 weeks",
            status="screening", score=87,
            updated_at=datetime(2026, 2, 1, tzinfo=timezone.utc),
        ),
        make_candidate(
            "c2", full_name="Liam Chen", headline="Full Stack Developer",
            location="San Francisco, CA", years_of_experience=7,
            skills=["JavaScript", "React", "TypeScript"], availability="Immediate",
            status="interviewing", score=82,
            updated_at=datetime(2026, 2, 2, tzinfo=timezone.utc),
        ),
        make_candidate(
            "c3", full_name="Sofia Martinez", headline="Backend Engineer",
            location="Austin, TX", years_of_experience=5,
            skills=["Python", "Django"], availability="1 month",
            status="new", score=74,
            updated_at=datetime(2026, 1, 28, tzinfo=timezone.utc),
        ),
        make_candidate(
            "c4", full_name="Noah Patel", headline="Data Engineer",
            location="New York, NY", years_of_experience=6,
            skills=["Python", "Spark", "SQL"], availability="2 weeks",
            status="screening", score=79,
            updated_at=datetime(2026, 2, 3, tzinfo=timezone.utc),
        ),
        make_candidate(
            "c5", full_name="Emma Johansson", headline="Mobile Engineer (React Native)",
            location="Seattle, WA", years_of_experience=4,
            skills=["React Native", "TypeScript"], availability="Immediate",
            status="offer", score=91,
            updated_at=datetime(2026, 2, 4, tzinfo=timezone.utc),
        ),
        make_candidate(
            "c6", full_name="Mateo Rossi", headline="DevOps Engineer",
            location="Remote", years_of_experience=9,
            skills=["Kubernetes", "Go"], availability="3 weeks",
            status="interviewing", score=85,
            updated_at=datetime(2026, 1, 30, tzinfo=timezone.utc),
        ),
        make_candidate(
            "c7", full_name="Olivia Brown", headline="Engineering Manager",
            location="Austin, TX", years_of_experience=12,
            skills=["Leadership", "Java"], availability="2 months",
            status="screening", score=88,
            updated_at=datetime(2026, 2, 5, tzinfo=timezone.utc),
        ),
        make_candidate(
            "c8", full_name="Ethan Kim", headline="Junior Frontend Developer",
            location="seattle, wa", years_of_experience=1,
            skills=["javascript", "Vue"], availability="Immediate",
            status="new", score=61,
            updated_at=datetime(2026, 1, 25, tzinfo=timezone.utc),
        ),
    ]


@pytest.fixture()
def store(sample_candidates: list[Candidate]) -> InMemoryCandidateStore:
    """In-memory store seeded with ``sample_candidates``."""
    return InMemoryCandidateStore(sample_candidates)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def list_cache(clock: FakeClock) -> ListCache:
    return ListCache(ttl_seconds=300, clock=clock)


@pytest.fixture()
def test_client(
    store: InMemoryCandidateStore, list_cache: ListCache
) -> Generator[TestClient, None, None]:
    """FastAPI TestClient wired to the fixture store and cache."""
    from app.main import app
    from app.routers.deps import get_list_cache, get_store

    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_list_cache] = lambda: list_cache
    try:
        with TestClient(app) as client:
            client.headers.update(AUTH_HEADERS)
            yield client
    finally:
        app.dependency_overrides.clear()
