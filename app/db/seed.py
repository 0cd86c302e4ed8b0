"""Seed data loading.

Reads a JSON array of candidate records and upserts them by id into the
configured store.  Run ``python -m app.db.seed [path]`` to seed Supabase.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from app.core.config import settings
from app.core.logging import setup_logging
from app.db.store import CandidateStore, build_store
from app.models.candidate import Candidate

logger = logging.getLogger(__name__)


def load_seed_candidates(path: str | Path) -> list[Candidate]:
    """Parse seed records (camelCase or snake_case keys).

    Records without timestamps get the load time for both ``createdAt`` and
    ``updatedAt``.
    """
    raw: Any = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(raw, list):
        raise ValueError(f"Seed file {path} must contain a JSON array")

    now = datetime.now(timezone.utc)
    candidates: list[Candidate] = []
    for record in raw:
        data = dict(record)
        for alias, name in (("createdAt", "created_at"), ("updatedAt", "updated_at")):
            if alias not in data and name not in data:
                data[alias] = now
        candidates.append(Candidate.model_validate(data))
    return candidates


def seed_store(store: CandidateStore, path: str | Path) -> int:
    """Upsert every record from ``path``; returns the number written."""
    written = store.upsert_many(load_seed_candidates(path))
    logger.info("seed_completed", extra={"path": str(path), "candidates": written})
    return written


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    path = args[0] if args else settings.SEED_DATA_PATH
    setup_logging()
    seed_store(build_store(settings), path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
