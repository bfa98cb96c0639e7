"""Shared fixtures: in-memory share store and sample snapshots."""

from __future__ import annotations

import itertools
from datetime import datetime, timedelta, timezone

import pytest

from gradeshare.errors import ShareNotFound
from gradeshare.models import GradeRecord, ShareOptions, ShareSnapshot, StoredShare


FIXED_NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


class FakeShareStore:
    """ShareStore without network: keeps rows in a dict, never deletes expired ones."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now
        self.rows: dict[str, StoredShare] = {}
        self.create_calls: list[tuple[str, int | None]] = []
        self._ids = (f"share{i}" for i in itertools.count(1))

    def create(self, payload: str, ttl_seconds: int | None = None) -> str:
        self.create_calls.append((payload, ttl_seconds))
        share_id = next(self._ids)
        ttl = ttl_seconds or 60 * 60 * 24 * 7
        self.rows[share_id] = StoredShare(
            id=share_id, payload=payload, expires_at=self.now + timedelta(seconds=ttl)
        )
        return share_id

    def fetch(self, share_id: str) -> StoredShare:
        try:
            return self.rows[share_id]
        except KeyError:
            raise ShareNotFound(share_id) from None


@pytest.fixture
def fake_store() -> FakeShareStore:
    return FakeShareStore()


@pytest.fixture
def sample_snapshot() -> ShareSnapshot:
    return ShareSnapshot(
        grades=(
            GradeRecord("John Smith", 7.5),
            GradeRecord("Maria Garcia", 9.0),
            GradeRecord("John Smith", 4.0),
        ),
        options=ShareOptions(max_possible_grade=20.0, pass_threshold=10.0, normalize_grades=True),
    )
