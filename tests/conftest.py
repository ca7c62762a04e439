"""Shared fixtures: a fresh migrated SQLite store per test and a fixed clock."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from linkdump.config.settings import Settings
from linkdump.db.session import open_store


class FakeClock:
    """Clock that only moves when a test advances it."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite:///{tmp_path / 'store' / 'linkdump.sqlite3'}"


@pytest.fixture
def session(database_url):
    with open_store(database_url) as session:
        yield session


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def settings(tmp_path):
    return Settings(
        DATABASE_URL=None,
        LINKDUMP_DATA_DIR=tmp_path,
        LINKDUMP_TITLE_PREFIX="Reading: ",
        LINKDUMP_DATE_SOURCE="published_at",
    )
