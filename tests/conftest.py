"""Shared test fixtures and configuration.

Sets up fake environment variables before any hearth imports and provides
a temp-file-backed document store plus the services wired on top of it.
"""

import os

# Patch env vars BEFORE any hearth imports
os.environ.setdefault("TELEGRAM_BOT_TOKEN", "fake-token-for-tests")
os.environ.setdefault("ALLOWED_USER_IDS", "")
os.environ.setdefault("DATABASE_PATH", ":memory:")
os.environ.setdefault("TIMEZONE", "UTC")

from datetime import datetime, timedelta, timezone

import pytest

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
PAST = NOW - timedelta(hours=2)
FUTURE = NOW + timedelta(hours=2)


@pytest.fixture
def tmp_db_path(tmp_path):
    """Return a temporary SQLite DB path."""
    return str(tmp_path / "test_hearth.db")


@pytest.fixture
def store(tmp_db_path):
    """Return a SQLiteDocumentStore backed by a temp file."""
    from hearth.adapters.sqlite_store import SQLiteDocumentStore
    return SQLiteDocumentStore(db_path=tmp_db_path, timeout=1.0)


@pytest.fixture
def service(store):
    """Return a HouseholdService over the temp store."""
    from hearth.core.household_service import HouseholdService
    return HouseholdService(store, code_length=6, max_code_attempts=5)


@pytest.fixture
def members(service):
    return service.members


@pytest.fixture
def registry(service):
    return service.households


@pytest.fixture
def chores(service):
    return service.chores


@pytest.fixture
def shopping(service):
    return service.shopping


@pytest.fixture
def household(registry):
    """A household owned by u1 with u2 and u3 joined, in that order."""
    h = registry.create("u1")
    registry.join(h.code, "u2")
    return registry.join(h.code, "u3")
