"""Shared pytest fixtures for the Memo test suite."""

from datetime import datetime, timedelta, timezone

import pytest

from memo.config import Config
from memo.db.database import Database
from memo.review.service import ReviewService
from memo.srs.models import MemoryState, State
from memo.srs.parameters import SchedulerParameters
from memo.srs.scheduler import Scheduler


NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    """Fixed, timezone-aware review time."""
    return NOW


@pytest.fixture
def memory_db(tmp_path):
    """Create a temporary SQLite database for fast tests.

    Note: We use a temp file instead of :memory: because SQLite
    in-memory databases don't persist between connections, and
    our Database class keeps one connection per thread.
    """
    db_path = tmp_path / "memory_test.db"
    db = Database(str(db_path))
    db.init_schema()
    return db


@pytest.fixture
def scheduler():
    """Scheduler with default parameters."""
    return Scheduler()


@pytest.fixture
def unfuzzed_scheduler():
    """Scheduler without interval jitter, for exact interval checks."""
    return Scheduler(SchedulerParameters(enable_fuzz=False))


@pytest.fixture
def service(memory_db):
    """Review service on the temporary database."""
    return ReviewService(memory_db, Scheduler())


@pytest.fixture
def deck(service):
    """A deck with no cards."""
    return service.create_deck("Spanish", "Everyday nouns")


@pytest.fixture
def config():
    """Test configuration."""
    return Config(database_path=":memory:")


@pytest.fixture
def new_memory(now):
    return MemoryState.new(now)


@pytest.fixture
def learning_memory(now):
    """Learning card one step in, due now."""
    return MemoryState(
        state=State.LEARNING,
        stability=3.173,
        difficulty=5.28,
        elapsed_days=0.0,
        scheduled_days=10 / 1440,
        learning_steps=1,
        reps=1,
        lapses=0,
        due=now,
        last_review=now - timedelta(minutes=10),
    )


@pytest.fixture
def review_memory(now):
    """Review card last seen ten days ago, due now."""
    return MemoryState(
        state=State.REVIEW,
        stability=10.0,
        difficulty=5.0,
        elapsed_days=3.0,
        scheduled_days=10.0,
        learning_steps=0,
        reps=4,
        lapses=0,
        due=now,
        last_review=now - timedelta(days=10),
    )


@pytest.fixture
def relearning_memory(now):
    """Card that lapsed ten minutes ago."""
    return MemoryState(
        state=State.RELEARNING,
        stability=4.0,
        difficulty=6.5,
        elapsed_days=10.0,
        scheduled_days=10 / 1440,
        learning_steps=1,
        reps=5,
        lapses=1,
        due=now,
        last_review=now - timedelta(minutes=10),
    )
