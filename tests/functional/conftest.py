"""Functional test bootstrap for the onboarding questionnaire.

Points the service at a file-backed SQLite database under `tmp/` and applies
the SQL migrations once per test session, before any test builds the
FastAPI app through TestClient. Startup auto-migration is disabled so the
app never races the bootstrap.
"""

from __future__ import annotations

import os
import pathlib
from typing import Any, Callable, List

import pytest

_ROOT = pathlib.Path(__file__).resolve().parents[2]
_DB_FILE = _ROOT / "tmp" / "functional_tests.db"
_DB_FILE.parent.mkdir(parents=True, exist_ok=True)
if _DB_FILE.exists():
    _DB_FILE.unlink()

# Must be set before onboarding.config is imported anywhere
os.environ["TEST_DATABASE_URL"] = f"sqlite:///{_DB_FILE}"
os.environ["DATABASE_URL"] = os.environ["TEST_DATABASE_URL"]
os.environ["AUTO_APPLY_MIGRATIONS"] = "0"
os.environ["AUTOSAVE_ENABLED"] = "false"


def _apply_sqlite_migrations() -> None:
    from onboarding.db.base import get_engine
    from onboarding.db.migrations_runner import apply_migrations

    engine = get_engine(os.environ["TEST_DATABASE_URL"])
    # Fresh database file each run: skip the journal so every migration applies
    apply_migrations(engine, migrations_dir=str(_ROOT / "migrations"), use_journal=False)


@pytest.fixture(scope="session", autouse=True)
def functional_sqlite_bootstrap() -> None:
    """Session-level bootstrap: apply migrations once for the shared DB."""
    _apply_sqlite_migrations()
    yield


class FakeTimer:
    """Stand-in for threading.Timer that only fires when told to."""

    def __init__(self, interval: float, fn: Callable[[], None]) -> None:
        self.interval = interval
        self.fn = fn
        self.started = False
        self.cancelled = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        if not self.cancelled:
            self.fn()


class FakeTimerFactory:
    def __init__(self) -> None:
        self.timers: List[FakeTimer] = []

    def __call__(self, interval: float, fn: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(interval, fn)
        self.timers.append(timer)
        return timer

    @property
    def last(self) -> FakeTimer:
        return self.timers[-1]


@pytest.fixture(scope="session")
def catalog():
    from onboarding.config import DEFAULT_CATALOG_PATH
    from onboarding.logic.catalog import load_catalog

    return load_catalog(DEFAULT_CATALOG_PATH)


@pytest.fixture()
def timer_factory() -> FakeTimerFactory:
    return FakeTimerFactory()


@pytest.fixture()
def repository():
    from onboarding.db.base import get_engine
    from onboarding.logic.repository_snapshots import SnapshotRepository

    return SnapshotRepository(get_engine(os.environ["TEST_DATABASE_URL"]))


@pytest.fixture()
def make_session(catalog, repository, timer_factory) -> Callable[..., Any]:
    """Factory for sessions bound to a unique applicant id."""
    from uuid import uuid4

    from onboarding.logic.session import QuestionnaireSession

    created: List[Any] = []

    def _make(applicant_id: str = "", **kwargs: Any):
        kwargs.setdefault("timer_factory", timer_factory)
        session = QuestionnaireSession.start(
            applicant_id or f"applicant-{uuid4().hex[:8]}", catalog, repository, **kwargs
        )
        created.append(session)
        return session

    yield _make
    for session in created:
        session.close()


@pytest.fixture()
def client(timer_factory):
    from fastapi.testclient import TestClient

    from onboarding.main import create_app

    with TestClient(create_app(timer_factory=timer_factory)) as c:
        yield c
