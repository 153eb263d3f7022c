"""Database bootstrap utilities for the onboarding questionnaire service.

Exposes engine/session construction and the SQL-file migrations runner. The
DB layer does not leak ORM models into route handlers.
"""

from onboarding.db.base import get_engine, get_sessionmaker, session_dependency
from onboarding.db.migrations_runner import apply_migrations

__all__ = [
    "get_engine",
    "get_sessionmaker",
    "session_dependency",
    "apply_migrations",
]
