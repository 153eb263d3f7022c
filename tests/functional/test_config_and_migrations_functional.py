"""Functional tests for configuration precedence and the SQL migrations runner."""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError
from sqlalchemy import create_engine, inspect
from sqlalchemy.pool import StaticPool

from onboarding import config as config_module
from onboarding.config import DEFAULT_CATALOG_PATH, load_config
from onboarding.db.migrations_runner import DEFAULT_MIGRATIONS_DIR, apply_migrations


@pytest.fixture()
def isolated_config(tmp_path, monkeypatch):
    """Point the loader at an empty project root with no env overrides."""
    monkeypatch.chdir(tmp_path)
    for key in ("TEST_DATABASE_URL", "DATABASE_URL", "AUTOSAVE_DEBOUNCE_SECONDS", "AUTOSAVE_ENABLED", "QUESTION_CATALOG_PATH"):
        monkeypatch.delenv(key, raising=False)
    return tmp_path


def test_defaults_without_any_source(isolated_config):
    cfg = load_config()
    assert cfg.database.dsn == "sqlite+pysqlite:///:memory:"
    assert cfg.autosave.debounce_seconds == 1.0
    assert cfg.autosave.enabled is True
    assert cfg.catalog.path == str(DEFAULT_CATALOG_PATH)


def test_json_file_then_config_dir_then_env(isolated_config, monkeypatch):
    (isolated_config / config_module.ROOT_ONBOARDING_CONFIG).write_text(
        json.dumps({"database": {"dsn": "sqlite:///from-json.db"}, "autosave": {"debounce_seconds": 2.5}}),
        encoding="utf-8",
    )
    assert load_config().database.dsn == "sqlite:///from-json.db"
    assert load_config().autosave.debounce_seconds == 2.5

    (isolated_config / "config").mkdir()
    (isolated_config / "config" / "database.url").write_text("sqlite:///from-file.db\n", encoding="utf-8")
    assert load_config().database.dsn == "sqlite:///from-file.db"

    monkeypatch.setenv("DATABASE_URL", "sqlite:///from-env.db")
    monkeypatch.setenv("AUTOSAVE_ENABLED", "no")
    cfg = load_config()
    assert cfg.database.dsn == "sqlite:///from-env.db"
    assert cfg.autosave.enabled is False


def test_non_positive_debounce_is_rejected(isolated_config, monkeypatch):
    monkeypatch.setenv("AUTOSAVE_DEBOUNCE_SECONDS", "0")
    with pytest.raises(ValidationError):
        load_config()


def test_migrations_create_snapshot_table(tmp_path):
    engine = create_engine("sqlite://", poolclass=StaticPool, connect_args={"check_same_thread": False})
    migrations = tmp_path / "migrations"
    migrations.mkdir()
    for sql in DEFAULT_MIGRATIONS_DIR.glob("*.sql"):
        (migrations / sql.name).write_text(sql.read_text(encoding="utf-8"), encoding="utf-8")

    applied = apply_migrations(engine, migrations_dir=migrations)
    assert applied == ["001_questionnaire_snapshot.sql"]
    assert "questionnaire_snapshot" in inspect(engine).get_table_names()

    journal = json.loads((migrations / "_journal.json").read_text(encoding="utf-8"))
    assert [e["filename"] for e in journal] == ["migrations/001_questionnaire_snapshot.sql"]
    assert apply_migrations(engine, migrations_dir=migrations) == []


def test_migrations_without_journal_always_apply():
    engine = create_engine("sqlite://", poolclass=StaticPool, connect_args={"check_same_thread": False})
    applied = apply_migrations(engine, migrations_dir=DEFAULT_MIGRATIONS_DIR, use_journal=False)
    assert applied == ["001_questionnaire_snapshot.sql"]
