"""Configuration utilities for the onboarding questionnaire service.

This module loads application configuration with the following rules:
- Primary source: `onboarding_config.json` at the project root.
- Overrides: environment variables, then optional text files under `config/`.
- Validation: Pydantic models enforce required fields and value constraints.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator


CONFIG_DIR = Path("config")
ROOT_ONBOARDING_CONFIG = Path("onboarding_config.json")
DEFAULT_CATALOG_PATH = Path(__file__).resolve().parent / "data" / "questions.yaml"
logger = logging.getLogger(__name__)


def _read_config_file(rel_path: str) -> Optional[str]:
    path = CONFIG_DIR / rel_path
    try:
        if path.exists():
            return path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Failed to read override %s: %s", path, e)
        return None
    return None


def _env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(key, default)


class DatabaseConfig(BaseModel):
    dsn: str

    @field_validator("dsn")
    @classmethod
    def dsn_must_be_non_empty(cls, v: str) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValueError("database.dsn must be a non-empty string")
        return v


class AutosaveConfig(BaseModel):
    debounce_seconds: float = Field(default=1.0, gt=0)
    enabled: bool = Field(default=True)


class CatalogConfig(BaseModel):
    path: str

    @field_validator("path")
    @classmethod
    def path_must_be_non_empty(cls, v: str) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValueError("catalog.path must be a non-empty string")
        return v


class AppConfig(BaseModel):
    database: DatabaseConfig
    autosave: AutosaveConfig
    catalog: CatalogConfig


def _read_json_file(path: Path) -> dict:
    try:
        if path.exists():
            return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:  # pragma: no cover
        logger.error("Failed to read JSON config %s: %s", path, e)
    return {}


def load_config() -> AppConfig:
    """Load configuration with validation.

    Precedence (highest first):
    1) Environment variables
    2) Text files in `config/` (optional)
    3) onboarding_config.json at project root (primary base)
    4) Safe defaults for development
    """

    base = _read_json_file(ROOT_ONBOARDING_CONFIG)

    def _base(path: str, default: Optional[str] = None) -> Optional[str]:
        cur: object = base
        for key in path.split("."):
            if not isinstance(cur, dict) or key not in cur:
                return default
            cur = cur[key]
        return str(cur) if cur is not None else default

    # Database
    dsn = (
        _env("TEST_DATABASE_URL")
        or _env("DATABASE_URL")
        or _read_config_file("database.url")
        or _base("database.dsn")
        or "sqlite+pysqlite:///:memory:"
    )

    # Autosave
    debounce_text = _env("AUTOSAVE_DEBOUNCE_SECONDS") or _read_config_file("autosave.debounce_seconds") or _base("autosave.debounce_seconds", "1.0")
    enabled_text = _env("AUTOSAVE_ENABLED") or _read_config_file("autosave.enabled") or _base("autosave.enabled", "true")

    # Catalog
    catalog_path = _env("QUESTION_CATALOG_PATH") or _read_config_file("catalog.path") or _base("catalog.path") or str(DEFAULT_CATALOG_PATH)

    try:
        cfg = AppConfig(
            database=DatabaseConfig(dsn=dsn),
            autosave=AutosaveConfig(
                debounce_seconds=float(str(debounce_text).strip()),
                enabled=str(enabled_text).strip().lower() in {"1", "true", "yes"},
            ),
            catalog=CatalogConfig(path=catalog_path),
        )
        return cfg
    except PydanticValidationError as e:
        logger.error("Invalid application configuration: %s", e)
        raise


__all__ = [
    "AppConfig",
    "DatabaseConfig",
    "AutosaveConfig",
    "CatalogConfig",
    "DEFAULT_CATALOG_PATH",
    "load_config",
]
