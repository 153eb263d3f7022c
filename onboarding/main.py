"""FastAPI application factory for the onboarding questionnaire service."""

from __future__ import annotations

import logging
import os
from typing import Callable, Optional

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from sqlalchemy import text as sql_text
from sqlalchemy.exc import SQLAlchemyError

from onboarding.config import AppConfig, load_config
from onboarding.db.base import get_engine
from onboarding.db.migrations_runner import apply_migrations
from onboarding.http.problem import (
    handle_editor_state_error,
    handle_http_exception,
    handle_persistence_error,
    handle_questionnaire_validation_error,
    handle_request_validation_error,
    handle_session_not_found,
    handle_unexpected_error,
)
from onboarding.http.request_id import RequestIdMiddleware
from onboarding.logging_setup import configure_logging
from onboarding.logic.autosave import TimerFactory
from onboarding.logic.catalog import QuestionCatalog, load_catalog
from onboarding.logic.category_editor import EditorStateError
from onboarding.logic.repository_snapshots import PersistenceError, SnapshotRepository
from onboarding.logic.session_registry import SessionNotFoundError, SessionRegistry
from onboarding.logic.validation import QuestionnaireValidationError
from onboarding.routes import api_router

logger = logging.getLogger(__name__)


def _health_check(repository: SnapshotRepository) -> Callable[[], dict]:
    def check() -> dict:
        try:
            with repository.engine.connect() as conn:
                conn.execute(sql_text("SELECT 1"))
            return {"status": "ok", "db": True}
        except SQLAlchemyError as e:
            logger.error("Health DB check failed", exc_info=True)
            return {"status": "degraded", "db": False, "reason": str(e)}

    return check


def create_app(
    config: Optional[AppConfig] = None,
    catalog: Optional[QuestionCatalog] = None,
    timer_factory: Optional[TimerFactory] = None,
) -> FastAPI:
    try:
        configure_logging()
    except Exception:
        logging.getLogger(__name__).error("global_logging_configuration_failed", exc_info=True)

    cfg = config or load_config()
    # Fails fast on an invalid catalog: no app without a valid question graph
    cat = catalog or load_catalog(cfg.catalog.path)
    repository = SnapshotRepository(get_engine(cfg.database.dsn))
    registry = SessionRegistry()

    app = FastAPI(title="Onboarding Questionnaire")
    app.state.config = cfg
    app.state.catalog = cat
    app.state.repository = repository
    app.state.registry = registry
    app.state.timer_factory = timer_factory

    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(SessionNotFoundError, handle_session_not_found)
    app.add_exception_handler(EditorStateError, handle_editor_state_error)
    app.add_exception_handler(QuestionnaireValidationError, handle_questionnaire_validation_error)
    app.add_exception_handler(PersistenceError, handle_persistence_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
    app.add_middleware(RequestIdMiddleware)

    @app.on_event("startup")
    def _apply_migrations() -> None:
        enable_flag = os.getenv("AUTO_APPLY_MIGRATIONS", "1").strip().lower() in {"1", "true", "yes", "on"}
        if not enable_flag:
            logger.info("AUTO_APPLY_MIGRATIONS disabled; skipping migrations at startup")
            return
        try:
            in_memory = ":memory:" in cfg.database.dsn
            apply_migrations(repository.engine, use_journal=not in_memory)
        except Exception:
            logger.error("Failed to apply migrations at startup", exc_info=True)
            raise

    @app.on_event("shutdown")
    def _close_sessions() -> None:
        registry.close_all()

    app.include_router(api_router, prefix="/api/v1")

    health_check = _health_check(repository)

    @app.get("/health")
    def health():  # pragma: no cover - trivial
        return health_check()

    logger.info("app_created questions=%s autosave_debounce=%s", len(cat), cfg.autosave.debounce_seconds)
    return app


# Intentionally do not instantiate the app at import time to prevent side effects.
