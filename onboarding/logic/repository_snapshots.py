"""Questionnaire snapshot data access helpers.

Keeps SQL out of the session and route layers. Every save is a full-snapshot
upsert, so out-of-order completion of concurrent saves is harmless: the last
write wins.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from onboarding.db.base import get_engine
from onboarding.logic.summary import serialize_payload
from onboarding.models.snapshot import QuestionnaireSnapshot

logger = logging.getLogger(__name__)


class PersistenceError(RuntimeError):
    pass


_UPSERT_SQL = """
INSERT INTO questionnaire_snapshot (
    applicant_id, payload, current_question_id, visited_questions,
    question_history, is_completed, updated_at
) VALUES (
    :aid, :payload, :current, :visited, :history, :completed, :updated_at
)
ON CONFLICT (applicant_id) DO UPDATE SET
    payload = excluded.payload,
    current_question_id = excluded.current_question_id,
    visited_questions = excluded.visited_questions,
    question_history = excluded.question_history,
    is_completed = excluded.is_completed,
    updated_at = excluded.updated_at
"""


def _decode_list(raw: Any) -> Optional[list]:
    if raw is None or raw == "":
        return None
    try:
        value = json.loads(raw)
    except (TypeError, ValueError):
        logger.warning("snapshot_list_decode_failed raw=%r", raw)
        return None
    return value if isinstance(value, list) else None


class SnapshotRepository:
    """SQLAlchemy Core persistence for questionnaire snapshots."""

    def __init__(self, engine: Optional[Engine] = None) -> None:
        self._engine = engine

    @property
    def engine(self) -> Engine:
        return self._engine or get_engine()

    def save_snapshot(
        self,
        applicant_id: str,
        payload: Mapping[str, Any],
        navigation: Optional[Mapping[str, Any]] = None,
        is_completed: bool = False,
    ) -> bool:
        """Upsert the full snapshot; returns False on database failure."""
        nav = dict(navigation or {})
        params = {
            "aid": str(applicant_id),
            "payload": serialize_payload(payload),
            "current": nav.get("current_question_id"),
            "visited": json.dumps(nav["visited_questions"]) if nav.get("visited_questions") is not None else None,
            "history": json.dumps(nav["question_history"]) if nav.get("question_history") is not None else None,
            "completed": 1 if is_completed else 0,
            "updated_at": datetime.now(timezone.utc).replace(microsecond=0).isoformat(),
        }
        try:
            with self.engine.begin() as conn:
                conn.execute(sql_text(_UPSERT_SQL), params)
        except SQLAlchemyError:
            logger.error("snapshot_save_failed applicant_id=%s", applicant_id, exc_info=True)
            return False
        logger.info("snapshot_saved applicant_id=%s completed=%s", applicant_id, is_completed)
        return True

    def load_snapshot(self, applicant_id: str) -> Optional[QuestionnaireSnapshot]:
        try:
            with self.engine.connect() as conn:
                row = conn.execute(
                    sql_text(
                        "SELECT payload, current_question_id, visited_questions, question_history, is_completed "
                        "FROM questionnaire_snapshot WHERE applicant_id = :aid"
                    ),
                    {"aid": str(applicant_id)},
                ).fetchone()
        except SQLAlchemyError:
            logger.error("snapshot_load_failed applicant_id=%s", applicant_id, exc_info=True)
            raise PersistenceError(f"unable to load snapshot for {applicant_id}")
        if row is None:
            return None
        try:
            payload: Dict[str, Any] = json.loads(row[0])
        except (TypeError, ValueError):
            logger.error("snapshot_payload_corrupt applicant_id=%s", applicant_id)
            return None
        responses = payload.get("responses") if isinstance(payload, dict) else None
        return QuestionnaireSnapshot(
            applicant_id=str(applicant_id),
            responses=responses if isinstance(responses, dict) else {},
            current_question_id=row[1],
            visited_questions=_decode_list(row[2]),
            question_history=_decode_list(row[3]),
            is_completed=bool(row[4]),
        )

    def load_payload_text(self, applicant_id: str) -> Optional[str]:
        """Return the stored serialised payload verbatim."""
        with self.engine.connect() as conn:
            row = conn.execute(
                sql_text("SELECT payload FROM questionnaire_snapshot WHERE applicant_id = :aid"),
                {"aid": str(applicant_id)},
            ).fetchone()
        return row[0] if row else None

    def delete_snapshot(self, applicant_id: str) -> None:
        with self.engine.begin() as conn:
            conn.execute(
                sql_text("DELETE FROM questionnaire_snapshot WHERE applicant_id = :aid"),
                {"aid": str(applicant_id)},
            )


__all__ = ["PersistenceError", "SnapshotRepository"]
