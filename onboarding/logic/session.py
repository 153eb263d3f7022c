"""Questionnaire session: the explicit state object behind one applicant.

A session owns the response store, navigation state, category editor and
the debounced auto-save scheduler. Lifecycle: `start` (fresh or restored
from a snapshot) -> answer/navigate/edit -> `submit` or `close`. Every
public method takes the session lock, so an auto-save firing on the timer
thread always sees a consistent snapshot.
"""

from __future__ import annotations

import logging
import threading
import uuid
from typing import Any, Dict, Optional

from onboarding.logic.autosave import AutosaveScheduler, TimerFactory
from onboarding.logic.catalog import QuestionCatalog
from onboarding.logic.category_editor import CategoryEditor, EditorState, EditorStateError
from onboarding.logic.dynamic_text import process_dynamic_text, profile_initials
from onboarding.logic.flow_reset import apply_flow_switch, selector_changed
from onboarding.logic.navigation import NavigationState, resolve_next
from onboarding.logic.progress import calculate_progress
from onboarding.logic.repository_snapshots import PersistenceError, SnapshotRepository
from onboarding.logic.response_store import ResponseStore
from onboarding.logic.summary import build_submission_payload
from onboarding.logic.validation import (
    REQUIRED_CHOICE_MESSAGE,
    QuestionnaireValidationError,
    check_required_choice,
    validate_advance,
)
from onboarding.models.question import Question
from onboarding.models.snapshot import QuestionnaireSnapshot

logger = logging.getLogger(__name__)


class QuestionnaireSession:
    def __init__(
        self,
        applicant_id: str,
        catalog: QuestionCatalog,
        repository: SnapshotRepository,
        *,
        debounce_seconds: float = 1.0,
        autosave_enabled: bool = True,
        timer_factory: Optional[TimerFactory] = None,
        session_id: Optional[str] = None,
    ) -> None:
        self.session_id = session_id or uuid.uuid4().hex
        self.applicant_id = str(applicant_id)
        self.catalog = catalog
        self.repository = repository
        self.store = ResponseStore(defaults=catalog.default_responses())
        self.nav = NavigationState(catalog.first_question_id)
        self.is_completed = False
        self.autosave_enabled = autosave_enabled
        self.autosave = AutosaveScheduler(
            self._autosave, debounce_seconds, timer_factory, name=self.session_id
        )
        self.editor = CategoryEditor(catalog, self.store, self._persist_responses)
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    @classmethod
    def start(
        cls,
        applicant_id: str,
        catalog: QuestionCatalog,
        repository: SnapshotRepository,
        **kwargs: Any,
    ) -> "QuestionnaireSession":
        """Create a session, rehydrating it when a snapshot exists."""
        session = cls(applicant_id, catalog, repository, **kwargs)
        snapshot = repository.load_snapshot(session.applicant_id)
        if snapshot is not None:
            session.restore(snapshot)
        logger.info(
            "session_started session=%s applicant_id=%s restored=%s",
            session.session_id,
            session.applicant_id,
            snapshot is not None,
        )
        return session

    def restore(self, snapshot: QuestionnaireSnapshot) -> None:
        with self._lock:
            self.store.replace(snapshot.responses)
            self.nav = NavigationState.restored(
                snapshot.current_question_id,
                snapshot.question_history,
                snapshot.visited_questions,
                first_id=self.catalog.first_question_id,
            )
            self.is_completed = snapshot.is_completed

    def close(self) -> None:
        """Tear down: a pending auto-save must never fire after close."""
        self.autosave.close()
        logger.info("session_closed session=%s", self.session_id)

    # ------------------------------------------------------------------
    # Main questionnaire flow
    # ------------------------------------------------------------------
    @property
    def current_question(self) -> Optional[Question]:
        return self.catalog.get(self.nav.current_id)

    def _require_question(self) -> Question:
        question = self.current_question
        if question is None:
            raise EditorStateError(f"question {self.nav.current_id} is not in the catalog")
        return question

    def set_answer(self, value: Any) -> None:
        with self._lock:
            question = self._require_question()
            self._record(question, value)
            self._schedule_autosave()

    def _record(self, question: Question, value: Any) -> None:
        if question.id == self.catalog.flow_selector_id and selector_changed(self.catalog, self.store, value):
            apply_flow_switch(self.catalog, self.store, self.nav, value)
        else:
            self.store.set(question.id, value)

    def next(self) -> bool:
        """Validate the current answer and move to its successor."""
        with self._lock:
            question = self._require_question()
            answer = self.store.get(question.id)
            validate_advance(question, answer)
            target = resolve_next(question, answer, require_answer=True)
            if target is None:
                if question.is_terminal:
                    raise EditorStateError("the final question has no successor; submit instead")
                raise QuestionnaireValidationError(
                    REQUIRED_CHOICE_MESSAGE, {question.key: REQUIRED_CHOICE_MESSAGE}
                )
            moved = self.nav.go_to_next(target)
            self._schedule_autosave()
            return moved

    def auto_navigate(self, value: Any) -> bool:
        """Record a single-tap answer and advance using `value` directly."""
        with self._lock:
            question = self._require_question()
            self._record(question, value)
            self._schedule_autosave()
            if not question.auto_navigates:
                logger.info("auto_navigate_skipped question_id=%s", question.id)
                return False
            errors = check_required_choice(question, value)
            if errors:
                raise QuestionnaireValidationError(errors[question.key], errors)
            target = resolve_next(question, value, require_answer=True)
            if target is None:
                return False
            return self.nav.go_to_next(target)

    def back(self) -> bool:
        with self._lock:
            moved = self.nav.go_to_previous()
            if moved:
                self._schedule_autosave()
            return moved

    def reset(self) -> None:
        """Start over: seeded defaults, first question, empty history."""
        with self._lock:
            self.store.seed_defaults()
            self.nav.reset(self.catalog.first_question_id)
            self._schedule_autosave()
            logger.info("session_reset session=%s", self.session_id)

    def progress(self) -> int:
        with self._lock:
            return calculate_progress(self.catalog, self.store.snapshot(), self.nav.visited)

    def submit(self) -> None:
        """Ship the final payload; success flips `is_completed` permanently."""
        with self._lock:
            question = self._require_question()
            if not question.is_terminal:
                raise EditorStateError("submit is only allowed on the final question")
            self.autosave.cancel()
            ok = self.repository.save_snapshot(
                self.applicant_id,
                build_submission_payload(self.catalog, self.store.snapshot()),
                self.nav.to_dict(),
                is_completed=True,
            )
            if not ok:
                logger.error("submission_failed session=%s", self.session_id)
                raise PersistenceError("submission failed")
            self.is_completed = True
            logger.info("submission_completed session=%s", self.session_id)

    # ------------------------------------------------------------------
    # Category editor
    # ------------------------------------------------------------------
    def editor_select(self, category_id: str, applicant: Optional[str] = None) -> int:
        with self._lock:
            return self.editor.select(category_id, applicant)

    def editor_set_answer(self, value: Any) -> None:
        with self._lock:
            self.editor.set_answer(value)

    def editor_next(self) -> str:
        with self._lock:
            outcome = self.editor.next()
            self._reconcile_after_editor()
            return outcome

    def editor_back(self) -> None:
        with self._lock:
            self.editor.back()
            self._reconcile_after_editor()

    def editor_save(self) -> None:
        with self._lock:
            try:
                self.editor.save_section()
            finally:
                self._reconcile_after_editor()

    def editor_add_co_signer(self) -> int:
        with self._lock:
            return self.editor.add_co_signer()

    def _reconcile_after_editor(self) -> None:
        """Map solo navigation onto co-primary ids once a co-signer was added."""
        if not self.editor.co_signer_added or self.editor.state != EditorState.CATEGORY_SELECT:
            return
        mapping = self.catalog.copy_map
        history = [mapping.get(h, h) for h in self.nav.history]
        self.nav.history = list(dict.fromkeys(history))
        self.nav.visited = {mapping.get(v, v) for v in self.nav.visited}
        self.nav.current_id = mapping.get(self.nav.current_id, self.nav.current_id)
        self.editor.co_signer_added = False
        logger.info("session_co_signer_reconciled session=%s current=%s", self.session_id, self.nav.current_id)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def build_payload(self) -> Dict[str, Any]:
        with self._lock:
            return build_submission_payload(self.catalog, self.store.snapshot())

    def save(self) -> bool:
        with self._lock:
            return self._persist_responses(self.store.snapshot())

    def _persist_responses(self, responses: Dict[str, Any]) -> bool:
        return self.repository.save_snapshot(
            self.applicant_id,
            build_submission_payload(self.catalog, responses),
            self.nav.to_dict(),
            is_completed=self.is_completed,
        )

    def _schedule_autosave(self) -> None:
        if self.autosave_enabled:
            self.autosave.schedule()

    def _autosave(self) -> bool:
        with self._lock:
            return self._persist_responses(self.store.snapshot())

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------
    def render_context(self) -> Dict[str, Any]:
        """Everything an external renderer needs for the current question."""
        with self._lock:
            question = self.current_question
            responses = self.store.snapshot()
            text = question.text if question is not None else None
            return {
                "question": question.model_dump(mode="json") if question is not None else None,
                "current_value": self.store.get(self.nav.current_id),
                "text": process_dynamic_text(self.catalog, text, responses),
                "initials": profile_initials(self.catalog, responses, question),
                "progress": self.progress(),
                "can_go_back": self.nav.can_go_back,
                "is_completed": self.is_completed,
                "auto_navigate": bool(question is not None and question.auto_navigates),
            }

    def editor_view(self) -> Dict[str, Any]:
        with self._lock:
            question = self.editor.current_question
            responses = self.editor.responses_view().snapshot()
            text = question.text if question is not None else None
            return {
                "state": self.editor.state,
                "category_id": self.editor.category_id,
                "current_question_id": self.editor.current_id,
                "bootstrapping": self.editor.bootstrapping,
                "question": question.model_dump(mode="json") if question is not None else None,
                "current_value": self.editor.current_value,
                "text": process_dynamic_text(self.catalog, text, responses),
                "initials": profile_initials(self.catalog, responses, question),
            }

    def view(self) -> Dict[str, Any]:
        with self._lock:
            nav = self.nav.to_dict()
            return {
                "session_id": self.session_id,
                "applicant_id": self.applicant_id,
                "current_question_id": nav["current_question_id"],
                "question_history": nav["question_history"],
                "visited_questions": nav["visited_questions"],
                "responses": self.store.snapshot(),
                "progress": self.progress(),
                "is_completed": self.is_completed,
                "render": self.render_context(),
                "editor": self.editor_view(),
            }


__all__ = ["QuestionnaireSession"]
