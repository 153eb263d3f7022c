"""Category editor: jump into one section, edit it, return to the list.

Two states: CATEGORY_SELECT and IN_QUESTION. Selecting a category takes a
working copy of the response store; leaving the section (end of section or
back) merges the copy into the global store and fires a silent save. There
is no cancel: leaving always merges.

The add-co-signer action switches a solo applicant into the co-signer flow,
copies solo answers onto their co-primary counterparts and walks the
co-applicant questions in one pass, crossing category boundaries until the
next question is no longer a co-applicant question.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from onboarding.logic.catalog import QuestionCatalog
from onboarding.logic.category_completion import all_category_statuses
from onboarding.logic.navigation import active_flows, resolve_next
from onboarding.logic.repository_snapshots import PersistenceError
from onboarding.logic.response_store import ResponseStore
from onboarding.logic.validation import category_missing_pre_approval, validate_advance
from onboarding.models.question import Flow, Question

logger = logging.getLogger(__name__)

PersistFn = Callable[[Dict[str, Any]], bool]

ADD_CO_SIGNER_ID = "co_signer"


class EditorState:
    CATEGORY_SELECT = "category_select"
    IN_QUESTION = "in_question"


class EditorOutcome:
    ADVANCED = "advanced"
    SECTION_COMPLETE = "section_complete"


class EditorStateError(RuntimeError):
    pass


class CategoryEditor:
    def __init__(self, catalog: QuestionCatalog, store: ResponseStore, persist: PersistFn) -> None:
        self.catalog = catalog
        self.store = store
        self._persist = persist
        self.state = EditorState.CATEGORY_SELECT
        self.working: Optional[ResponseStore] = None
        self.current_id: Optional[int] = None
        self.category_id: Optional[str] = None
        self.bootstrapping = False
        self.co_signer_added = False

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------
    def responses_view(self) -> ResponseStore:
        return self.working if self.working is not None else self.store

    def selector_value(self) -> Any:
        return self.responses_view().get(self.catalog.flow_selector_id)

    def _effective_selector(self) -> Optional[str]:
        value = self.selector_value()
        if self.catalog.flows_for(value):
            return value
        values = self.catalog.selector_values
        return values[0] if values else None

    def _is_solo(self) -> bool:
        return Flow.SOLO in active_flows(self.catalog, self.responses_view())

    @property
    def current_question(self) -> Optional[Question]:
        return self.catalog.get(self.current_id) if self.current_id is not None else None

    @property
    def current_value(self) -> Any:
        if self.current_id is None or self.working is None:
            return None
        return self.working.get(self.current_id)

    def list_categories(self) -> List[Dict[str, Any]]:
        """Categories available in the current flow, with status and badges."""
        responses = self.store.snapshot()
        selector = self._effective_selector()
        flows = active_flows(self.catalog, responses)
        statuses = all_category_statuses(self.catalog, responses, selector)
        out: List[Dict[str, Any]] = []
        for entry in self.catalog.categories():
            start = entry.start_for(selector)
            if start is None:
                continue
            missing = category_missing_pre_approval(self.catalog, responses, entry.id, selector)
            out.append(
                {
                    "id": entry.id,
                    "label": entry.label,
                    "applicant": entry.applicant,
                    "start_question_id": start,
                    "status": statuses[entry.id].model_dump(),
                    "required_for_pre_approval": bool(missing),
                    "missing_pre_approval_fields": missing,
                }
            )
        if Flow.SOLO in flows:
            out.append(
                {
                    "id": ADD_CO_SIGNER_ID,
                    "label": "Add Co-Signer",
                    "applicant": "co_applicant",
                    "start_question_id": None,
                    "status": None,
                    "required_for_pre_approval": False,
                    "missing_pre_approval_fields": [],
                }
            )
        return out

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    def _require(self, state: str, action: str) -> None:
        if self.state != state:
            raise EditorStateError(f"{action} is not allowed in state {self.state}")

    def select(self, category_id: str, applicant: Optional[str] = None) -> int:
        """Enter a category at its flow-appropriate starting question."""
        self._require(EditorState.CATEGORY_SELECT, "select")
        entry = self.catalog.category(category_id)
        if entry is None:
            raise EditorStateError(f"unknown category {category_id}")
        if applicant is not None and applicant != entry.applicant:
            raise EditorStateError(f"category {category_id} belongs to applicant {entry.applicant}")
        start = entry.start_for(self._effective_selector())
        if start is None:
            raise EditorStateError(f"category {category_id} is not available in this flow")
        self.working = self.store.copy()
        self.current_id = start
        self.category_id = entry.id
        self.state = EditorState.IN_QUESTION
        logger.info("editor_category_selected category=%s start=%s", entry.id, start)
        return start

    def set_answer(self, value: Any) -> None:
        self._require(EditorState.IN_QUESTION, "set_answer")
        if self.working is None or self.current_id is None:
            raise EditorStateError("no question is open in the editor")
        self.working.set(self.current_id, value)

    def next(self) -> str:
        """Validate the current question and advance within the section."""
        self._require(EditorState.IN_QUESTION, "next")
        question = self.current_question
        if question is None:
            raise EditorStateError(f"question {self.current_id} is not in the catalog")
        answer = self.current_value
        validate_advance(question, answer, pre_approval=True)

        target = resolve_next(question, answer)
        following = self.catalog.get(target)
        if self.bootstrapping:
            if following is not None and following.flow == Flow.CO_APPLICANT:
                self._silent_save(self.working)
                self.current_id = following.id
                return EditorOutcome.ADVANCED
            self._leave("bootstrap_complete")
            return EditorOutcome.SECTION_COMPLETE

        if following is None or following.category != question.category:
            self._leave("end_of_section")
            return EditorOutcome.SECTION_COMPLETE
        self.current_id = following.id
        return EditorOutcome.ADVANCED

    def back(self) -> None:
        """Leave the section, keeping every edit made so far."""
        self._require(EditorState.IN_QUESTION, "back")
        self._leave("back")

    def save_section(self) -> None:
        """Explicit save: validate, merge, persist; a failed save raises."""
        self._require(EditorState.IN_QUESTION, "save_section")
        question = self.current_question
        if question is not None:
            validate_advance(question, self.current_value, pre_approval=True)
        self._merge()
        self._reset()
        ok = self._persist(self.store.snapshot())
        if not ok:
            logger.error("editor_section_save_failed")
            raise PersistenceError("section save failed")
        logger.info("editor_section_saved")

    def add_co_signer(self) -> int:
        """Switch a solo applicant to the co-signer flow and start the co-applicant walk."""
        self._require(EditorState.CATEGORY_SELECT, "add_co_signer")
        if not self._is_solo():
            raise EditorStateError("a co-signer can only be added from the solo flow")
        co_value = self.catalog.selector_value_for(Flow.CO_APPLICANT)
        if co_value is None:
            raise EditorStateError("catalog declares no co-signer flow")
        start_entry = next(
            (e for e in self.catalog.categories() if e.applicant == "co_applicant" and e.start_for(co_value)),
            None,
        )
        if start_entry is None:
            raise EditorStateError("catalog declares no co-applicant category")

        working = self.store.copy()
        working.set(self.catalog.flow_selector_id, co_value)
        copied = 0
        for src, dst in self.catalog.copy_map.items():
            if src in working:
                working.set(dst, working.get(src))
                copied += 1
        self.working = working
        self.current_id = start_entry.start_for(co_value)
        self.category_id = start_entry.id
        self.bootstrapping = True
        self.co_signer_added = True
        self.state = EditorState.IN_QUESTION
        logger.info("editor_co_signer_added copied=%s start=%s", copied, self.current_id)
        return self.current_id  # type: ignore[return-value]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _merge(self) -> None:
        if self.working is not None:
            self.store.merge(self.working)

    def _reset(self) -> None:
        self.working = None
        self.current_id = None
        self.category_id = None
        self.bootstrapping = False
        self.state = EditorState.CATEGORY_SELECT

    def _leave(self, reason: str) -> None:
        category = self.category_id
        self._merge()
        self._reset()
        self._silent_save(self.store)
        logger.info("editor_left_section category=%s reason=%s", category, reason)

    def _silent_save(self, responses: Optional[Mapping[str, Any]]) -> None:
        if responses is None:
            return
        snapshot = responses.snapshot() if isinstance(responses, ResponseStore) else dict(responses)
        try:
            ok = self._persist(snapshot)
        except Exception:
            logger.error("editor_silent_save_failed", exc_info=True)
            return
        if not ok:
            logger.warning("editor_silent_save_failed")


__all__ = [
    "ADD_CO_SIGNER_ID",
    "CategoryEditor",
    "EditorOutcome",
    "EditorState",
    "EditorStateError",
]
