"""Navigation engine: successor resolution, history/visited bookkeeping.

Branch-map misses never raise; they fall back to the question's default
successor and log a warning so the user is never stranded mid-flow.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping, Optional, Set

from onboarding.logic.catalog import QuestionCatalog, QuestionId, canonical_id
from onboarding.models.question import Flow, Question

logger = logging.getLogger(__name__)


def _is_scalar(value: Any) -> bool:
    return isinstance(value, (str, int, float)) and not isinstance(value, bool)


def resolve_next(
    question: Question,
    answer: Any,
    require_answer: bool = False,
    *,
    quiet: bool = False,
) -> Optional[int]:
    """Return the successor id for `question` given its current answer.

    - scalar answer matching a branch key -> mapped id
    - scalar answer missing from the branch map -> default successor (warned)
    - structured answer on a branch question -> default successor (warned)
    - no answer: None when `require_answer`, else the default successor
    """
    if question.is_terminal:
        return None
    branch = question.next_question_map
    if branch:
        if _is_scalar(answer):
            key = str(answer)
            if key in branch:
                return branch[key]
            if not quiet:
                logger.warning(
                    "navigation_branch_miss question_id=%s answer=%s fallback=%s",
                    question.id,
                    key,
                    question.next_question,
                )
            return question.next_question
        if answer is None:
            if require_answer:
                return None
            return question.next_question
        if not quiet:
            logger.warning(
                "navigation_structured_branch_answer question_id=%s fallback=%s",
                question.id,
                question.next_question,
            )
        return question.next_question
    return question.next_question


def _as_int(qid: QuestionId) -> int:
    return int(canonical_id(qid))


class NavigationState:
    """Current question, LIFO history and visited set for one session."""

    def __init__(
        self,
        current_id: QuestionId = 1,
        history: Optional[Iterable[QuestionId]] = None,
        visited: Optional[Iterable[QuestionId]] = None,
    ) -> None:
        self.current_id: int = _as_int(current_id)
        self.history: List[int] = [_as_int(h) for h in history] if history is not None else [self.current_id]
        self.visited: Set[int] = {_as_int(v) for v in visited} if visited is not None else set(self.history)

    @classmethod
    def restored(
        cls,
        current_id: Optional[QuestionId],
        history: Optional[Iterable[QuestionId]],
        visited: Optional[Iterable[QuestionId]],
        first_id: int = 1,
    ) -> "NavigationState":
        """Rehydrate from a snapshot, synthesising `{first, current}` when absent."""
        current = _as_int(current_id) if current_id is not None else first_id
        hist = list(history) if history else []
        seen = list(visited) if visited else []
        if not hist:
            hist = [first_id] if current == first_id else [first_id, current]
        if not seen:
            seen = [first_id, current]
        return cls(current, hist, seen)

    def go_to_next(self, next_id: QuestionId) -> bool:
        """Advance to `next_id`; returns False for a self-loop no-op."""
        target = _as_int(next_id)
        if target == self.current_id:
            return False
        self.history.append(target)
        self.visited.add(target)
        self.current_id = target
        logger.info("navigation_forward to=%s depth=%s", target, len(self.history))
        return True

    def go_to_previous(self) -> bool:
        """Pop history and recompute visited from what remains."""
        if len(self.history) <= 1:
            return False
        self.history.pop()
        self.current_id = self.history[-1]
        self.visited = set(self.history)
        logger.info("navigation_back to=%s depth=%s", self.current_id, len(self.history))
        return True

    def jump_to(self, target_id: QuestionId) -> None:
        """Set the current id without touching history (editor jumps)."""
        self.current_id = _as_int(target_id)

    def reset(self, first_id: int = 1) -> None:
        self.current_id = first_id
        self.history = [first_id]
        self.visited = {first_id}

    @property
    def can_go_back(self) -> bool:
        return len(self.history) > 1

    def to_dict(self) -> dict:
        return {
            "current_question_id": self.current_id,
            "question_history": list(self.history),
            "visited_questions": sorted(self.visited),
        }


def active_flows(catalog: QuestionCatalog, responses: Mapping[str, Any]) -> frozenset:
    """Flows selected by the flow-selector answer; undetermined counts as the first choice."""
    selected = responses.get(canonical_id(catalog.flow_selector_id))
    flows = catalog.flows_for(selected)
    if flows:
        return flows
    values = catalog.selector_values
    return catalog.flows_for(values[0]) if values else frozenset()


def flow_is_determined(catalog: QuestionCatalog, responses: Mapping[str, Any]) -> bool:
    return bool(catalog.flows_for(responses.get(canonical_id(catalog.flow_selector_id))))


def projected_path(
    catalog: QuestionCatalog,
    responses: Mapping[str, Any],
    start_id: Optional[QuestionId] = None,
) -> List[int]:
    """Walk forward from `start_id` following current answers.

    Unanswered branch questions follow their default successor, or the first
    declared branch target when they have none. A revisited id ends the walk.
    """
    path: List[int] = []
    seen: Set[int] = set()
    cur: Optional[int] = _as_int(start_id) if start_id is not None else catalog.first_question_id
    while cur is not None and cur not in seen:
        q = catalog.get(cur)
        if q is None:
            break
        seen.add(cur)
        path.append(cur)
        if q.is_terminal:
            break
        nxt = resolve_next(q, responses.get(q.key), quiet=True)
        if nxt is None and q.next_question_map:
            nxt = next(iter(q.next_question_map.values()))
        cur = nxt
    return path


def reachable_category_questions(
    catalog: QuestionCatalog,
    responses: Mapping[str, Any],
    category_id: str,
    selector_value: Optional[str] = None,
) -> List[Question]:
    """Questions of `category_id` that lie on the projected path.

    `selector_value`, when given, stands in for the flow-selector answer.
    """
    walk = dict(responses)
    if selector_value is not None:
        walk[canonical_id(catalog.flow_selector_id)] = selector_value
    on_path = set(projected_path(catalog, walk))
    return [q for q in catalog if q.category == category_id and q.id in on_path]


def is_countable(question: Optional[Question], flows: Iterable[Flow]) -> bool:
    """True when a question counts toward progress for the given flows."""
    if question is None or question.is_terminal:
        return False
    return question.flow == Flow.SHARED or question.flow in set(flows)


__all__ = [
    "NavigationState",
    "active_flows",
    "flow_is_determined",
    "is_countable",
    "projected_path",
    "reachable_category_questions",
    "resolve_next",
]
