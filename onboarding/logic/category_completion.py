"""Per-category completion status for the category list.

Only the questions of a category that lie on the projected path are counted.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel

from onboarding.logic.catalog import QuestionCatalog
from onboarding.logic.navigation import reachable_category_questions
from onboarding.logic.validation import applicable_fields, is_blank
from onboarding.models.question import Question, QuestionType


class CategoryStatus(BaseModel):
    category_id: str
    is_complete: bool
    completed_questions: int
    total_questions: int
    completion_percentage: int
    answered_questions: List[int]
    unanswered_questions: List[int]


def is_question_answered(question: Question, value: Any) -> bool:
    if question.is_terminal:
        return True
    if question.type in QuestionType.SCALAR:
        return not is_blank(value)
    if not isinstance(value, dict) or not value:
        return False
    if question.initial_field is not None:
        choice = value.get(question.initial_field.key)
        if is_blank(choice):
            return False
        if choice != "yes":
            return True
        if question.type == QuestionType.CONDITIONAL_MULTIPLE_ITEMS:
            items = value.get("items")
            return isinstance(items, list) and len(items) > 0
    return all(not is_blank(value.get(f.key)) for f in applicable_fields(question, value))


def category_status(
    catalog: QuestionCatalog,
    responses: Mapping[str, Any],
    category_id: str,
    selector_value: Optional[str] = None,
) -> CategoryStatus:
    questions = reachable_category_questions(catalog, responses, category_id, selector_value)
    answered: List[int] = []
    unanswered: List[int] = []
    for q in questions:
        (answered if is_question_answered(q, responses.get(q.key)) else unanswered).append(q.id)
    total = len(questions)
    pct = int(len(answered) * 100 / total + 0.5) if total else 0
    return CategoryStatus(
        category_id=category_id,
        is_complete=total > 0 and not unanswered,
        completed_questions=len(answered),
        total_questions=total,
        completion_percentage=pct,
        answered_questions=answered,
        unanswered_questions=unanswered,
    )


def all_category_statuses(
    catalog: QuestionCatalog,
    responses: Mapping[str, Any],
    selector_value: Optional[str],
) -> Dict[str, CategoryStatus]:
    return {
        entry.id: category_status(catalog, responses, entry.id, selector_value)
        for entry in catalog.categories()
        if entry.start_for(selector_value) is not None
    }


__all__ = [
    "CategoryStatus",
    "all_category_statuses",
    "category_status",
    "is_question_answered",
]
