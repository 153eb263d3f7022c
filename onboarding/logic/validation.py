"""Advance gates for questionnaire questions.

Each gate inspects the current question and its answer and returns a map of
field key -> message. `validate_advance` runs the gates in order and raises
`QuestionnaireValidationError` on the first gate that reports problems, so
the caller sees one class of issue at a time.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Mapping, Optional

from onboarding.logic.catalog import QuestionCatalog
from onboarding.logic.navigation import reachable_category_questions
from onboarding.models.question import Question, QuestionField


class QuestionnaireValidationError(ValueError):
    def __init__(self, title: str, field_errors: Optional[Dict[str, str]] = None) -> None:
        super().__init__(title)
        self.title = title
        self.field_errors: Dict[str, str] = dict(field_errors or {})


EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
NON_DIGIT_RE = re.compile(r"\D")

EMAIL_MESSAGE = "Please enter a valid email address."
PHONE_MESSAGE = "Please enter a valid phone number (10-11 digits)."
SIN_MESSAGE = "SIN number must be exactly 9 digits."
REQUIRED_CHOICE_MESSAGE = "Your selection is missing, this field is mandatory for your application"
PRE_APPROVAL_MESSAGE = "This field is crucial for pre-approval calculation"
NAME_FIELDS_TITLE = "Please enter both first name and last name to continue."
CO_NAME_FIELDS_TITLE = "Please enter both first name and last name for your co-signer to continue."


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, dict)):
        return not value
    return False


def _record(answer: Any) -> Dict[str, Any]:
    return answer if isinstance(answer, dict) else {}


def _parse_amount(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).replace("$", "").replace(",", "").strip()
    try:
        return float(text)
    except ValueError:
        return None


def applicable_fields(question: Question, answer: Any) -> List[QuestionField]:
    """Fields of `question` that apply to the given answer record."""
    record = _record(answer)
    fields: List[QuestionField] = []
    if question.initial_field is not None:
        fields.append(question.initial_field)
    fields.extend(question.form_fields())
    if question.initial_field is not None:
        chosen = record.get(question.initial_field.key)
        fields.extend(question.conditional_fields.get(str(chosen), []))
    return [f for f in fields if f.applies(record)]


def check_name_fields(question: Question, answer: Any) -> Dict[str, str]:
    if not question.collects_name:
        return {}
    record = _record(answer)
    by_key = {f.key: f for f in question.form_fields()}
    errors: Dict[str, str] = {}
    for key in question.name_fields:
        if is_blank(record.get(key)):
            field = by_key.get(key)
            errors[key] = f"{field.name if field else key} is required"
    return errors


def check_contact_format(question: Question, answer: Any) -> Dict[str, str]:
    record = _record(answer)
    if not record:
        return {}
    errors: Dict[str, str] = {}
    for field in applicable_fields(question, record):
        value = record.get(field.key)
        if is_blank(value):
            continue
        if field.validation == "email" and not EMAIL_RE.match(str(value).strip()):
            errors[field.key] = EMAIL_MESSAGE
        elif field.validation == "phone":
            digits = NON_DIGIT_RE.sub("", str(value))
            if not 10 <= len(digits) <= 11:
                errors[field.key] = PHONE_MESSAGE
        elif field.validation == "sin":
            if len(NON_DIGIT_RE.sub("", str(value))) != 9:
                errors[field.key] = SIN_MESSAGE
        if field.min_value is not None and field.key not in errors:
            amount = _parse_amount(value)
            if amount is None or amount < field.min_value:
                errors[field.key] = field.min_value_message or f"{field.name} must be at least {field.min_value:g}"
    return errors


def check_required_choice(question: Question, answer: Any) -> Dict[str, str]:
    if not question.required:
        return {}
    if is_blank(answer):
        return {question.key: question.required_message or REQUIRED_CHOICE_MESSAGE}
    return {}


def missing_pre_approval_fields(question: Question, answer: Any) -> List[QuestionField]:
    """Pre-approval critical fields that apply to `answer` and are blank."""
    record = _record(answer)
    return [
        f
        for f in applicable_fields(question, record)
        if f.pre_approval_critical and is_blank(record.get(f.key))
    ]


def check_pre_approval(question: Question, answer: Any) -> Dict[str, str]:
    return {f.key: PRE_APPROVAL_MESSAGE for f in missing_pre_approval_fields(question, answer)}


def category_missing_pre_approval(
    catalog: QuestionCatalog,
    responses: Mapping[str, Any],
    category_id: str,
    selector_value: Optional[str] = None,
) -> List[str]:
    """Names of pre-approval critical fields still missing on the category's reachable questions."""
    names: List[str] = []
    for question in reachable_category_questions(catalog, responses, category_id, selector_value):
        names.extend(f.name for f in missing_pre_approval_fields(question, responses.get(question.key)))
    return names


def validate_advance(question: Question, answer: Any, *, pre_approval: bool = False) -> None:
    """Run the advance gates for `question`; raise on the first failing gate."""
    errors = check_name_fields(question, answer)
    if errors:
        title = CO_NAME_FIELDS_TITLE if any(k.startswith("co") for k in question.name_fields) else NAME_FIELDS_TITLE
        raise QuestionnaireValidationError(title, errors)

    errors = check_contact_format(question, answer)
    if errors:
        raise QuestionnaireValidationError("Please correct the highlighted fields.", errors)

    errors = check_required_choice(question, answer)
    if errors:
        raise QuestionnaireValidationError(errors[question.key], errors)

    if pre_approval:
        missing = missing_pre_approval_fields(question, answer)
        if missing:
            names = ", ".join(f.name for f in missing)
            raise QuestionnaireValidationError(
                f"The following fields are crucial for calculating your pre-approval: {names}",
                {f.key: PRE_APPROVAL_MESSAGE for f in missing},
            )


__all__ = [
    "QuestionnaireValidationError",
    "applicable_fields",
    "category_missing_pre_approval",
    "check_contact_format",
    "check_name_fields",
    "check_pre_approval",
    "check_required_choice",
    "is_blank",
    "missing_pre_approval_fields",
    "validate_advance",
]
