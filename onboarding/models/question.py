"""Question catalog node models.

Questions are immutable once the catalog is loaded. Each node declares its
flow and category explicitly so that navigation, reset and progress never
infer membership from the numeric id.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, field_validator


class Flow(str, Enum):
    SHARED = "shared"
    SOLO = "solo"
    CO_PRIMARY = "co_primary"
    CO_APPLICANT = "co_applicant"


class QuestionType:
    MULTIPLE_CHOICE = "multiple_choice"
    NUMERIC_INPUT = "numeric_input"
    FORM = "form"
    COMPLEX_FORM = "complex_form"
    DROPDOWN = "dropdown"
    TEXT_AREA = "text_area"
    TOGGLE = "toggle"
    CONDITIONAL_FORM = "conditional_form"
    CONDITIONAL_MULTIPLE_ITEMS = "conditional_multiple_items"
    FINAL_STEP = "final_step"

    ALL = frozenset(
        {
            MULTIPLE_CHOICE,
            NUMERIC_INPUT,
            FORM,
            COMPLEX_FORM,
            DROPDOWN,
            TEXT_AREA,
            TOGGLE,
            CONDITIONAL_FORM,
            CONDITIONAL_MULTIPLE_ITEMS,
            FINAL_STEP,
        }
    )
    # Answered by a single tap; the renderer calls back for auto-navigation
    AUTO_NAVIGATING = frozenset({MULTIPLE_CHOICE, TOGGLE})
    SCALAR = frozenset({MULTIPLE_CHOICE, NUMERIC_INPUT, DROPDOWN, TEXT_AREA, TOGGLE})
    STRUCTURED = frozenset({FORM, COMPLEX_FORM, CONDITIONAL_FORM, CONDITIONAL_MULTIPLE_ITEMS})


class Option(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: str
    label: str


class ConditionClause(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str
    value: str


class FieldCondition(BaseModel):
    """Field applies when any clause matches a sibling value in the same record."""

    model_config = ConfigDict(frozen=True)

    any_of: List[ConditionClause]

    def holds(self, record: Dict[str, Any]) -> bool:
        return any(record.get(c.key) == c.value for c in self.any_of)


class QuestionField(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str
    label: str = ""
    placeholder: Optional[str] = None
    display_name: Optional[str] = None
    input_type: str = "text"
    keyboard: Optional[str] = None
    prefix: Optional[str] = None
    required: bool = False
    options: List[Option] = []
    validation: Optional[Literal["email", "phone", "sin"]] = None
    min_value: Optional[float] = None
    min_value_message: Optional[str] = None
    condition: Optional[FieldCondition] = None
    pre_approval_critical: bool = False

    @property
    def name(self) -> str:
        """Human-readable field name used in validation messages."""
        return self.display_name or self.label or self.placeholder or self.key

    def applies(self, record: Dict[str, Any]) -> bool:
        if self.condition is None:
            return True
        return self.condition.holds(record)


class FormSection(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: Optional[str] = None
    fields: List[QuestionField]


class Question(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    type: str
    category: str
    flow: Flow
    text: str = ""
    placeholder: Optional[str] = None
    prefix: Optional[str] = None
    options: List[Option] = []
    fields: List[QuestionField] = []
    sections: List[FormSection] = []
    initial_field: Optional[QuestionField] = None
    conditional_fields: Dict[str, List[QuestionField]] = {}
    item_fields: List[QuestionField] = []
    next_question: Optional[int] = None
    next_question_map: Optional[Dict[str, int]] = None
    name_fields: List[str] = []
    required: bool = False
    required_message: Optional[str] = None
    submit_button_text: Optional[str] = None

    @field_validator("type")
    @classmethod
    def type_must_be_known(cls, v: str) -> str:
        if v not in QuestionType.ALL:
            raise ValueError(f"question.type must be one of {sorted(QuestionType.ALL)}")
        return v

    @field_validator("category")
    @classmethod
    def category_must_be_non_empty(cls, v: str) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValueError("question.category must be a non-empty string")
        return v

    @property
    def key(self) -> str:
        return str(self.id)

    @property
    def is_terminal(self) -> bool:
        return self.type == QuestionType.FINAL_STEP

    @property
    def collects_name(self) -> bool:
        return bool(self.name_fields)

    @property
    def auto_navigates(self) -> bool:
        return self.type in QuestionType.AUTO_NAVIGATING and not self.collects_name

    def form_fields(self) -> List[QuestionField]:
        """Return top-level and sectioned fields in declaration order."""
        out = list(self.fields)
        for section in self.sections:
            out.extend(section.fields)
        return out

    def option_values(self) -> List[str]:
        return [o.value for o in self.options]


__all__ = [
    "Flow",
    "QuestionType",
    "Option",
    "ConditionClause",
    "FieldCondition",
    "QuestionField",
    "FormSection",
    "Question",
]
