"""Pydantic models for questionnaire API request and response bodies."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, field_validator


class SessionCreate(BaseModel):
    applicant_id: str

    @field_validator("applicant_id")
    @classmethod
    def applicant_id_must_be_non_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("applicant_id must be a non-empty string")
        return v.strip()


class AnswerUpsert(BaseModel):
    value: Any = None


class RenderContext(BaseModel):
    question: Optional[Dict[str, Any]] = None
    current_value: Any = None
    text: str = ""
    initials: Dict[str, Any]
    progress: int
    can_go_back: bool
    is_completed: bool
    auto_navigate: bool


class EditorView(BaseModel):
    state: str
    category_id: Optional[str] = None
    current_question_id: Optional[int] = None
    bootstrapping: bool = False
    question: Optional[Dict[str, Any]] = None
    current_value: Any = None
    text: str = ""
    initials: Dict[str, Any]


class SessionView(BaseModel):
    session_id: str
    applicant_id: str
    current_question_id: int
    question_history: List[int]
    visited_questions: List[int]
    responses: Dict[str, Any]
    progress: int
    is_completed: bool
    render: RenderContext
    editor: EditorView


class NavigationResult(BaseModel):
    moved: bool
    session: SessionView


class EditorResult(BaseModel):
    outcome: Optional[str] = None
    editor: EditorView
    session: SessionView


class CategoryList(BaseModel):
    categories: List[Dict[str, Any]]


__all__ = [
    "AnswerUpsert",
    "CategoryList",
    "EditorResult",
    "EditorView",
    "NavigationResult",
    "RenderContext",
    "SessionCreate",
    "SessionView",
]
