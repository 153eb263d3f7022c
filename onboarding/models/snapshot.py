"""Persisted questionnaire snapshot and submission payload models."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


class SubmissionPayload(BaseModel):
    """Raw answers plus the three pre-reduced summary fields."""

    applyingbehalf: str
    employmentStatus: str
    ownAnotherProperty: str
    otherDetails: Dict[str, Any] = Field(default_factory=dict)
    responses: Dict[str, Any]

    @field_validator("applyingbehalf")
    @classmethod
    def applying_behalf_is_known(cls, v: str) -> str:
        if v not in {"Self", "other"}:
            raise ValueError("applyingbehalf must be 'Self' or 'other'")
        return v


class QuestionnaireSnapshot(BaseModel):
    applicant_id: str
    responses: Dict[str, Any]
    current_question_id: Optional[int] = None
    visited_questions: Optional[List[int]] = None
    question_history: Optional[List[int]] = None
    is_completed: bool = False


__all__ = ["QuestionnaireSnapshot", "SubmissionPayload"]
