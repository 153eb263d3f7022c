"""Category editor endpoints."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from onboarding.logic.session import QuestionnaireSession
from onboarding.models.response_types import AnswerUpsert, CategoryList, EditorResult
from onboarding.routes.sessions import get_session

router = APIRouter(prefix="/questionnaire-sessions", tags=["category-editor"])


def _result(session: QuestionnaireSession, outcome: Optional[str] = None) -> dict:
    view = session.view()
    return {"outcome": outcome, "editor": view["editor"], "session": view}


@router.get("/{session_id}/categories", summary="Categories for the active flow", response_model=CategoryList)
def list_categories(session: QuestionnaireSession = Depends(get_session)):
    return {"categories": session.editor.list_categories()}


@router.post(
    "/{session_id}/categories/{category_id}",
    summary="Enter a category at its starting question",
    response_model=EditorResult,
)
def select_category(
    category_id: str,
    applicant: Optional[str] = Query(default=None, pattern="^(primary|co_applicant)$"),
    session: QuestionnaireSession = Depends(get_session),
):
    session.editor_select(category_id, applicant)
    return _result(session)


@router.put("/{session_id}/editor/answer", summary="Edit the current editor question", response_model=EditorResult)
def put_editor_answer(payload: AnswerUpsert, session: QuestionnaireSession = Depends(get_session)):
    session.editor_set_answer(payload.value)
    return _result(session)


@router.post("/{session_id}/editor/next", summary="Advance within the category", response_model=EditorResult)
def post_editor_next(session: QuestionnaireSession = Depends(get_session)):
    outcome = session.editor_next()
    return _result(session, outcome)


@router.post("/{session_id}/editor/back", summary="Leave the category keeping edits", response_model=EditorResult)
def post_editor_back(session: QuestionnaireSession = Depends(get_session)):
    session.editor_back()
    return _result(session)


@router.post("/{session_id}/editor/save", summary="Save the category explicitly", response_model=EditorResult)
def post_editor_save(session: QuestionnaireSession = Depends(get_session)):
    session.editor_save()
    return _result(session, "saved")


@router.post(
    "/{session_id}/editor/add-co-signer",
    summary="Add a co-signer to a solo application",
    response_model=EditorResult,
)
def post_add_co_signer(session: QuestionnaireSession = Depends(get_session)):
    session.editor_add_co_signer()
    return _result(session)


__all__ = ["router"]
