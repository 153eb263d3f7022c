"""Main questionnaire flow endpoints.

Each session is addressed by its id; handlers stay thin and delegate to
`QuestionnaireSession`. Domain exceptions propagate to the problem+json
handlers registered in `onboarding.main`.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, Response

from onboarding.logic.session import QuestionnaireSession
from onboarding.logic.session_registry import SessionRegistry
from onboarding.models.response_types import (
    AnswerUpsert,
    NavigationResult,
    SessionCreate,
    SessionView,
)
from onboarding.models.snapshot import SubmissionPayload

router = APIRouter(prefix="/questionnaire-sessions", tags=["questionnaire"])
logger = logging.getLogger(__name__)


def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.registry


def get_session(session_id: str, registry: SessionRegistry = Depends(get_registry)) -> QuestionnaireSession:
    return registry.get(session_id)


@router.post("", summary="Start or resume a questionnaire session", status_code=201, response_model=SessionView)
def create_session(payload: SessionCreate, request: Request, registry: SessionRegistry = Depends(get_registry)):
    state = request.app.state
    session = QuestionnaireSession.start(
        payload.applicant_id,
        state.catalog,
        state.repository,
        debounce_seconds=state.config.autosave.debounce_seconds,
        autosave_enabled=state.config.autosave.enabled,
        timer_factory=getattr(state, "timer_factory", None),
    )
    registry.add(session)
    return session.view()


@router.get("/{session_id}", summary="Current session state", response_model=SessionView)
def read_session(session: QuestionnaireSession = Depends(get_session)):
    return session.view()


@router.delete("/{session_id}", summary="Close a session", status_code=204)
def close_session(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    registry.close(session_id)
    return Response(status_code=204)


@router.put("/{session_id}/answer", summary="Record the answer to the current question", response_model=SessionView)
def put_answer(payload: AnswerUpsert, session: QuestionnaireSession = Depends(get_session)):
    session.set_answer(payload.value)
    return session.view()


@router.post("/{session_id}/next", summary="Advance to the next question", response_model=NavigationResult)
def post_next(session: QuestionnaireSession = Depends(get_session)):
    moved = session.next()
    return {"moved": moved, "session": session.view()}


@router.post("/{session_id}/back", summary="Return to the previous question", response_model=NavigationResult)
def post_back(session: QuestionnaireSession = Depends(get_session)):
    moved = session.back()
    return {"moved": moved, "session": session.view()}


@router.post(
    "/{session_id}/auto-navigate",
    summary="Record a single-tap answer and advance",
    response_model=NavigationResult,
)
def post_auto_navigate(payload: AnswerUpsert, session: QuestionnaireSession = Depends(get_session)):
    moved = session.auto_navigate(payload.value)
    return {"moved": moved, "session": session.view()}


@router.get("/{session_id}/payload", summary="Submission payload for the current answers", response_model=SubmissionPayload)
def read_payload(session: QuestionnaireSession = Depends(get_session)):
    return SubmissionPayload.model_validate(session.build_payload())


@router.post("/{session_id}/reset", summary="Start the questionnaire over", response_model=SessionView)
def post_reset(session: QuestionnaireSession = Depends(get_session)):
    session.reset()
    return session.view()


@router.post("/{session_id}/submit", summary="Submit the completed questionnaire", response_model=SessionView)
def post_submit(session: QuestionnaireSession = Depends(get_session)):
    session.submit()
    logger.info("questionnaire_submitted applicant_id=%s", session.applicant_id)
    return session.view()


__all__ = ["router", "get_registry", "get_session"]
