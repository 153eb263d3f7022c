"""Problem+JSON utilities and global exception handlers.

Defines the RFC7807 media type and the handler callables that map domain
exceptions onto application/problem+json responses:

- SessionNotFoundError          -> 404
- EditorStateError              -> 409
- QuestionnaireValidationError  -> 422 with an `errors` field map
- PersistenceError              -> 502
- anything else                 -> 500
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from onboarding.logic.category_editor import EditorStateError
from onboarding.logic.repository_snapshots import PersistenceError
from onboarding.logic.session_registry import SessionNotFoundError
from onboarding.logic.validation import QuestionnaireValidationError

PROBLEM_MEDIA_TYPE = "application/problem+json"

logger = logging.getLogger(__name__)


def problem(status: int, title: str, detail: str = "", **extra: Any) -> JSONResponse:
    body: dict = {"title": title, "status": status}
    if detail:
        body["detail"] = detail
    body.update(extra)
    return JSONResponse(body, status_code=status, media_type=PROBLEM_MEDIA_TYPE)


async def handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:  # noqa: D401
    status = int(getattr(exc, "status_code", 500) or 500)
    if isinstance(exc.detail, dict):
        body = {"status": status, **exc.detail}
        return JSONResponse(body, status_code=status, media_type=PROBLEM_MEDIA_TYPE, headers=exc.headers)
    return JSONResponse(
        {"title": "Error", "status": status, "detail": str(exc.detail or "")},
        status_code=status,
        media_type=PROBLEM_MEDIA_TYPE,
        headers=exc.headers,
    )


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:  # noqa: D401
    return problem(
        422,
        "Invalid Request",
        "Request validation failed",
        errors=jsonable_encoder(exc.errors()),
    )


async def handle_session_not_found(request: Request, exc: SessionNotFoundError) -> JSONResponse:  # noqa: D401
    session_id = exc.args[0] if exc.args else ""
    return problem(404, "Session Not Found", f"no questionnaire session {session_id}")


async def handle_editor_state_error(request: Request, exc: EditorStateError) -> JSONResponse:  # noqa: D401
    logger.info("editor_state_conflict path=%s detail=%s", request.url.path, exc)
    return problem(409, "Conflict", str(exc))


async def handle_questionnaire_validation_error(
    request: Request, exc: QuestionnaireValidationError
) -> JSONResponse:  # noqa: D401
    return problem(422, "Validation Failed", exc.title, errors=exc.field_errors)


async def handle_persistence_error(request: Request, exc: PersistenceError) -> JSONResponse:  # noqa: D401
    logger.error("persistence_failed path=%s detail=%s", request.url.path, exc)
    return problem(502, "Save Failed", str(exc))


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:  # noqa: D401
    logger.error("unexpected_error path=%s", request.url.path, exc_info=exc)
    return problem(500, "Internal Server Error")


__all__ = [
    "PROBLEM_MEDIA_TYPE",
    "handle_editor_state_error",
    "handle_http_exception",
    "handle_persistence_error",
    "handle_questionnaire_validation_error",
    "handle_request_validation_error",
    "handle_session_not_found",
    "handle_unexpected_error",
    "problem",
]
