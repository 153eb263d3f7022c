"""APIRouter registration for the onboarding questionnaire service."""

from __future__ import annotations

from fastapi import APIRouter

from onboarding.routes.editor import router as editor_router
from onboarding.routes.sessions import router as sessions_router

api_router = APIRouter()
api_router.include_router(sessions_router)
api_router.include_router(editor_router)

__all__ = ["api_router"]
