"""Onboarding questionnaire service package.

Exposes the FastAPI application factory. The questionnaire engine lives in
`onboarding/logic/` and route handlers in `onboarding/routes/`.
"""

from __future__ import annotations

from onboarding.main import create_app

__all__ = ["create_app"]
