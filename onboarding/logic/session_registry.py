"""In-process holder for live questionnaire sessions.

Sessions are created by the API layer and looked up by id on every request.
Closing a session cancels its pending auto-save before it is forgotten.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict

from onboarding.logic.session import QuestionnaireSession

logger = logging.getLogger(__name__)


class SessionNotFoundError(KeyError):
    pass


class SessionRegistry:
    def __init__(self) -> None:
        self._sessions: Dict[str, QuestionnaireSession] = {}
        self._lock = threading.Lock()

    def add(self, session: QuestionnaireSession) -> QuestionnaireSession:
        with self._lock:
            self._sessions[session.session_id] = session
        return session

    def get(self, session_id: str) -> QuestionnaireSession:
        with self._lock:
            session = self._sessions.get(str(session_id))
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def close(self, session_id: str) -> None:
        with self._lock:
            session = self._sessions.pop(str(session_id), None)
        if session is None:
            raise SessionNotFoundError(session_id)
        session.close()

    def close_all(self) -> None:
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            session.close()
        if sessions:
            logger.info("sessions_closed count=%s", len(sessions))

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


__all__ = ["SessionNotFoundError", "SessionRegistry"]
