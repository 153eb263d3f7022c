"""Debounced, cancellable auto-save.

Each `schedule()` cancels the pending timer and starts a new one, so a burst
of edits produces a single save `debounce_seconds` after the last one. The
snapshot is built when the timer fires, never when it is scheduled. Failures
are logged and swallowed: auto-save must never interrupt typing.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

TimerFactory = Callable[[float, Callable[[], None]], Any]


def _thread_timer(interval: float, fn: Callable[[], None]) -> threading.Timer:
    t = threading.Timer(interval, fn)
    t.daemon = True
    return t


class AutosaveScheduler:
    def __init__(
        self,
        save: Callable[[], bool],
        debounce_seconds: float = 1.0,
        timer_factory: Optional[TimerFactory] = None,
        name: str = "",
    ) -> None:
        self._save = save
        self.debounce_seconds = debounce_seconds
        self._timer_factory: TimerFactory = timer_factory or _thread_timer
        self._lock = threading.Lock()
        self._timer: Any = None
        self._closed = False
        self._generation = 0
        self.name = name

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def schedule(self) -> None:
        with self._lock:
            if self._closed:
                return
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            generation = self._generation
            timer = self._timer_factory(self.debounce_seconds, lambda: self._fire(generation))
            self._timer = timer
        timer.start()

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def close(self) -> None:
        """Cancel any pending save and refuse new ones."""
        with self._lock:
            self._closed = True
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def flush(self) -> bool:
        """Run a pending save immediately; returns False when none was pending."""
        with self._lock:
            if self._timer is None:
                return False
            self._timer.cancel()
            self._timer = None
        self._run()
        return True

    def _fire(self, generation: int) -> None:
        with self._lock:
            if self._closed or self._timer is None or generation != self._generation:
                return
            self._timer = None
        self._run()

    def _run(self) -> None:
        try:
            ok = self._save()
        except Exception:
            logger.error("autosave_failed session=%s", self.name, exc_info=True)
            return
        if ok:
            logger.info("autosave_completed session=%s", self.name)
        else:
            logger.warning("autosave_failed session=%s", self.name)


__all__ = ["AutosaveScheduler", "TimerFactory"]
