"""Background countdown driver for a QuizSession."""

from __future__ import annotations

import logging
import threading
from typing import Optional

from ..models.state import SessionStatus
from .session import InvalidTransitionError, QuizSession

_logger = logging.getLogger("logiq.session")


def drive_countdown(session: QuizSession) -> bool:
    """Tick *session* once and submit it when time is up.

    Returns False once the session is no longer active.
    """
    with session.lock:
        if session.status != SessionStatus.ACTIVE:
            return False
        try:
            if session.tick() == 0:
                session.finish()
                _logger.info(
                    "session_auto_submitted",
                    extra={
                        "event": "session_auto_submitted",
                        "session_id": session.session_id,
                    },
                )
                return False
        except InvalidTransitionError:
            return False
    return True


class SessionTicker:
    """Call ``tick()`` roughly every *interval* seconds; auto-submit at zero.

    Late or missed ticks are harmless because the session recomputes the
    remaining time from absolute clock values on every call.
    """

    def __init__(self, session: QuizSession, interval: float = 1.0) -> None:
        self._session = session
        self._interval = max(0.01, interval)
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def step(self) -> bool:
        return drive_countdown(self._session)

    def _run(self) -> None:
        while not self._stop.wait(self._interval):
            if not self.step():
                break

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run, name="logiq-ticker", daemon=True
        )
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        self._thread = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
