"""Quiz session state machine: idle → active → finished.

``QuizSession`` is the single owner of a ``SessionState``. Every
transition runs to completion under the session lock, so a ticker
thread and a UI thread can share one session safely. The session never
starts timers of its own; a scheduler calls :meth:`QuizSession.tick`
and, once time runs out, :meth:`QuizSession.finish`.
"""

from __future__ import annotations

import logging
import random
import threading
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union
from uuid import uuid4

from pydantic import ValidationError

from ..data.questions import QUESTION_BANK
from ..models.schemas import PracticeReport, Question, ScoreReport
from ..models.state import (
    UNANSWERED,
    SessionMode,
    SessionSnapshot,
    SessionState,
    SessionStatus,
)
from ..orchestration.session_store import SAVE_EXPIRY_MS, SessionStore, wall_clock_ms
from .scoring import build_practice_report, calculate_results
from .selector import select_full_session, select_practice_session

FULL_TIME_MS = 25 * 60 * 1000
PRACTICE_TIME_MS = 5 * 60 * 1000

MODE_BUDGET_MS: Dict[SessionMode, int] = {
    SessionMode.FULL: FULL_TIME_MS,
    SessionMode.PRACTICE: PRACTICE_TIME_MS,
}

Listener = Callable[["QuizSession"], None]
SnapshotInput = Union[SessionSnapshot, Dict[str, Any], str, None]

_logger = logging.getLogger("logiq.session")


class InvalidTransitionError(RuntimeError):
    """Raised when an operation is not allowed in the current status."""


class QuizSession:
    def __init__(
        self,
        bank: Sequence[Question] = QUESTION_BANK,
        store: Optional[SessionStore] = None,
        clock: Callable[[], int] = wall_clock_ms,
        rng: Optional[random.Random] = None,
        expiry_ms: int = SAVE_EXPIRY_MS,
    ) -> None:
        self._bank = tuple(bank)
        self._store = store
        self._clock = clock
        self._rng = rng
        self._expiry_ms = expiry_ms
        self._lock = threading.RLock()
        self._state = SessionState()
        self._session_id: Optional[str] = None
        self._listeners: List[Listener] = []
        self._last_saved: Optional[Tuple[Any, ...]] = None

    # ── Read side ──────────────────────────────────────────────────
    @property
    def state(self) -> SessionState:
        """A detached copy of the current state."""
        with self._lock:
            return self._state.model_copy(deep=True)

    @property
    def lock(self) -> threading.RLock:
        """The lock serialising every transition; hold it to batch several."""
        return self._lock

    @property
    def session_id(self) -> Optional[str]:
        return self._session_id

    @property
    def status(self) -> SessionStatus:
        return self._state.status

    @property
    def mode(self) -> SessionMode:
        return self._state.mode

    @property
    def current_index(self) -> int:
        return self._state.current_index

    @property
    def time_remaining_ms(self) -> int:
        return self._state.time_remaining_ms

    @property
    def report(self) -> Optional[Union[ScoreReport, PracticeReport]]:
        return self._state.report

    @property
    def current_question(self) -> Optional[Question]:
        with self._lock:
            if self._state.status != SessionStatus.ACTIVE:
                return None
            return self._state.questions[self._state.current_index]

    @property
    def is_expired(self) -> bool:
        with self._lock:
            return (
                self._state.status == SessionStatus.ACTIVE
                and self._state.time_remaining_ms == 0
            )

    def answered_count(self) -> int:
        with self._lock:
            return sum(1 for a in self._state.answers if a != UNANSWERED)

    def unanswered_indexes(self) -> List[int]:
        with self._lock:
            return [i for i, a in enumerate(self._state.answers) if a == UNANSWERED]

    def flagged_indexes(self) -> List[int]:
        with self._lock:
            return [i for i, f in enumerate(self._state.flagged) if f]

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call *listener* after every transition; returns an unsubscribe hook."""
        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    # ── Lifecycle ──────────────────────────────────────────────────
    def start_full(self) -> None:
        self._start(SessionMode.FULL, select_full_session(self._bank, self._rng))

    def start_practice(self) -> None:
        self._start(SessionMode.PRACTICE, select_practice_session(self._bank, self._rng))

    def _start(self, mode: SessionMode, questions: List[Question]) -> None:
        if not questions:
            raise ValueError(f"No questions available for a {mode.value} session.")
        with self._lock:
            if self._store is not None:
                self._store.clear()
            now = self._clock()
            count = len(questions)
            self._state = SessionState(
                status=SessionStatus.ACTIVE,
                mode=mode,
                questions=questions,
                current_index=0,
                answers=[UNANSWERED] * count,
                flagged=[False] * count,
                start_time=now,
                question_start_times=[now] + [None] * (count - 1),
                question_times=[0] * count,
                time_remaining_ms=MODE_BUDGET_MS[mode],
            )
            self._session_id = uuid4().hex
            self._last_saved = None
            _logger.info(
                "session_started",
                extra={
                    "event": "session_started",
                    "session_id": self._session_id,
                    "mode": mode.value,
                    "question_count": count,
                },
            )
            self._changed()

    def resume_from(self, snapshot: SnapshotInput = None) -> bool:
        """Continue a saved full session, or start a fresh one.

        The wall-clock time since the save is deducted from the remaining
        budget. The snapshot is consumed either way. Returns True when
        the snapshot was resumed, False when it fell back to
        :meth:`start_full`.
        """
        with self._lock:
            if self._state.status == SessionStatus.ACTIVE:
                raise InvalidTransitionError("Cannot resume while a session is active.")

            if snapshot is None:
                parsed = self._store.load() if self._store is not None else None
            else:
                parsed = self._coerce_snapshot(snapshot)
            if self._store is not None:
                self._store.clear()

            now = self._clock()
            if parsed is None or now - parsed.saved_at > self._expiry_ms:
                self.start_full()
                return False

            remaining = max(0, parsed.time_remaining_ms - (now - parsed.saved_at))
            count = len(parsed.questions)
            entered: List[Optional[int]] = [None] * count
            entered[parsed.current_index] = now
            self._state = SessionState(
                status=SessionStatus.ACTIVE,
                mode=SessionMode.FULL,
                questions=parsed.questions,
                current_index=parsed.current_index,
                answers=list(parsed.answers),
                flagged=list(parsed.flagged),
                start_time=now - (FULL_TIME_MS - remaining),
                question_start_times=entered,
                question_times=list(parsed.question_times),
                time_remaining_ms=remaining,
            )
            self._session_id = uuid4().hex
            self._last_saved = None
            _logger.info(
                "session_resumed",
                extra={
                    "event": "session_resumed",
                    "session_id": self._session_id,
                    "mode": SessionMode.FULL.value,
                    "time_remaining_ms": remaining,
                },
            )
            self._changed()
            return True

    def finish(self) -> Union[ScoreReport, PracticeReport]:
        with self._lock:
            self._require_active("finish")
            state = self._state
            now = self._clock()
            self._commit_elapsed(now)

            if state.mode == SessionMode.PRACTICE:
                report: Union[ScoreReport, PracticeReport] = build_practice_report(
                    state.questions, state.answers
                )
            else:
                report = calculate_results(
                    state.questions,
                    state.answers,
                    state.start_time,
                    now,
                    state.question_times,
                )

            state.end_time = now
            state.report = report
            state.status = SessionStatus.FINISHED
            if self._store is not None:
                self._store.clear()
            _logger.info(
                "session_finished",
                extra={
                    "event": "session_finished",
                    "session_id": self._session_id,
                    "mode": state.mode.value,
                    "duration_ms": now - (state.start_time or now),
                    "iq_score": getattr(report, "iq_score", None),
                },
            )
            self._changed()
            return report

    def reset(self) -> None:
        with self._lock:
            previous = self._state
            if previous.status == SessionStatus.ACTIVE:
                _logger.info(
                    "session_abandoned",
                    extra={
                        "event": "session_abandoned",
                        "session_id": self._session_id,
                        "mode": previous.mode.value,
                        "last_index": previous.current_index,
                        "question_count": len(previous.questions),
                    },
                )
            self._state = SessionState()
            self._session_id = None
            self._last_saved = None
            if self._store is not None:
                self._store.clear()
            _logger.info("session_reset", extra={"event": "session_reset"})
            self._changed()

    # ── Active-only transitions ────────────────────────────────────
    def select_answer(self, option_index: int) -> None:
        """Record an answer for the current question; -1 clears it."""
        with self._lock:
            self._require_active("select_answer")
            question = self._state.questions[self._state.current_index]
            if option_index != UNANSWERED and not 0 <= option_index < len(question.options):
                raise ValueError(
                    f"Option {option_index} is out of range for question {question.id}."
                )
            self._state.answers[self._state.current_index] = option_index
            self._changed()

    def go_to_question(self, index: int) -> None:
        with self._lock:
            self._require_active("go_to_question")
            if not 0 <= index < len(self._state.questions):
                raise IndexError(f"Question index {index} is out of range.")
            self._move_to(index)

    def next(self) -> bool:
        with self._lock:
            self._require_active("next")
            if self._state.current_index >= len(self._state.questions) - 1:
                return False
            self._move_to(self._state.current_index + 1)
            return True

    def prev(self) -> bool:
        with self._lock:
            self._require_active("prev")
            if self._state.current_index <= 0:
                return False
            self._move_to(self._state.current_index - 1)
            return True

    def toggle_flag(self) -> bool:
        with self._lock:
            self._require_active("toggle_flag")
            idx = self._state.current_index
            self._state.flagged[idx] = not self._state.flagged[idx]
            self._changed()
            return self._state.flagged[idx]

    def tick(self) -> int:
        """Recompute the countdown from absolute time; returns ms remaining."""
        with self._lock:
            self._require_active("tick")
            state = self._state
            elapsed = self._clock() - state.start_time
            state.time_remaining_ms = max(0, MODE_BUDGET_MS[state.mode] - elapsed)
            self._changed()
            return state.time_remaining_ms

    # ── Internals ──────────────────────────────────────────────────
    def _require_active(self, operation: str) -> None:
        if self._state.status != SessionStatus.ACTIVE:
            raise InvalidTransitionError(
                f"{operation} requires an active session (status is {self._state.status.value})."
            )

    def _commit_elapsed(self, now: int) -> None:
        state = self._state
        idx = state.current_index
        entered = state.question_start_times[idx]
        if entered is None:
            entered = now
        state.question_times[idx] += max(0, now - entered)

    def _move_to(self, index: int) -> None:
        now = self._clock()
        self._commit_elapsed(now)
        self._state.current_index = index
        self._state.question_start_times[index] = now
        self._changed()

    def _coerce_snapshot(self, snapshot: SnapshotInput) -> Optional[SessionSnapshot]:
        if isinstance(snapshot, SessionSnapshot):
            return snapshot
        try:
            if isinstance(snapshot, str):
                return SessionSnapshot.model_validate_json(snapshot)
            return SessionSnapshot.model_validate(snapshot)
        except ValidationError as exc:
            _logger.warning(
                "snapshot_rejected",
                extra={"event": "snapshot_rejected", "error": str(exc)[:200]},
            )
            return None

    def _autosave_fingerprint(self) -> Tuple[Any, ...]:
        state = self._state
        return (
            tuple(state.answers),
            tuple(state.flagged),
            state.current_index,
            state.time_remaining_ms,
        )

    def _changed(self) -> None:
        state = self._state
        if (
            self._store is not None
            and state.status == SessionStatus.ACTIVE
            and state.mode == SessionMode.FULL
        ):
            fingerprint = self._autosave_fingerprint()
            if fingerprint != self._last_saved and self._store.save(state):
                self._last_saved = fingerprint

        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                _logger.exception(
                    "listener_failed",
                    extra={"event": "listener_failed", "session_id": self._session_id},
                )
