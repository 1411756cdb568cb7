"""QuizSession transitions, timing and reports under a simulated clock."""

from __future__ import annotations

import random
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from logiq.engine.session import (
    FULL_TIME_MS,
    PRACTICE_TIME_MS,
    InvalidTransitionError,
    QuizSession,
)
from logiq.models.schemas import PracticeReport, ScoreReport
from logiq.models.state import SessionMode, SessionStatus


def _session(clock, seed: int = 1) -> QuizSession:
    return QuizSession(clock=clock, rng=random.Random(seed))


def _answer_current(session: QuizSession, correct: bool) -> None:
    q = session.current_question
    choice = q.correct_option_index if correct else (q.correct_option_index + 1) % len(q.options)
    session.select_answer(choice)


def test_new_session_is_idle(clock):
    session = _session(clock)
    assert session.status == SessionStatus.IDLE
    assert session.current_question is None
    assert session.report is None


def test_start_full_initialises_state(clock):
    session = _session(clock)
    session.start_full()
    state = session.state
    assert state.status == SessionStatus.ACTIVE
    assert state.mode == SessionMode.FULL
    assert len(state.questions) == 30
    assert state.answers == [-1] * 30
    assert state.flagged == [False] * 30
    assert state.current_index == 0
    assert state.start_time == clock.now
    assert state.time_remaining_ms == FULL_TIME_MS


def test_all_correct_full_session_scores_ceiling(clock):
    session = _session(clock)
    session.start_full()
    for i in range(30):
        session.go_to_question(i)
        clock.advance(20_000)
        _answer_current(session, correct=True)
    report = session.finish()
    assert isinstance(report, ScoreReport)
    assert report.raw_score == 30
    assert report.iq_score == 145
    assert session.status == SessionStatus.FINISHED


def test_immediate_finish_scores_floor(clock):
    session = _session(clock)
    session.start_full()
    report = session.finish()
    assert report.raw_score == 0
    assert report.iq_score == 55


def test_practice_session_three_of_five(clock):
    session = _session(clock)
    session.start_practice()
    assert session.state.time_remaining_ms == PRACTICE_TIME_MS
    assert len(session.state.questions) == 5
    for i in range(5):
        session.go_to_question(i)
        _answer_current(session, correct=i < 3)
    report = session.finish()
    assert isinstance(report, PracticeReport)
    assert report.correct_count == 3
    assert report.total_questions == 5
    assert "iq_score" not in report.model_dump()


def test_elapsed_time_is_conserved_across_navigation(clock):
    session = _session(clock)
    session.start_full()
    steps = [
        (1000, lambda: session.next()),
        (2500, lambda: session.next()),
        (700, lambda: session.prev()),
        (300, lambda: session.go_to_question(10)),
        (50, lambda: session.go_to_question(10)),
        (1200, lambda: session.go_to_question(29)),
        (900, lambda: session.next()),
        (400, lambda: session.go_to_question(0)),
        (600, lambda: session.prev()),
    ]
    for delay, move in steps:
        clock.advance(delay)
        move()
    clock.advance(4000)
    session.finish()

    state = session.state
    assert sum(state.question_times) == state.end_time - state.start_time
    assert state.question_times[10] == 50 + 1200
    assert all(t >= 0 for t in state.question_times)


def test_random_navigation_conserves_time(clock):
    rng = random.Random(77)
    session = _session(clock)
    session.start_full()
    for _ in range(300):
        clock.advance(rng.randint(0, 5000))
        action = rng.choice(["next", "prev", "goto"])
        if action == "next":
            session.next()
        elif action == "prev":
            session.prev()
        else:
            session.go_to_question(rng.randrange(30))
    clock.advance(123)
    session.finish()
    state = session.state
    assert sum(state.question_times) == state.end_time - state.start_time


def test_next_and_prev_clamp_at_bounds(clock):
    session = _session(clock)
    session.start_practice()
    assert session.prev() is False
    assert session.current_index == 0
    session.go_to_question(4)
    assert session.next() is False
    assert session.current_index == 4


def test_go_to_question_rejects_out_of_range(clock):
    session = _session(clock)
    session.start_full()
    with pytest.raises(IndexError):
        session.go_to_question(30)
    with pytest.raises(IndexError):
        session.go_to_question(-1)
    assert session.current_index == 0


def test_select_answer_overwrites_and_validates(clock):
    session = _session(clock)
    session.start_full()
    session.select_answer(2)
    session.select_answer(1)
    assert session.state.answers[0] == 1
    session.select_answer(1)
    assert session.state.answers[0] == 1
    with pytest.raises(ValueError):
        session.select_answer(17)
    assert session.state.answers[0] == 1
    session.select_answer(-1)
    assert session.state.answers[0] == -1


def test_toggle_flag(clock):
    session = _session(clock)
    session.start_full()
    assert session.toggle_flag() is True
    session.next()
    session.toggle_flag()
    session.toggle_flag()
    assert session.flagged_indexes() == [0]


def test_tick_recomputes_from_absolute_time(clock):
    session = _session(clock)
    session.start_full()
    clock.advance(1000)
    assert session.tick() == FULL_TIME_MS - 1000
    clock.advance(7_350)  # late, irregular tick
    assert session.tick() == FULL_TIME_MS - 8_350
    assert session.tick() == FULL_TIME_MS - 8_350
    clock.advance(FULL_TIME_MS)
    assert session.tick() == 0
    assert session.is_expired


def test_finish_after_time_runs_out_records_elapsed(clock):
    session = _session(clock)
    session.start_practice()
    clock.advance(PRACTICE_TIME_MS + 5000)
    assert session.tick() == 0
    session.finish()
    state = session.state
    assert state.question_times[0] == PRACTICE_TIME_MS + 5000
    assert state.end_time - state.start_time == PRACTICE_TIME_MS + 5000


@pytest.mark.parametrize(
    "operation",
    [
        lambda s: s.select_answer(0),
        lambda s: s.next(),
        lambda s: s.prev(),
        lambda s: s.go_to_question(0),
        lambda s: s.toggle_flag(),
        lambda s: s.tick(),
        lambda s: s.finish(),
    ],
)
def test_active_only_operations_reject_idle(clock, operation):
    session = _session(clock)
    with pytest.raises(InvalidTransitionError):
        operation(session)
    assert session.status == SessionStatus.IDLE


def test_finished_is_terminal(clock):
    session = _session(clock)
    session.start_full()
    report = session.finish()
    with pytest.raises(InvalidTransitionError):
        session.select_answer(0)
    with pytest.raises(InvalidTransitionError):
        session.finish()
    assert session.report == report


def test_reset_discards_everything(clock):
    session = _session(clock)
    session.start_full()
    session.select_answer(0)
    session.reset()
    state = session.state
    assert state.status == SessionStatus.IDLE
    assert state.questions == []
    assert state.report is None
    assert session.session_id is None


def test_restart_produces_fresh_session(clock):
    session = _session(clock)
    session.start_full()
    first_id = session.session_id
    session.select_answer(0)
    session.finish()
    session.start_full()
    assert session.session_id != first_id
    assert session.state.answers == [-1] * 30
    assert session.report is None


def test_state_copy_is_detached(clock):
    session = _session(clock)
    session.start_full()
    copy = session.state
    copy.answers[0] = 3
    assert session.state.answers[0] == -1


def test_listeners_see_every_transition_including_reset(clock):
    session = _session(clock)
    seen = []
    unsubscribe = session.subscribe(lambda s: seen.append(s.status))
    session.start_practice()
    session.select_answer(0)
    session.reset()
    assert seen == [SessionStatus.ACTIVE, SessionStatus.ACTIVE, SessionStatus.IDLE]
    unsubscribe()
    session.start_practice()
    assert len(seen) == 3


def test_failing_listener_does_not_break_transition(clock):
    session = _session(clock)

    def _boom(_):
        raise RuntimeError("render failed")

    session.subscribe(_boom)
    session.start_full()
    session.select_answer(1)
    assert session.state.answers[0] == 1


def test_empty_bank_cannot_start(clock):
    session = QuizSession(bank=[], clock=clock)
    with pytest.raises(ValueError):
        session.start_full()
    assert session.status == SessionStatus.IDLE
