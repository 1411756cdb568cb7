"""LogIQ terminal runner: ``python -m logiq.main [--practice] [--state-dir DIR]``."""

from __future__ import annotations

import sys
from typing import Optional

from .config import get_settings
from .engine.session import QuizSession
from .engine.ticker import drive_countdown
from .models.schemas import PracticeReport, ScoreReport
from .models.state import SessionMode, SessionStatus
from .observability.context import reset_session_id, set_session_id
from .orchestration.session_store import FileStore, SessionStore
from .permalink import generate_permalink
from .util.console import (
    console,
    format_clock,
    print_banner,
    print_help,
    print_practice_report,
    print_question,
    print_score_report,
    print_status,
)

_COMMANDS = [
    "1-4 answer",
    "n next",
    "p previous",
    "g N go to N",
    "f flag",
    "s submit",
    "q quit (progress is saved)",
]


def _arg_value(flag: str) -> Optional[str]:
    if flag not in sys.argv:
        return None
    idx = sys.argv.index(flag)
    return sys.argv[idx + 1] if idx + 1 < len(sys.argv) else None


def _confirm(prompt: str) -> bool:
    raw = input(f"{prompt} [Y/n] ").strip().lower()
    return raw in ("", "y", "yes")


def _handle_command(session: QuizSession, raw: str) -> None:
    if raw.isdigit():
        try:
            session.select_answer(int(raw) - 1)
        except ValueError as exc:
            console.print(f"  [red]{exc}[/red]")
        return
    if raw in ("", "n"):
        if not session.next():
            console.print("  [dim]Last question, press s to submit.[/dim]")
        return
    if raw == "p":
        session.prev()
        return
    if raw == "f":
        session.toggle_flag()
        return
    if raw.startswith("g"):
        try:
            session.go_to_question(int(raw[1:].strip()) - 1)
        except (ValueError, IndexError):
            console.print("  [red]Usage: g N, with N a question number.[/red]")
        return
    print_help(_COMMANDS)


def _run_quiz(session: QuizSession) -> None:
    print_help(_COMMANDS)
    while session.status == SessionStatus.ACTIVE:
        if not drive_countdown(session):
            break
        state = session.state
        idx = state.current_index
        print_status(
            idx,
            len(state.questions),
            state.time_remaining_ms,
            session.answered_count(),
            state.flagged[idx],
        )
        print_question(state.questions[idx], state.answers[idx])

        raw = input("> ").strip().lower()
        if not drive_countdown(session):
            console.print("[red]Time is up, your answers were submitted.[/red]")
            break

        if raw == "q":
            raise KeyboardInterrupt
        if raw == "s":
            unanswered = session.unanswered_indexes()
            if unanswered and not _confirm(
                f"{len(unanswered)} question(s) unanswered. Submit anyway?"
            ):
                continue
            session.finish()
            break
        _handle_command(session, raw)


def main() -> None:
    practice = "--practice" in sys.argv
    settings = get_settings()

    state_dir = _arg_value("--state-dir") or settings.state_dir
    store = SessionStore(FileStore(state_dir), expiry_ms=settings.save_expiry_ms)
    session = QuizSession(store=store, expiry_ms=settings.save_expiry_ms)

    print_banner()
    if practice:
        session.start_practice()
    else:
        saved = store.load()
        resume = saved is not None and _confirm(
            f"Resume your saved test ({sum(1 for a in saved.answers if a >= 0)}/"
            f"{len(saved.questions)} answered, {format_clock(saved.time_remaining_ms)} left)?"
        )
        if resume:
            session.resume_from(saved)
        else:
            session.start_full()
    context_token = set_session_id(session.session_id or "")

    try:
        _run_quiz(session)
    except KeyboardInterrupt:
        if session.mode == SessionMode.FULL:
            console.print(
                f"\n[dim]Test paused. Run again within {settings.save_expiry_hours} "
                "hours to resume.[/dim]"
            )
        else:
            console.print("\n[dim]Practice cancelled.[/dim]")
        sys.exit(0)
    finally:
        reset_session_id(context_token)

    report = session.report
    if isinstance(report, ScoreReport):
        print_score_report(
            report,
            permalink=generate_permalink(report, shared_at=session.state.end_time),
        )
    elif isinstance(report, PracticeReport):
        print_practice_report(report)


if __name__ == "__main__":
    main()
