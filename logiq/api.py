"""HTTP API for hosting the LogIQ quiz engine."""

from __future__ import annotations

from contextlib import asynccontextmanager
from functools import lru_cache
import logging
from threading import Lock
from time import perf_counter
from typing import Any, Callable, Dict, List, Literal, Optional, Union
from uuid import uuid4

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel, Field

from .config import get_settings
from .data.questions import CATEGORY_LABELS
from .engine.session import InvalidTransitionError, QuizSession
from .engine.ticker import drive_countdown
from .models.schemas import PracticeReport, ScoreReport, SharedReport
from .models.state import SessionMode, SessionStatus
from .observability.context import reset_request_id, set_request_id
from .observability.logging_setup import configure_logging
from .orchestration.session_store import SAVE_KEY, FileStore, SessionStore, sanitize_key
from .permalink import decode_results, generate_permalink


@asynccontextmanager
async def _app_lifespan(_: FastAPI):
    configure_logging()
    logging.getLogger("logiq.api").info(
        "api_startup",
        extra={"event": "api_startup"},
    )
    yield


app = FastAPI(
    title="LogIQ API",
    description="Timed cognitive-assessment quiz sessions and shareable results",
    version="1.0.0",
    lifespan=_app_lifespan,
)

_http_logger = logging.getLogger("logiq.http")


# ── Request / response models ──────────────────────────────────────
class StartSessionRequest(BaseModel):
    user_id: str = Field(default="default", min_length=1, max_length=120)
    mode: Literal["full", "practice"] = "full"


class ResumeSessionRequest(BaseModel):
    user_id: str = Field(default="default", min_length=1, max_length=120)


class AnswerRequest(BaseModel):
    option_index: int = Field(..., ge=-1)


class NavigateRequest(BaseModel):
    action: Literal["next", "prev", "goto"]
    index: Optional[int] = None


class QuestionView(BaseModel):
    """A question as shown to the test-taker, without its answer key."""

    id: int
    category: str
    category_label: str
    difficulty: int
    prompt: str
    grid: Optional[List[List[str]]] = None
    sequence: Optional[List[str]] = None
    options: List[str]


class SessionView(BaseModel):
    user_id: str
    session_id: Optional[str] = None
    status: SessionStatus
    mode: SessionMode
    current_index: int
    total_questions: int
    answers: List[int] = Field(default_factory=list)
    flagged: List[bool] = Field(default_factory=list)
    time_remaining_ms: int
    current_question: Optional[QuestionView] = None
    report: Optional[Union[ScoreReport, PracticeReport]] = None
    permalink: Optional[str] = None


class ResumeResponse(BaseModel):
    resumed: bool
    session: SessionView


class SavedSessionInfo(BaseModel):
    available: bool
    saved_at: Optional[int] = None
    time_remaining_ms: Optional[int] = None
    answered: Optional[int] = None
    total_questions: Optional[int] = None


# ── Session registry ───────────────────────────────────────────────
class _SessionRegistry:
    """One QuizSession per user, each persisting under its own key."""

    def __init__(self) -> None:
        self._sessions: Dict[str, QuizSession] = {}
        self._lock = Lock()

    def store_for(self, user_id: str) -> SessionStore:
        settings = get_settings()
        return SessionStore(
            FileStore(settings.state_dir),
            key=f"{SAVE_KEY}_{sanitize_key(user_id)}",
            expiry_ms=settings.save_expiry_ms,
        )

    def get(self, user_id: str) -> QuizSession:
        with self._lock:
            session = self._sessions.get(user_id)
            if session is None:
                settings = get_settings()
                session = QuizSession(
                    store=self.store_for(user_id),
                    expiry_ms=settings.save_expiry_ms,
                )
                self._sessions[user_id] = session
            return session

    def peek(self, user_id: str) -> Optional[QuizSession]:
        """The registered session for *user_id*, without creating one."""
        with self._lock:
            return self._sessions.get(user_id)

    def discard(self, user_id: str) -> None:
        with self._lock:
            self._sessions.pop(user_id, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


@lru_cache(maxsize=1)
def _registry() -> _SessionRegistry:
    return _SessionRegistry()


@lru_cache(maxsize=512)
def _decode_token(token: str) -> Optional[SharedReport]:
    return decode_results(token)


def _question_view(session: QuizSession) -> Optional[QuestionView]:
    question = session.current_question
    if question is None:
        return None
    return QuestionView(
        id=question.id,
        category=question.category.value,
        category_label=CATEGORY_LABELS.get(question.category.value, question.category.value),
        difficulty=question.difficulty,
        prompt=question.prompt,
        grid=question.grid,
        sequence=question.sequence,
        options=list(question.options),
    )


def _session_view(user_id: str, session: QuizSession) -> SessionView:
    with session.lock:
        state = session.state
        permalink = None
        if isinstance(state.report, ScoreReport):
            permalink = generate_permalink(state.report, shared_at=state.end_time)
        return SessionView(
            user_id=user_id,
            session_id=session.session_id,
            status=state.status,
            mode=state.mode,
            current_index=state.current_index,
            total_questions=len(state.questions),
            answers=state.answers,
            flagged=state.flagged,
            time_remaining_ms=state.time_remaining_ms,
            current_question=_question_view(session),
            report=state.report,
            permalink=permalink,
        )


def _idle_view(user_id: str) -> SessionView:
    return SessionView(
        user_id=user_id,
        status=SessionStatus.IDLE,
        mode=SessionMode.FULL,
        current_index=0,
        total_questions=0,
        time_remaining_ms=0,
    )


def _apply(
    user_id: str, action: Callable[[QuizSession], Any], create: bool = False
) -> SessionView:
    registry = _registry()
    session = registry.get(user_id) if create else registry.peek(user_id)
    if session is None:
        raise HTTPException(status_code=409, detail="No session has been started.")
    try:
        with session.lock:
            action(session)
            return _session_view(user_id, session)
    except InvalidTransitionError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except (ValueError, IndexError) as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


# ── Middleware ─────────────────────────────────────────────────────
@app.middleware("http")
async def _request_logging(
    request: Request, call_next: Callable[..., Any]
):
    request_id = request.headers.get("x-request-id") or uuid4().hex
    token = set_request_id(request_id)
    started = perf_counter()

    try:
        response = await call_next(request)
    except Exception:
        duration_ms = round((perf_counter() - started) * 1000, 2)
        _http_logger.exception(
            "request_failed",
            extra={
                "event": "request_failed",
                "method": request.method,
                "path": request.url.path,
                "status_code": 500,
                "duration_ms": duration_ms,
            },
        )
        raise
    finally:
        reset_request_id(token)

    duration_ms = round((perf_counter() - started) * 1000, 2)
    response.headers["x-request-id"] = request_id
    _http_logger.info(
        "request_completed",
        extra={
            "event": "request_completed",
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "duration_ms": duration_ms,
        },
    )
    return response


# ── Routes ─────────────────────────────────────────────────────────
@app.get("/healthz")
def healthz() -> dict:
    return {"status": "ok"}


@app.post("/v1/session/start", response_model=SessionView)
def start_session(req: StartSessionRequest) -> SessionView:
    if req.mode == "practice":
        return _apply(req.user_id, lambda s: s.start_practice(), create=True)
    return _apply(req.user_id, lambda s: s.start_full(), create=True)


@app.get("/v1/session/{user_id}/saved", response_model=SavedSessionInfo)
def saved_session(user_id: str) -> SavedSessionInfo:
    snapshot = _registry().store_for(user_id).load()
    if snapshot is None:
        return SavedSessionInfo(available=False)
    return SavedSessionInfo(
        available=True,
        saved_at=snapshot.saved_at,
        time_remaining_ms=snapshot.time_remaining_ms,
        answered=sum(1 for a in snapshot.answers if a >= 0),
        total_questions=len(snapshot.questions),
    )


@app.post("/v1/session/resume", response_model=ResumeResponse)
def resume_session(req: ResumeSessionRequest) -> ResumeResponse:
    outcome: Dict[str, bool] = {}

    def _resume(session: QuizSession) -> None:
        outcome["resumed"] = session.resume_from()

    view = _apply(req.user_id, _resume, create=True)
    return ResumeResponse(resumed=outcome.get("resumed", False), session=view)


@app.get("/v1/session/{user_id}", response_model=SessionView)
def get_session(user_id: str) -> SessionView:
    session = _registry().peek(user_id)
    if session is None:
        return _idle_view(user_id)
    return _session_view(user_id, session)


@app.post("/v1/session/{user_id}/answer", response_model=SessionView)
def answer(user_id: str, req: AnswerRequest) -> SessionView:
    return _apply(user_id, lambda s: s.select_answer(req.option_index))


@app.post("/v1/session/{user_id}/navigate", response_model=SessionView)
def navigate(user_id: str, req: NavigateRequest) -> SessionView:
    if req.action == "goto":
        if req.index is None:
            raise HTTPException(status_code=422, detail="index is required for goto.")
        return _apply(user_id, lambda s: s.go_to_question(req.index))
    if req.action == "next":
        return _apply(user_id, lambda s: s.next())
    return _apply(user_id, lambda s: s.prev())


@app.post("/v1/session/{user_id}/flag", response_model=SessionView)
def flag(user_id: str) -> SessionView:
    return _apply(user_id, lambda s: s.toggle_flag())


@app.post("/v1/session/{user_id}/tick", response_model=SessionView)
def tick(user_id: str) -> SessionView:
    def _tick(session: QuizSession) -> None:
        if session.status != SessionStatus.ACTIVE:
            raise InvalidTransitionError("tick requires an active session.")
        drive_countdown(session)

    return _apply(user_id, _tick)


@app.post("/v1/session/{user_id}/finish", response_model=SessionView)
def finish(user_id: str) -> SessionView:
    return _apply(user_id, lambda s: s.finish())


@app.post("/v1/session/{user_id}/reset", response_model=SessionView)
def reset(user_id: str) -> SessionView:
    registry = _registry()
    session = registry.peek(user_id)
    if session is None:
        registry.store_for(user_id).clear()
    else:
        with session.lock:
            session.reset()
        registry.discard(user_id)
    return _idle_view(user_id)


@app.get("/v1/results/{token}", response_model=SharedReport)
def shared_results(token: str) -> SharedReport:
    shared = _decode_token(token)
    if shared is None:
        raise HTTPException(status_code=404, detail="Result not found or link is invalid.")
    return shared
