"""In-progress quiz session state and its persisted snapshot."""

from __future__ import annotations

from enum import Enum
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field, model_validator

from .schemas import PracticeReport, Question, ScoreReport

UNANSWERED = -1
SNAPSHOT_VERSION = 1


class SessionStatus(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    FINISHED = "finished"


class SessionMode(str, Enum):
    FULL = "full"
    PRACTICE = "practice"


class SessionState(BaseModel):
    status: SessionStatus = SessionStatus.IDLE
    mode: SessionMode = SessionMode.FULL
    questions: List[Question] = Field(default_factory=list)
    current_index: int = 0
    answers: List[int] = Field(default_factory=list)
    flagged: List[bool] = Field(default_factory=list)
    start_time: Optional[int] = None
    end_time: Optional[int] = None
    question_start_times: List[Optional[int]] = Field(default_factory=list)
    question_times: List[int] = Field(default_factory=list)
    time_remaining_ms: int = 0
    report: Optional[Union[ScoreReport, PracticeReport]] = None


class SessionSnapshot(BaseModel):
    """Versioned auto-save payload for a full-mode session."""

    version: Literal[1] = SNAPSHOT_VERSION
    questions: List[Question] = Field(..., min_length=1)
    answers: List[int]
    flagged: List[bool]
    current_index: int = Field(..., ge=0)
    time_remaining_ms: int = Field(..., ge=0)
    start_time: int
    question_times: List[int]
    question_start_times: List[Optional[int]]
    saved_at: int

    @model_validator(mode="after")
    def _validate_parallel_arrays(self) -> "SessionSnapshot":
        size = len(self.questions)
        for name in ("answers", "flagged", "question_times", "question_start_times"):
            if len(getattr(self, name)) != size:
                raise ValueError(f"{name} must have one entry per question")
        if self.current_index >= size:
            raise ValueError("current_index is out of range")
        for question, answer in zip(self.questions, self.answers):
            if answer != UNANSWERED and not 0 <= answer < len(question.options):
                raise ValueError(f"answer {answer} is out of range for question {question.id}")
        if any(t < 0 for t in self.question_times):
            raise ValueError("question_times must be non-negative")
        return self

    @classmethod
    def from_state(cls, state: SessionState, saved_at: int) -> "SessionSnapshot":
        return cls(
            questions=state.questions,
            answers=list(state.answers),
            flagged=list(state.flagged),
            current_index=state.current_index,
            time_remaining_ms=state.time_remaining_ms,
            start_time=state.start_time or saved_at,
            question_times=list(state.question_times),
            question_start_times=list(state.question_start_times),
            saved_at=saved_at,
        )
