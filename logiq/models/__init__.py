"""Pydantic data models for quiz sessions and reports."""

from .schemas import (
    MISSING_MARKER,
    Category,
    CategoryResult,
    DifficultyBreakdown,
    PracticeReport,
    PracticeResult,
    Question,
    ScoreReport,
    SharedReport,
    TierTally,
)
from .state import (
    UNANSWERED,
    SessionMode,
    SessionSnapshot,
    SessionState,
    SessionStatus,
)

__all__ = [
    "MISSING_MARKER",
    "Category",
    "CategoryResult",
    "DifficultyBreakdown",
    "PracticeReport",
    "PracticeResult",
    "Question",
    "ScoreReport",
    "SharedReport",
    "TierTally",
    "UNANSWERED",
    "SessionMode",
    "SessionSnapshot",
    "SessionState",
    "SessionStatus",
]
