"""Pydantic schemas for questions and score reports."""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

MISSING_MARKER = "?"


# ── Categories ──────────────────────────────────────────────────────
class Category(str, Enum):
    PATTERN_RECOGNITION = "pattern-recognition"
    SEQUENCE_COMPLETION = "sequence-completion"
    LOGICAL_DEDUCTION = "logical-deduction"
    SPATIAL_REASONING = "spatial-reasoning"
    ANALOGIES = "analogies"


# ── Question ────────────────────────────────────────────────────────
class Question(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int = Field(..., gt=0)
    category: Category
    difficulty: int = Field(..., ge=1, le=5)
    prompt: str
    grid: Optional[List[List[str]]] = None
    sequence: Optional[List[str]] = None
    options: List[str] = Field(..., min_length=2)
    correct_option_index: int = Field(..., ge=0, description="0-based index")

    @model_validator(mode="after")
    def _validate_shape(self) -> "Question":
        if self.correct_option_index >= len(self.options):
            raise ValueError(
                "correct_option_index must be a valid index into options"
            )
        if self.grid is not None and self.sequence is not None:
            raise ValueError("A question may carry a grid or a sequence, not both")
        cells: List[str] = []
        if self.grid is not None:
            cells = [cell for row in self.grid for cell in row]
        elif self.sequence is not None:
            cells = list(self.sequence)
        if cells.count(MISSING_MARKER) > 1:
            raise ValueError("At most one cell may hold the missing marker")
        return self

    @property
    def tier(self) -> str:
        """Three-tier bucket used in score breakdowns."""
        if self.difficulty <= 2:
            return "easy"
        if self.difficulty == 3:
            return "medium"
        return "hard"


# ── Full-mode report ───────────────────────────────────────────────
class CategoryResult(BaseModel):
    key: str
    label: str
    correct: int = Field(..., ge=0)
    total: int = Field(..., ge=0)
    percentage: int = Field(..., ge=0, le=100)


class TierTally(BaseModel):
    correct: int = 0
    total: int = 0


class DifficultyBreakdown(BaseModel):
    easy: TierTally = Field(default_factory=TierTally)
    medium: TierTally = Field(default_factory=TierTally)
    hard: TierTally = Field(default_factory=TierTally)

    def as_flat(self) -> List[int]:
        return [
            self.easy.correct,
            self.easy.total,
            self.medium.correct,
            self.medium.total,
            self.hard.correct,
            self.hard.total,
        ]


class ScoreReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    iq_score: int = Field(..., ge=55, le=145)
    percentile: int = Field(..., ge=0, le=100)
    classification: str
    classification_descriptor: str
    raw_score: int = Field(..., ge=0)
    total_questions: int = Field(..., ge=0)
    weighted_score: float
    max_weighted_score: float
    categories: List[CategoryResult]
    difficulty_breakdown: DifficultyBreakdown
    total_time_ms: int = Field(..., ge=0)
    avg_time_per_question_ms: int = Field(..., ge=0)
    fastest_question_ms: int = Field(..., ge=0)
    slowest_question_ms: int = Field(..., ge=0)


class SharedReport(BaseModel):
    """A report decoded from a permalink token; always read-only."""

    report: ScoreReport
    shared_at: Optional[int] = None
    verified: bool = False


# ── Practice-mode report ───────────────────────────────────────────
class PracticeResult(BaseModel):
    question: Question
    user_answer: int
    is_correct: bool


class PracticeReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    results: List[PracticeResult]
    correct_count: int = Field(..., ge=0)
    total_questions: int = Field(..., ge=0)
