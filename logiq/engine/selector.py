"""Build ordered question lists for full and practice sessions."""

from __future__ import annotations

import random
from typing import List, Optional, Sequence, TypeVar

from ..data.questions import CATEGORY_ORDER
from ..models.schemas import Question

PRACTICE_MAX_DIFFICULTY = 3

T = TypeVar("T")


def _default_rng() -> random.Random:
    return random.SystemRandom()


def shuffle_questions(items: Sequence[T], rng: Optional[random.Random] = None) -> List[T]:
    """Return a Fisher-Yates shuffled copy of *items*; the input is untouched."""
    rng = rng or _default_rng()
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def select_full_session(
    bank: Sequence[Question], rng: Optional[random.Random] = None
) -> List[Question]:
    """Every bank question, easy tiers first, shuffled within each tier."""
    rng = rng or _default_rng()
    by_difficulty: dict = {}
    for question in bank:
        by_difficulty.setdefault(question.difficulty, []).append(question)

    ordered: List[Question] = []
    for difficulty in sorted(by_difficulty):
        ordered.extend(shuffle_questions(by_difficulty[difficulty], rng))
    return ordered


def select_practice_session(
    bank: Sequence[Question], rng: Optional[random.Random] = None
) -> List[Question]:
    """One easy-to-medium question per category, in unpredictable order.

    A category with no eligible question is skipped, so the result can
    hold fewer than five questions.
    """
    rng = rng or _default_rng()
    picked: List[Question] = []
    for category in CATEGORY_ORDER:
        candidates = [
            q
            for q in bank
            if q.category == category and q.difficulty <= PRACTICE_MAX_DIFFICULTY
        ]
        if not candidates:
            continue
        picked.append(candidates[rng.randrange(len(candidates))])
    return shuffle_questions(picked, rng)
