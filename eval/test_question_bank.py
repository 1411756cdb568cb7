"""Question bank catalog and Question schema validation."""

from __future__ import annotations

import sys
from collections import Counter
from pathlib import Path

import pytest
from pydantic import ValidationError

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from logiq.data.questions import (
    CATEGORY_LABELS,
    CATEGORY_ORDER,
    QUESTION_BANK,
    get_question,
    questions_by_category,
    questions_by_difficulty,
)
from logiq.models.schemas import MISSING_MARKER, Category, Question


def test_bank_has_thirty_questions_six_per_category():
    assert len(QUESTION_BANK) == 30
    counts = Counter(q.category for q in QUESTION_BANK)
    assert all(counts[c] == 6 for c in CATEGORY_ORDER)
    assert len({q.id for q in QUESTION_BANK}) == 30


def test_bank_answer_keys_and_markers_are_valid():
    for q in QUESTION_BANK:
        assert 0 <= q.correct_option_index < len(q.options)
        assert 1 <= q.difficulty <= 5
        assert not (q.grid and q.sequence)
        cells = [c for row in q.grid for c in row] if q.grid else list(q.sequence or [])
        assert cells.count(MISSING_MARKER) <= 1


def test_difficulty_distribution_matches_catalog():
    sizes = {d: len(qs) for d, qs in questions_by_difficulty().items()}
    assert sizes == {1: 5, 2: 9, 3: 6, 4: 5, 5: 5}


def test_lookup_helpers():
    assert get_question(12).sequence[-1] == "?"
    assert set(questions_by_category()) == set(CATEGORY_ORDER)
    assert set(CATEGORY_LABELS) == {c.value for c in Category}
    with pytest.raises(KeyError):
        get_question(999)


def _question(**overrides) -> dict:
    base = dict(
        id=99,
        category=Category.ANALOGIES,
        difficulty=2,
        prompt="Cat is to kitten as dog is to ___?",
        options=["Puppy", "Cub", "Calf"],
        correct_option_index=0,
    )
    base.update(overrides)
    return base


def test_question_rejects_out_of_range_answer_key():
    with pytest.raises(ValidationError):
        Question(**_question(correct_option_index=3))


def test_question_rejects_grid_and_sequence_together():
    with pytest.raises(ValidationError):
        Question(**_question(grid=[["a", "?"]], sequence=["1", "2"]))


def test_question_rejects_two_missing_cells():
    with pytest.raises(ValidationError):
        Question(**_question(sequence=["1", "?", "?"]))


def test_question_rejects_bad_difficulty():
    with pytest.raises(ValidationError):
        Question(**_question(difficulty=6))


def test_question_is_immutable():
    q = QUESTION_BANK[0]
    with pytest.raises(ValidationError):
        q.difficulty = 5


def test_tier_buckets():
    tiers = {q.difficulty: q.tier for q in QUESTION_BANK}
    assert tiers == {1: "easy", 2: "easy", 3: "medium", 4: "hard", 5: "hard"}
