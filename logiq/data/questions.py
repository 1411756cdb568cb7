"""Fixed LogIQ question bank: 30 questions, 6 per cognitive domain.

Difficulty runs 1 (easy) to 5 (hard) within each category. Grid and
sequence cells use plain glyphs so any text surface can render them;
``?`` marks the cell the test-taker must fill in.
"""

from __future__ import annotations

from collections import Counter
from typing import Dict, List, Sequence, Tuple

from ..models.schemas import Category, Question

BANK_SIZE = 30
QUESTIONS_PER_CATEGORY = 6

CATEGORY_ORDER: Tuple[Category, ...] = (
    Category.PATTERN_RECOGNITION,
    Category.SEQUENCE_COMPLETION,
    Category.LOGICAL_DEDUCTION,
    Category.SPATIAL_REASONING,
    Category.ANALOGIES,
)

CATEGORY_LABELS: Dict[str, str] = {
    Category.PATTERN_RECOGNITION.value: "Pattern Recognition",
    Category.SEQUENCE_COMPLETION.value: "Sequence Completion",
    Category.LOGICAL_DEDUCTION.value: "Logical Deduction",
    Category.SPATIAL_REASONING.value: "Spatial Reasoning",
    Category.ANALOGIES.value: "Analogies",
}


_RAW_BANK: List[dict] = [
    # ── Pattern recognition ─────────────────────────────────────────
    dict(
        id=1, category=Category.PATTERN_RECOGNITION, difficulty=1,
        prompt="Which shape completes the pattern?",
        grid=[["●", "▲", "■"], ["▲", "■", "●"], ["■", "●", "?"]],
        options=["■", "▲", "●", "◆"], correct_option_index=2,
    ),
    dict(
        id=2, category=Category.PATTERN_RECOGNITION, difficulty=2,
        prompt="Which shape completes the 3×3 grid?",
        grid=[["◆", "◆", "●"], ["◆", "●", "●"], ["●", "●", "?"]],
        options=["◆", "●", "▲", "■"], correct_option_index=1,
    ),
    dict(
        id=3, category=Category.PATTERN_RECOGNITION, difficulty=2,
        prompt='Each row and column contains unique shapes. What replaces the "?"',
        grid=[
            ["▲", "■", "●", "◆"],
            ["●", "◆", "▲", "■"],
            ["◆", "●", "■", "▲"],
            ["■", "▲", "?", "●"],
        ],
        options=["■", "◆", "▲", "●"], correct_option_index=1,
    ),
    dict(
        id=4, category=Category.PATTERN_RECOGNITION, difficulty=3,
        prompt="The pattern follows a rule. What fills the missing cell?",
        grid=[["●●", "●", "●●●"], ["●●●", "●●", "●"], ["●", "●●●", "?"]],
        options=["●", "●●", "●●●", "●●●●"], correct_option_index=1,
    ),
    dict(
        id=5, category=Category.PATTERN_RECOGNITION, difficulty=4,
        prompt="Each row transforms by a rule. What completes the final row?",
        grid=[["▲", "▲▲", "▲▲▲"], ["■", "■■", "■■■"], ["●", "●●", "?"]],
        options=["●", "●●", "●●●", "●●●●"], correct_option_index=2,
    ),
    dict(
        id=6, category=Category.PATTERN_RECOGNITION, difficulty=5,
        prompt='The grid follows two simultaneous rules (row + column). What goes in "?"',
        grid=[["▲●", "▲■", "▲◆"], ["■●", "■■", "■◆"], ["◆●", "◆■", "?"]],
        options=["◆▲", "◆◆", "●◆", "■●"], correct_option_index=1,
    ),
    # ── Sequence completion ─────────────────────────────────────────
    dict(
        id=7, category=Category.SEQUENCE_COMPLETION, difficulty=1,
        prompt="What number comes next in the sequence?",
        sequence=["2", "4", "6", "8", "?"],
        options=["9", "10", "12", "16"], correct_option_index=1,
    ),
    dict(
        id=8, category=Category.SEQUENCE_COMPLETION, difficulty=2,
        prompt="What comes next?",
        sequence=["1", "1", "2", "3", "5", "8", "?"],
        options=["11", "12", "13", "15"], correct_option_index=2,
    ),
    dict(
        id=9, category=Category.SEQUENCE_COMPLETION, difficulty=2,
        prompt="What letter comes next?",
        sequence=["A", "C", "E", "G", "?"],
        options=["H", "I", "J", "K"], correct_option_index=1,
    ),
    dict(
        id=10, category=Category.SEQUENCE_COMPLETION, difficulty=3,
        prompt="What comes next in this sequence?",
        sequence=["3", "6", "12", "24", "?"],
        options=["36", "48", "30", "42"], correct_option_index=1,
    ),
    dict(
        id=11, category=Category.SEQUENCE_COMPLETION, difficulty=4,
        prompt="Find the next term.",
        sequence=["1", "4", "9", "16", "25", "?"],
        options=["30", "36", "49", "32"], correct_option_index=1,
    ),
    dict(
        id=12, category=Category.SEQUENCE_COMPLETION, difficulty=5,
        prompt="What number continues this pattern?",
        sequence=["2", "3", "5", "7", "11", "13", "?"],
        options=["15", "17", "19", "14"], correct_option_index=1,
    ),
    # ── Logical deduction ───────────────────────────────────────────
    dict(
        id=13, category=Category.LOGICAL_DEDUCTION, difficulty=1,
        prompt="All roses are flowers. Some flowers fade quickly. Which statement MUST be true?",
        options=[
            "All roses fade quickly",
            "Some roses are flowers",
            "No roses fade quickly",
            "Flowers are roses",
        ],
        correct_option_index=1,
    ),
    dict(
        id=14, category=Category.LOGICAL_DEDUCTION, difficulty=2,
        prompt="If it rains, the ground is wet. The ground is not wet. What can you conclude?",
        options=[
            "It rained",
            "It did not rain",
            "The ground is dry only inside",
            "Nothing can be concluded",
        ],
        correct_option_index=1,
    ),
    dict(
        id=15, category=Category.LOGICAL_DEDUCTION, difficulty=3,
        prompt="A is taller than B. C is shorter than B. D is taller than A. Who is the shortest?",
        options=["A", "B", "C", "D"], correct_option_index=2,
    ),
    dict(
        id=16, category=Category.LOGICAL_DEDUCTION, difficulty=3,
        prompt="All engineers are problem-solvers. No poets are engineers. Which MUST be true?",
        options=[
            "No poets are problem-solvers",
            "Some problem-solvers are not poets",
            "All problem-solvers are engineers",
            "Poets cannot solve problems",
        ],
        correct_option_index=1,
    ),
    dict(
        id=17, category=Category.LOGICAL_DEDUCTION, difficulty=4,
        prompt=(
            "In a row of 5 houses, the red house is immediately left of the green house. "
            "The blue house is at one end. The yellow house is next to the blue house. "
            "Where is the white house?"
        ),
        options=["Position 1", "Position 3", "Position 5", "Cannot be determined"],
        correct_option_index=1,
    ),
    dict(
        id=18, category=Category.LOGICAL_DEDUCTION, difficulty=5,
        prompt="If no X are Y, and all Y are Z, which MUST be true?",
        options=["No X are Z", "Some Z are not X", "All Z are Y", "All X are Z"],
        correct_option_index=1,
    ),
    # ── Spatial reasoning ───────────────────────────────────────────
    dict(
        id=19, category=Category.SPATIAL_REASONING, difficulty=1,
        prompt='If you rotate "▶" 90° clockwise, what do you get?',
        options=["▲", "▼", "◀", "▶"], correct_option_index=1,
    ),
    dict(
        id=20, category=Category.SPATIAL_REASONING, difficulty=2,
        prompt='Which is the mirror image of "bq" reflected horizontally?',
        options=["qb", "dp", "bd", "pq"], correct_option_index=1,
    ),
    dict(
        id=21, category=Category.SPATIAL_REASONING, difficulty=2,
        prompt=(
            "If you fold a square piece of paper in half and punch a hole in the "
            "center of the fold, how many holes appear when unfolded?"
        ),
        options=["1", "2", "3", "4"], correct_option_index=1,
    ),
    dict(
        id=22, category=Category.SPATIAL_REASONING, difficulty=3,
        prompt=(
            "A cube has a different symbol on each face: ●, ■, ▲, ◆, ★, ○. If ● is on "
            "top and ■ faces you, ▲ is to the right. What is on the bottom?"
        ),
        options=["○", "◆", "★", "▲"], correct_option_index=0,
    ),
    dict(
        id=23, category=Category.SPATIAL_REASONING, difficulty=4,
        prompt=(
            "How many cubes are in this 3D staircase? Row 1: 1 cube. "
            "Row 2: 2 cubes stacked + 1. Row 3: 3 stacked + 2 stacked + 1."
        ),
        options=["6", "9", "10", "12"], correct_option_index=2,
    ),
    dict(
        id=24, category=Category.SPATIAL_REASONING, difficulty=5,
        prompt=(
            "A shape is rotated 270° counterclockwise, then reflected over the "
            "vertical axis. This is equivalent to:"
        ),
        options=[
            "Rotating 90° clockwise then reflecting vertically",
            "Reflecting horizontally only",
            "Rotating 90° clockwise then reflecting horizontally",
            "Rotating 90° counterclockwise only",
        ],
        correct_option_index=2,
    ),
    # ── Analogies ───────────────────────────────────────────────────
    dict(
        id=25, category=Category.ANALOGIES, difficulty=1,
        prompt="Hand is to Glove as Foot is to ___?",
        options=["Shoe", "Leg", "Toe", "Ankle"], correct_option_index=0,
    ),
    dict(
        id=26, category=Category.ANALOGIES, difficulty=2,
        prompt="Author is to Book as Composer is to ___?",
        options=["Music", "Symphony", "Instrument", "Orchestra"], correct_option_index=1,
    ),
    dict(
        id=27, category=Category.ANALOGIES, difficulty=2,
        prompt="▲ is to △ as ■ is to ___?",
        options=["□", "◆", "○", "●"], correct_option_index=0,
    ),
    dict(
        id=28, category=Category.ANALOGIES, difficulty=3,
        prompt="Telescope is to Stars as Microscope is to ___?",
        options=["Laboratory", "Cells", "Lens", "Science"], correct_option_index=1,
    ),
    dict(
        id=29, category=Category.ANALOGIES, difficulty=4,
        prompt="Velocity is to Speed as Displacement is to ___?",
        options=["Distance", "Acceleration", "Direction", "Position"], correct_option_index=0,
    ),
    dict(
        id=30, category=Category.ANALOGIES, difficulty=5,
        prompt="Entropy is to Order as Inflation is to ___?",
        options=["Purchasing Power", "Money Supply", "Interest Rate", "Economic Growth"],
        correct_option_index=0,
    ),
]


def _build_question_bank(raw: Sequence[dict]) -> Tuple[Question, ...]:
    bank = tuple(Question(**entry) for entry in raw)

    if len(bank) != BANK_SIZE:
        raise RuntimeError(f"Question bank has {len(bank)} entries, expected {BANK_SIZE}.")
    if len({q.id for q in bank}) != len(bank):
        raise RuntimeError("Question bank ids must be unique.")
    per_category = Counter(q.category for q in bank)
    for category in CATEGORY_ORDER:
        if per_category[category] != QUESTIONS_PER_CATEGORY:
            raise RuntimeError(
                f"Category {category.value} has {per_category[category]} questions, "
                f"expected {QUESTIONS_PER_CATEGORY}."
            )
    return bank


QUESTION_BANK: Tuple[Question, ...] = _build_question_bank(_RAW_BANK)
_BY_ID: Dict[int, Question] = {q.id: q for q in QUESTION_BANK}


def get_question(question_id: int) -> Question:
    """Look up a bank question by id; raises ``KeyError`` when unknown."""
    return _BY_ID[question_id]


def questions_by_category(
    bank: Sequence[Question] = QUESTION_BANK,
) -> Dict[Category, List[Question]]:
    grouped: Dict[Category, List[Question]] = {c: [] for c in CATEGORY_ORDER}
    for question in bank:
        grouped.setdefault(question.category, []).append(question)
    return grouped


def questions_by_difficulty(
    bank: Sequence[Question] = QUESTION_BANK,
) -> Dict[int, List[Question]]:
    grouped: Dict[int, List[Question]] = {}
    for question in bank:
        grouped.setdefault(question.difficulty, []).append(question)
    return dict(sorted(grouped.items()))
