"""LogIQ scoring engine.

Maps a difficulty-weighted raw score onto a normal distribution
(mean 100, SD 15) to produce an IQ estimate, a percentile and a
classification, plus per-category, per-tier and timing breakdowns.
Scores are rounded the way existing shared permalinks were produced
(half-up), so re-scoring an old session gives the same numbers.
"""

from __future__ import annotations

import math
from typing import Dict, List, Sequence, Tuple

from ..data.questions import CATEGORY_LABELS, CATEGORY_ORDER
from ..models.schemas import (
    CategoryResult,
    DifficultyBreakdown,
    PracticeReport,
    PracticeResult,
    Question,
    ScoreReport,
)

IQ_MEAN = 100
IQ_SD = 15
IQ_FLOOR = 55
IQ_CEILING = 145

DIFFICULTY_WEIGHTS: Dict[int, float] = {
    1: 1.0,
    2: 1.3,
    3: 1.6,
    4: 2.0,
    5: 2.5,
}

# (minimum IQ, label, descriptor), highest first.
IQ_CLASSIFICATIONS: Tuple[Tuple[int, str, str], ...] = (
    (145, "Exceptionally Gifted", "Top 0.1%"),
    (130, "Highly Gifted", "Top 2%"),
    (120, "Superior", "Top 9%"),
    (110, "Above Average", "Top 25%"),
    (90, "Average", "Middle 50%"),
    (80, "Below Average", "Bottom 25%"),
    (70, "Borderline", "Bottom 9%"),
    (0, "Extremely Low", "Bottom 2%"),
)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def normal_cdf(z: float) -> float:
    """Standard normal CDF, Abramowitz & Stegun formula 7.1.26."""
    a1 = 0.254829592
    a2 = -0.284496736
    a3 = 1.421413741
    a4 = -1.453152027
    a5 = 1.061405429
    p = 0.3275911

    sign = -1 if z < 0 else 1
    x = abs(z) / math.sqrt(2)
    t = 1.0 / (1.0 + p * x)
    y = 1.0 - (((((a5 * t + a4) * t) + a3) * t + a2) * t + a1) * t * math.exp(-x * x)
    return 0.5 * (1.0 + sign * y)


def classify(iq_score: int) -> Tuple[str, str]:
    """Return (label, descriptor) for a clamped IQ score."""
    for minimum, label, descriptor in IQ_CLASSIFICATIONS:
        if iq_score >= minimum:
            return label, descriptor
    _, label, descriptor = IQ_CLASSIFICATIONS[-1]
    return label, descriptor


def estimate_iq(weighted_percentage: float) -> int:
    # 0% -> z=-3, 50% -> z=0, 100% -> z=+3
    z_score = (weighted_percentage - 0.5) * 6
    iq_raw = round_half_up(IQ_MEAN + z_score * IQ_SD)
    return max(IQ_FLOOR, min(IQ_CEILING, iq_raw))


def percentile_for(iq_score: int) -> int:
    return round_half_up(normal_cdf((iq_score - IQ_MEAN) / IQ_SD) * 100)


def _check_parallel(questions: Sequence[Question], answers: Sequence[int]) -> None:
    if not questions:
        raise ValueError("Cannot score an empty question set.")
    if len(answers) != len(questions):
        raise ValueError(
            f"Expected {len(questions)} answers, got {len(answers)}."
        )


def calculate_results(
    questions: Sequence[Question],
    answers: Sequence[int],
    start_time: int,
    end_time: int,
    question_times: Sequence[int],
) -> ScoreReport:
    """Score a finished full-mode session.

    Args:
        questions: Questions in the order they were presented.
        answers: Chosen option index per question, -1 when unanswered.
        start_time: Session start, ms since epoch.
        end_time: Session end, ms since epoch.
        question_times: Milliseconds spent on each question.

    Raises:
        ValueError: On an empty question set or mismatched answer count.
    """
    _check_parallel(questions, answers)

    correct_count = 0
    weighted_score = 0.0
    max_weighted_score = 0.0
    category_scores: Dict[str, List[int]] = {}
    breakdown = DifficultyBreakdown()

    for question, answer in zip(questions, answers):
        is_correct = answer == question.correct_option_index
        weight = DIFFICULTY_WEIGHTS.get(question.difficulty, 1.0)

        max_weighted_score += weight
        if is_correct:
            correct_count += 1
            weighted_score += weight

        tally = category_scores.setdefault(question.category.value, [0, 0])
        tally[1] += 1
        tier = getattr(breakdown, question.tier)
        tier.total += 1
        if is_correct:
            tally[0] += 1
            tier.correct += 1

    iq_score = estimate_iq(weighted_score / max_weighted_score)
    percentile = percentile_for(iq_score)
    label, descriptor = classify(iq_score)

    known_order = [c.value for c in CATEGORY_ORDER]
    category_keys = sorted(
        category_scores,
        key=lambda k: known_order.index(k) if k in known_order else len(known_order),
    )
    categories = [
        CategoryResult(
            key=key,
            label=CATEGORY_LABELS.get(key, key),
            correct=category_scores[key][0],
            total=category_scores[key][1],
            percentage=round_half_up(category_scores[key][0] / category_scores[key][1] * 100),
        )
        for key in category_keys
    ]

    times = list(question_times)
    avg_time = sum(times) / len(times) if times else 0

    return ScoreReport(
        iq_score=iq_score,
        percentile=percentile,
        classification=label,
        classification_descriptor=descriptor,
        raw_score=correct_count,
        total_questions=len(questions),
        weighted_score=round_half_up(weighted_score * 10) / 10,
        max_weighted_score=round_half_up(max_weighted_score * 10) / 10,
        categories=categories,
        difficulty_breakdown=breakdown,
        total_time_ms=max(0, end_time - start_time),
        avg_time_per_question_ms=round_half_up(avg_time),
        fastest_question_ms=round_half_up(min(times)) if times else 0,
        slowest_question_ms=round_half_up(max(times)) if times else 0,
    )


def build_practice_report(
    questions: Sequence[Question], answers: Sequence[int]
) -> PracticeReport:
    """Plain correct/incorrect tally; practice sessions are never IQ-scored."""
    _check_parallel(questions, answers)
    results = [
        PracticeResult(
            question=question,
            user_answer=answer,
            is_correct=answer == question.correct_option_index,
        )
        for question, answer in zip(questions, answers)
    ]
    return PracticeReport(
        results=results,
        correct_count=sum(1 for r in results if r.is_correct),
        total_questions=len(questions),
    )
