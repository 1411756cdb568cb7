"""Scoring engine: IQ mapping, percentiles, breakdowns and timing."""

from __future__ import annotations

import random
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from logiq.data.questions import QUESTION_BANK
from logiq.engine.scoring import (
    build_practice_report,
    calculate_results,
    classify,
    normal_cdf,
    percentile_for,
    round_half_up,
)
from logiq.models.schemas import Category, Question

START = 1_700_000_000_000


def _correct(questions):
    return [q.correct_option_index for q in questions]


def _wrong(question: Question) -> int:
    return (question.correct_option_index + 1) % len(question.options)


def _score(answers, questions=QUESTION_BANK, times=None):
    times = times if times is not None else [1000] * len(questions)
    return calculate_results(questions, answers, START, START + sum(times), times)


def test_all_correct_hits_ceiling():
    report = _score(_correct(QUESTION_BANK))
    assert report.raw_score == 30
    assert report.iq_score == 145
    assert report.percentile == 100
    assert report.classification == "Exceptionally Gifted"
    assert report.classification_descriptor == "Top 0.1%"
    assert report.weighted_score == pytest.approx(48.8)
    assert report.max_weighted_score == pytest.approx(48.8)


def test_nothing_answered_hits_floor():
    report = _score([-1] * 30)
    assert report.raw_score == 0
    assert report.iq_score == 55
    assert report.percentile == 0
    assert report.classification == "Extremely Low"
    assert report.weighted_score == 0


def test_half_weighted_score_maps_to_mean():
    easy = [q for q in QUESTION_BANK if q.difficulty == 1][:2]
    report = _score([easy[0].correct_option_index, -1], questions=easy)
    assert report.iq_score == 100
    assert report.percentile == 50
    assert report.classification == "Average"


def test_weighting_favours_hard_questions():
    hard = next(q for q in QUESTION_BANK if q.difficulty == 5)
    easy = next(q for q in QUESTION_BANK if q.difficulty == 1)
    pair = [easy, hard]
    only_hard = _score([-1, hard.correct_option_index], questions=pair)
    only_easy = _score([easy.correct_option_index, -1], questions=pair)
    assert only_hard.raw_score == only_easy.raw_score == 1
    assert only_hard.iq_score > only_easy.iq_score


def test_scoring_is_deterministic():
    rng = random.Random(42)
    answers = [rng.randint(-1, 3) for _ in QUESTION_BANK]
    times = [rng.randint(0, 90_000) for _ in QUESTION_BANK]
    assert _score(answers, times=times) == _score(answers, times=times)


def test_more_correct_answers_never_lower_the_estimate():
    rng = random.Random(9)
    for _ in range(20):
        answers = [_wrong(q) for q in QUESTION_BANK]
        order = list(range(len(QUESTION_BANK)))
        rng.shuffle(order)
        previous = _score(answers).iq_score
        for idx in order:
            answers[idx] = QUESTION_BANK[idx].correct_option_index
            current = _score(answers).iq_score
            assert current >= previous
            previous = current
        assert previous == 145


def test_scores_stay_within_bounds():
    rng = random.Random(3)
    for _ in range(300):
        answers = [
            q.correct_option_index if rng.random() < rng.random() else -1
            for q in QUESTION_BANK
        ]
        report = _score(answers)
        assert 55 <= report.iq_score <= 145
        assert 0 <= report.percentile <= 100


def test_breakdowns_for_full_bank():
    report = _score(_correct(QUESTION_BANK))
    assert [c.key for c in report.categories] == [c.value for c in Category]
    assert all(c.correct == c.total == 6 and c.percentage == 100 for c in report.categories)
    assert report.categories[0].label == "Pattern Recognition"
    tiers = report.difficulty_breakdown
    assert (tiers.easy.total, tiers.medium.total, tiers.hard.total) == (14, 6, 10)
    assert tiers.as_flat() == [14, 14, 6, 6, 10, 10]


def test_category_percentage_is_rounded():
    logic = [q for q in QUESTION_BANK if q.category == Category.LOGICAL_DEDUCTION]
    answers = [q.correct_option_index for q in logic[:1]] + [-1] * 5
    report = _score(answers, questions=logic)
    assert report.categories[0].percentage == 17


def test_timing_statistics():
    qs = list(QUESTION_BANK[:3])
    report = calculate_results(qs, [-1, -1, -1], START, START + 9000, [1000, 3000, 2000])
    assert report.total_time_ms == 9000
    assert report.avg_time_per_question_ms == 2000
    assert report.fastest_question_ms == 1000
    assert report.slowest_question_ms == 3000


def test_empty_session_fails_loudly():
    with pytest.raises(ValueError):
        calculate_results([], [], START, START, [])


def test_mismatched_answers_fail_loudly():
    with pytest.raises(ValueError):
        calculate_results(QUESTION_BANK[:2], [0], START, START, [0, 0])


def test_normal_cdf_reference_points():
    assert normal_cdf(0) == pytest.approx(0.5, abs=1e-7)
    assert normal_cdf(1) == pytest.approx(0.841345, abs=1e-6)
    assert normal_cdf(-1) == pytest.approx(0.158655, abs=1e-6)
    assert normal_cdf(3) == pytest.approx(0.998650, abs=1e-6)


def test_percentile_reference_vectors():
    assert percentile_for(100) == 50
    assert percentile_for(115) == 84
    assert percentile_for(130) == 98
    assert percentile_for(85) == 16
    assert percentile_for(55) == 0


@pytest.mark.parametrize(
    "iq,label",
    [
        (145, "Exceptionally Gifted"),
        (144, "Highly Gifted"),
        (130, "Highly Gifted"),
        (120, "Superior"),
        (110, "Above Average"),
        (109, "Average"),
        (90, "Average"),
        (89, "Below Average"),
        (70, "Borderline"),
        (69, "Extremely Low"),
        (55, "Extremely Low"),
    ],
)
def test_classification_table(iq, label):
    assert classify(iq)[0] == label


def test_round_half_up_differs_from_bankers_rounding():
    assert round_half_up(2.5) == 3
    assert round_half_up(0.5) == 1
    assert round_half_up(-0.5) == 0
    assert round_half_up(1.49) == 1


def test_practice_report_has_no_iq():
    qs = list(QUESTION_BANK[:5])
    answers = [qs[0].correct_option_index, qs[1].correct_option_index, -1, _wrong(qs[3]), -1]
    report = build_practice_report(qs, answers)
    assert report.correct_count == 2
    assert report.total_questions == 5
    assert [r.is_correct for r in report.results] == [True, True, False, False, False]
    assert not hasattr(report, "iq_score")
