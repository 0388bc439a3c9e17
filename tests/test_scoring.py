"""Tests for the daily wellness score and the stress instrument score."""

import itertools

import pytest

from scoring import (
    calculate_daily_score,
    calculate_stress_score,
    normalize_answer,
    round_half_up,
    score_breakdown,
    stress_level_label,
)


# ─── round_half_up ───────────────────────────────────────────


class TestRoundHalfUp:

    def test_half_goes_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(4.25, 1) == 4.3

    def test_differs_from_bankers_round(self):
        assert round(0.5) == 0
        assert round_half_up(0.5) == 1

    def test_negative_half_toward_positive(self):
        assert round_half_up(-0.25, 1) == -0.2


# ─── Daily wellness score ────────────────────────────────────


class TestDailyScore:

    def test_worked_example(self):
        # 8*0.4 + 6*0.3 + (11-3)*0.3
        assert calculate_daily_score(8, 6, 3) == 7.4

    def test_extremes(self):
        assert calculate_daily_score(1, 1, 10) == 1.0
        assert calculate_daily_score(10, 10, 1) == 10.0

    def test_bounds_over_full_grid(self):
        for f, s, st in itertools.product(range(1, 11), repeat=3):
            score = calculate_daily_score(f, s, st)
            assert 1.0 <= score <= 10.0
            assert score == round(score, 1)

    def test_higher_stress_lowers_score(self):
        assert calculate_daily_score(7, 7, 9) < calculate_daily_score(7, 7, 2)

    def test_breakdown_labels(self):
        out = score_breakdown(8, 6, 3)
        assert out["feelingScale"] == "8/10 (40% weight)"
        assert out["sleepQuality"] == "6/10 (30% weight)"
        assert out["stressLevel"] == "3/10 (30% weight, inverted)"


# ─── Stress score ────────────────────────────────────────────


ALL_MIN = {1: 1, 2: 1, 3: 1, 4: 1, 5: 1, 6: 1, 7: 1, 8: 1}
ALL_MAX = {1: 5, 2: 5, 3: 10, 4: 5, 5: 5, 6: 5, 7: 10, 8: 5}


class TestStressScore:

    def test_all_minimum_is_zero(self):
        assert calculate_stress_score(ALL_MIN) == 0

    def test_all_maximum_is_ten(self):
        assert calculate_stress_score(ALL_MAX) == 10

    def test_worked_example_mid_answers(self):
        answers = {1: 3, 2: 3, 3: 5, 4: 3, 5: 3, 6: 3, 7: 5, 8: 3}
        score = calculate_stress_score(answers)
        assert score == 5
        assert stress_level_label(score) == "Moderate"

    def test_partial_answers_average_over_answered_weights(self):
        # only question 4 answered at max
        assert calculate_stress_score({4: 5}) == 10

    def test_unknown_questions_ignored(self):
        assert calculate_stress_score({9: 5}) == 0
        assert calculate_stress_score({1: 5, 42: 1}) == 10

    def test_deterministic(self):
        answers = {1: 2, 3: 8.5, 6: 4}
        assert calculate_stress_score(answers) == calculate_stress_score(dict(answers))

    def test_slider_vs_categorical_normalization(self):
        assert normalize_answer(3, 10) == 1.0
        assert normalize_answer(1, 5) == 1.0
        assert normalize_answer(1, 3) == 0.5
        assert normalize_answer(7, 5) == pytest.approx(4 / 9)

    def test_normalization_clamped(self):
        assert normalize_answer(1, 9) == 1.0
        assert normalize_answer(3, 0) == 0.0


@pytest.mark.parametrize(
    "score,label",
    [(0, "Very Low"), (1, "Very Low"), (2, "Low"), (3, "Low"), (4, "Moderate"),
     (6, "Moderate"), (7, "High"), (8, "High"), (9, "Very High"), (10, "Very High")],
)
def test_stress_level_label(score, label):
    assert stress_level_label(score) == label


def test_stress_levels_follow_constants():
    from constants import STRESS_LEVEL_CEILINGS, STRESS_LEVELS

    labels = [stress_level_label(score) for score in range(11)]
    assert set(labels) == set(STRESS_LEVELS)
    for ceiling, label in zip(STRESS_LEVEL_CEILINGS, STRESS_LEVELS):
        assert stress_level_label(ceiling) == label
    assert stress_level_label(10) == STRESS_LEVELS[-1]
