"""
Score Calculator
================
Deterministic scores derived from self-reported data:

  * Daily wellness score (1-10, one decimal) from feeling, sleep and
    inverted stress with 0.4 / 0.3 / 0.3 weights.
  * Stress score (0-10 integer) from the 8-question instrument.  Every
    answer is normalised to [0, 1] (sliders over 1-10, categorical over
    1-5), weighted, averaged over the questions actually answered and
    scaled to 0-10.
"""

from __future__ import annotations

import math
from typing import Any, Dict, Mapping

from constants import (
    FEELING_WEIGHT,
    METRIC_MAX,
    SLEEP_WEIGHT,
    SLIDER_QUESTIONS,
    STRESS_LEVEL_CEILINGS,
    STRESS_LEVELS,
    STRESS_WEIGHT,
    STRESS_WEIGHTS,
)


def round_half_up(value: float, digits: int = 0) -> float:
    """Round with halves going up, unlike Python's banker's ``round``."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


# ─── Daily wellness score ────────────────────────────────────

def calculate_daily_score(feeling_scale: float, sleep_quality: float, stress_level: float) -> float:
    inverted_stress = (METRIC_MAX + 1) - stress_level
    score = (
        feeling_scale * FEELING_WEIGHT
        + sleep_quality * SLEEP_WEIGHT
        + inverted_stress * STRESS_WEIGHT
    )
    return round_half_up(score, 1)


def score_breakdown(feeling_scale: Any, sleep_quality: Any, stress_level: Any) -> Dict[str, str]:
    return {
        "feelingScale": f"{feeling_scale}/10 ({FEELING_WEIGHT:.0%} weight)",
        "sleepQuality": f"{sleep_quality}/10 ({SLEEP_WEIGHT:.0%} weight)",
        "stressLevel": f"{stress_level}/10 ({STRESS_WEIGHT:.0%} weight, inverted)",
    }


# ─── Stress score ────────────────────────────────────────────

def normalize_answer(question_id: int, value: float) -> float:
    """Map a raw answer onto [0, 1] where 1 is the most stressed answer."""
    span = 9.0 if question_id in SLIDER_QUESTIONS else 4.0
    return max(0.0, min(1.0, (float(value) - 1.0) / span))


def calculate_stress_score(answers: Mapping[int, float]) -> int:
    total_score = 0.0
    total_weight = 0.0
    for question_id, value in answers.items():
        weight = STRESS_WEIGHTS.get(int(question_id), 0.0)
        if weight == 0:
            continue
        total_score += normalize_answer(int(question_id), value) * weight
        total_weight += weight

    if total_weight == 0:
        return 0
    avg_normalized = total_score / total_weight
    return int(round_half_up(avg_normalized * 10))


def stress_level_label(score: float) -> str:
    for ceiling, label in zip(STRESS_LEVEL_CEILINGS, STRESS_LEVELS):
        if score <= ceiling:
            return label
    return STRESS_LEVELS[-1]
