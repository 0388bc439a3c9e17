"""
Correlation Engine
==================
Pairwise Pearson correlations between the self-reported check-in metrics.

Pairs:
  sleepVsFeeling  : sleep quality   vs feeling scale
  stressVsFeeling : stress level    vs feeling scale
  sleepVsStress   : sleep quality   vs stress level

Rules:
  • At least MIN_CORRELATION_RECORDS (5) check-ins are required, otherwise an
    "insufficient data" payload is returned with the true count.
  • r uses the raw-sums form  (nΣxy − ΣxΣy) / √((nΣx² − (Σx)²)(nΣy² − (Σy)²)).
  • A zero denominator (a constant series) yields r = 0, never NaN.
  • |r| > 0.7 strong, > 0.4 moderate, > 0.2 weak, otherwise very weak.
  • Two-sided p-values come from scipy and are None for degenerate pairs.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, Optional, Sequence, Tuple

import numpy as np
from scipy import stats as sp_stats

from constants import MIN_CORRELATION_RECORDS
from models import CheckIn

log = logging.getLogger("correlation_engine")

# (key, x attribute, y attribute, x label, y label)
CORRELATION_PAIRS = [
    ("sleepVsFeeling", "sleep_quality", "feeling_scale", "sleep quality", "feeling scale"),
    ("stressVsFeeling", "stress_level", "feeling_scale", "stress level", "feeling scale"),
    ("sleepVsStress", "sleep_quality", "stress_level", "sleep quality", "stress level"),
]

INSUFFICIENT_MESSAGE = "Need more data points to calculate meaningful correlations"


def _denominator(x: np.ndarray, y: np.ndarray) -> float:
    n = len(x)
    return (n * np.sum(x * x) - np.sum(x) ** 2) * (n * np.sum(y * y) - np.sum(y) ** 2)


def pearson(xs: Sequence[float], ys: Sequence[float]) -> float:
    """Pearson r over paired samples; 0.0 when either series has no variance."""
    x = np.asarray(xs, dtype=np.float64)
    y = np.asarray(ys, dtype=np.float64)
    n = len(x)
    if n == 0 or n != len(y):
        return 0.0
    denominator = _denominator(x, y)
    if denominator <= 0:
        return 0.0
    numerator = n * np.sum(x * y) - np.sum(x) * np.sum(y)
    r = float(numerator / math.sqrt(denominator))
    # float noise can push a perfect fit just past ±1
    return max(-1.0, min(1.0, r))


def p_value(xs: Sequence[float], ys: Sequence[float]) -> Optional[float]:
    x = np.asarray(xs, dtype=np.float64)
    y = np.asarray(ys, dtype=np.float64)
    if len(x) < 3 or _denominator(x, y) <= 0:
        return None
    result = sp_stats.pearsonr(x, y)
    value = float(result[1])
    return None if math.isnan(value) else value


def correlation_strength(r: float) -> str:
    magnitude = abs(r)
    if magnitude > 0.7:
        return "strong"
    if magnitude > 0.4:
        return "moderate"
    if magnitude > 0.2:
        return "weak"
    return "very weak"


def interpret_correlation(r: float, factor1: str, factor2: str) -> str:
    direction = "positive" if r > 0 else "negative"
    return f"{correlation_strength(r)} {direction} correlation between {factor1} and {factor2} ({r:.2f})"


class CorrelationEngine:
    """Computes the three metric-pair correlations for a set of check-ins."""

    def __init__(self, min_records: int = MIN_CORRELATION_RECORDS):
        self.min_records = min_records

    def compute(self, records: Sequence[CheckIn]) -> Dict[str, Any]:
        if len(records) < self.min_records:
            return {
                "message": INSUFFICIENT_MESSAGE,
                "minimumRequired": self.min_records,
                "currentCount": len(records),
            }

        correlations: Dict[str, float] = {}
        interpretation: Dict[str, str] = {}
        p_values: Dict[str, Optional[float]] = {}
        for key, x_attr, y_attr, x_label, y_label in CORRELATION_PAIRS:
            xs, ys = self._series(records, x_attr, y_attr)
            r = pearson(xs, ys)
            correlations[key] = r
            interpretation[key] = interpret_correlation(r, x_label, y_label)
            p_values[key] = p_value(xs, ys)

        log.info("Correlations computed over %d check-ins", len(records))
        return {
            "correlations": correlations,
            "interpretation": interpretation,
            "pValues": p_values,
            "sampleSize": len(records),
        }

    @staticmethod
    def _series(records: Sequence[CheckIn], x_attr: str, y_attr: str) -> Tuple[list, list]:
        return (
            [float(getattr(r, x_attr)) for r in records],
            [float(getattr(r, y_attr)) for r in records],
        )
