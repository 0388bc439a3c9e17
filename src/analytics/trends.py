"""Trend helpers over check-in windows: recent deltas, weekly analytics, pattern notes."""

from __future__ import annotations

import math
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from constants import TREND_DECLINING, TREND_IMPROVING, TREND_STABLE, TREND_THRESHOLD
from models import CheckIn, StressAssessment
from scoring import round_half_up

NOT_ENOUGH_DATA = "Not enough data to show trends yet. Keep tracking for a few more days!"

METRIC_COLUMNS = {
    "wellness_score": "WellnessScore",
    "feeling_scale": "FeelingScale",
    "sleep_quality": "SleepQuality",
    "stress_level": "StressLevel",
}


def _frame(records: Sequence[CheckIn]) -> pd.DataFrame:
    return pd.DataFrame(
        {
            "mood": [r.mood for r in records],
            "wellness_score": [float(r.wellness_score) for r in records],
            "feeling_scale": [float(r.feeling_scale) for r in records],
            "sleep_quality": [float(r.sleep_quality) for r in records],
            "stress_level": [float(r.stress_level) for r in records],
        }
    )


def _day_ref(record: CheckIn) -> Dict[str, Any]:
    return {
        "checkinId": record.id,
        "date": record.date.isoformat(),
        "wellnessScore": float(record.wellness_score),
        "mood": record.mood,
    }


# ─── Recent trend (right after a check-in) ───────────────────

def recent_trend(records: Sequence[CheckIn]) -> Dict[str, Any]:
    """Deltas between the two newest check-ins; ``records`` is newest first."""
    if len(records) < 2:
        return {"message": NOT_ENOUGH_DATA, "dataPoints": len(records)}

    latest, previous = records[0], records[1]
    average = sum(r.wellness_score for r in records) / len(records)
    return {
        "scoreChange": round_half_up(latest.wellness_score - previous.wellness_score, 1),
        "feelingChange": latest.feeling_scale - previous.feeling_scale,
        "sleepChange": latest.sleep_quality - previous.sleep_quality,
        "stressChange": latest.stress_level - previous.stress_level,
        "averageScore": round_half_up(average, 1),
        "dataPoints": len(records),
    }


# ─── Weekly analytics ────────────────────────────────────────

def classify_trend(scores: Sequence[float]) -> str:
    """Compare the first ceil(n/2) scores against the rest."""
    split = math.ceil(len(scores) / 2)
    first, second = list(scores[:split]), list(scores[split:])
    if not first or not second:
        return TREND_STABLE
    first_avg = sum(first) / len(first)
    second_avg = sum(second) / len(second)
    if second_avg > first_avg + TREND_THRESHOLD:
        return TREND_IMPROVING
    if second_avg < first_avg - TREND_THRESHOLD:
        return TREND_DECLINING
    return TREND_STABLE


def key_patterns(avg_stress: float, avg_sleep: float, avg_wellness: float) -> List[str]:
    patterns = []
    if avg_stress > 7:
        patterns.append("High stress levels throughout the week")
    if avg_sleep < 5:
        patterns.append("Poor sleep quality affecting wellness")
    if avg_wellness > 7:
        patterns.append("Strong overall mental wellness")
    return patterns


def basic_recommendations(avg_stress: float, avg_sleep: float, trend: str) -> List[str]:
    recs = []
    if avg_stress > 6:
        recs.append("Consider stress management techniques")
    if avg_sleep < 6:
        recs.append("Focus on improving sleep hygiene")
    if trend == TREND_DECLINING:
        recs.append("Monitor mood patterns and consider additional support")
    return recs


def weekly_analytics(records: Sequence[CheckIn]) -> Dict[str, Any]:
    """Averages, mood histogram, best/worst day and direction over a chronological window."""
    if not records:
        raise ValueError("weekly_analytics requires at least one check-in")

    df = _frame(records)
    out: Dict[str, Any] = {
        "startDate": records[0].date.isoformat(),
        "endDate": records[-1].date.isoformat(),
        "totalDays": len(records),
    }
    for col, suffix in METRIC_COLUMNS.items():
        out[f"avg{suffix}"] = round_half_up(float(df[col].mean()), 1)

    sizes = df.groupby("mood", sort=False).size()
    out["moodFrequency"] = {mood: int(n) for mood, n in sizes.items()}

    # idxmax/idxmin return the first matching label, so earlier days win ties
    out["bestDay"] = _day_ref(records[int(df["wellness_score"].idxmax())])
    out["challengingDay"] = _day_ref(records[int(df["wellness_score"].idxmin())])

    trend = classify_trend(df["wellness_score"].tolist())
    out["wellnessScoreTrend"] = trend
    out["keyPatterns"] = key_patterns(out["avgStressLevel"], out["avgSleepQuality"], out["avgWellnessScore"])
    out["recommendations"] = basic_recommendations(out["avgStressLevel"], out["avgSleepQuality"], trend)
    return out


# ─── Longer-range trend summary ──────────────────────────────

def wellness_trends(records: Sequence[CheckIn]) -> Optional[Dict[str, Any]]:
    """Aggregate view used by the trends endpoint; ``None`` for an empty window."""
    if not records:
        return None
    df = _frame(records)
    return {
        "avgDailyScore": round_half_up(float(df["wellness_score"].mean()), 1),
        "avgFeelingScale": round_half_up(float(df["feeling_scale"].mean()), 1),
        "avgSleepQuality": round_half_up(float(df["sleep_quality"].mean()), 1),
        "avgStressLevel": round_half_up(float(df["stress_level"].mean()), 1),
        "totalCheckins": len(df),
        "minDailyScore": float(df["wellness_score"].min()),
        "maxDailyScore": float(df["wellness_score"].max()),
        "moods": list(dict.fromkeys(df["mood"].tolist())),
    }


def pattern_insights(records: Sequence[CheckIn], aggregate: Optional[Dict[str, Any]]) -> List[str]:
    """Plain-language notes for a chronological window and its aggregate."""
    if not aggregate or len(records) < 3:
        return ["Not enough data points to identify patterns yet. Keep tracking!"]

    insights = []
    scores = [r.wellness_score for r in records[-3:]]
    if all(b >= a for a, b in zip(scores, scores[1:])):
        insights.append("Your daily scores show an upward trend over the last few days")
    elif all(b <= a for a, b in zip(scores, scores[1:])):
        insights.append("Your daily scores show a downward trend recently")

    if aggregate["avgDailyScore"] >= 7:
        insights.append("Your average daily score is in the higher range")
    elif aggregate["avgDailyScore"] <= 4:
        insights.append("Your average daily score is in the lower range")

    spread = aggregate["maxDailyScore"] - aggregate["minDailyScore"]
    if spread > 4:
        insights.append("Your daily scores show significant variation")
    elif spread < 2:
        insights.append("Your daily scores show consistent patterns")

    if aggregate["avgSleepQuality"] < 5 and aggregate["avgStressLevel"] > 6:
        insights.append("Your data shows both lower sleep quality and higher stress levels")

    return insights or ["Continue tracking to reveal more patterns in your data"]


# ─── Stress assessments ──────────────────────────────────────

def average_stress(assessments: Sequence[StressAssessment]) -> Dict[str, Any]:
    if not assessments:
        return {"averageStress": 0, "count": 0}
    avg = sum(a.stress_score for a in assessments) / len(assessments)
    return {"averageStress": round_half_up(avg, 1), "count": len(assessments)}


def daily_stress_averages(assessments: Sequence[StressAssessment]) -> List[Dict[str, Any]]:
    """Mean stress score per calendar day, oldest day first."""
    dated = [a for a in assessments if a.created_at is not None]
    if not dated:
        return []
    df = pd.DataFrame(
        {
            "day": [a.created_at.date().isoformat() for a in dated],
            "score": [float(a.stress_score) for a in dated],
        }
    )
    grouped = df.groupby("day").agg(averageStress=("score", "mean"), count=("score", "size"))
    return [
        {"date": day, "averageStress": round_half_up(float(row["averageStress"]), 1), "count": int(row["count"])}
        for day, row in grouped.sort_index().iterrows()
    ]
