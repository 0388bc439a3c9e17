"""Helpers for assembling the weekly summary document served to the client."""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, Mapping

NO_DATA_MESSAGE = "No check-ins recorded for this week yet."


def _data_range(total_days: int, week_start: date, week_end: date) -> str:
    noun = "check-in" if total_days == 1 else "check-ins"
    return f"{total_days} {noun} between {week_start.isoformat()} and {week_end.isoformat()}"


def build_weekly_summary(analytics: Mapping[str, Any], ai_summary: str,
                         week_start: date, week_end: date) -> Dict[str, Any]:
    """Nest the analytics and insight text into the stored summary shape."""
    return {
        "period": {
            "startDate": week_start.isoformat(),
            "endDate": week_end.isoformat(),
            "firstCheckin": analytics["startDate"],
            "lastCheckin": analytics["endDate"],
            "totalDays": analytics["totalDays"],
            "dataRange": _data_range(analytics["totalDays"], week_start, week_end),
        },
        "averages": {
            "wellnessScore": analytics["avgWellnessScore"],
            "feelingScale": analytics["avgFeelingScale"],
            "sleepQuality": analytics["avgSleepQuality"],
            "stressLevel": analytics["avgStressLevel"],
        },
        "trends": {
            "moodFrequency": dict(analytics["moodFrequency"]),
            "wellnessScoreTrend": analytics["wellnessScoreTrend"],
            "bestDay": analytics["bestDay"],
            "challengingDay": analytics["challengingDay"],
        },
        "insights": {
            "aiSummary": ai_summary,
            "keyPatterns": list(analytics["keyPatterns"]),
            "recommendations": list(analytics["recommendations"]),
        },
    }


def no_data_summary(week_start: date, week_end: date) -> Dict[str, Any]:
    """Ephemeral summary for a week without check-ins; never persisted."""
    return {
        "period": {
            "startDate": week_start.isoformat(),
            "endDate": week_end.isoformat(),
            "totalDays": 0,
            "dataRange": "No data available",
        },
        "averages": None,
        "trends": None,
        "insights": {
            "aiSummary": NO_DATA_MESSAGE,
            "keyPatterns": [],
            "recommendations": [],
        },
        "noData": True,
    }
