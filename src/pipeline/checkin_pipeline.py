"""
Daily check-in orchestration.

analyze:
  validate -> reject a second check-in for today -> wellness score ->
  data observations -> supportive text (AI, deterministic fallback) ->
  persist -> recent trend over the last few days
"""

from __future__ import annotations

import logging
import math
from datetime import date, timedelta
from typing import Any, Callable, Dict, Mapping, Optional

import settings
from ai_insights import AIInsightAdapter, build_checkin_prompt
from analytics.trends import pattern_insights, recent_trend, wellness_trends
from correlation_engine import CorrelationEngine
from errors import DuplicateCheckinError, UpstreamAIError
from insight_generator import (
    fallback_checkin_insight,
    generate_data_insights,
    needs_immediate_attention,
    quick_mood_response,
)
from models import CheckIn, utc_timestamp
from scoring import calculate_daily_score
from store import WellnessStore
from validators import require_valid, validate_checkin, validate_mood_check

log = logging.getLogger("checkin_pipeline")

CORRELATION_NOTE = "These correlations show patterns in your data but do not imply causation"


def _metrics(payload: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "feelingScale": int(payload["feelingScale"]),
        "sleepQuality": int(payload["sleepQuality"]),
        "stressLevel": int(payload["stressLevel"]),
        "mood": payload["mood"].strip().lower(),
    }


class CheckinPipeline:
    def __init__(self, store: WellnessStore, ai: AIInsightAdapter,
                 engine: Optional[CorrelationEngine] = None,
                 today: Optional[Callable[[], date]] = None):
        self.store = store
        self.ai = ai
        self.engine = engine or CorrelationEngine()
        self._today = today or date.today

    # ─── Check-in analysis ───────────────────────────────────

    def analyze(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        require_valid(validate_checkin(payload))
        user_id = payload["userId"]
        today = self._today()

        if self.store.get_checkin_on(user_id, today) is not None:
            log.info("Rejected second check-in of %s for user=%s", today, user_id)
            raise DuplicateCheckinError()

        metrics = _metrics(payload)
        score = calculate_daily_score(metrics["feelingScale"], metrics["sleepQuality"], metrics["stressLevel"])
        data_insights = generate_data_insights(score, metrics)
        supportive = self._supportive_text(payload, metrics)

        saved = self.store.create_checkin(self._build_checkin(payload, metrics, score, today))
        log.info("Check-in %s stored for user=%s (score=%.1f)", saved.id, user_id, score)

        return {
            "wellnessScore": score,
            "dataInsights": data_insights,
            "supportiveInsights": supportive,
            "trends": self._recent_trend(user_id, today),
            "summary": metrics,
            "timestamp": utc_timestamp(),
            "checkinId": saved.id,
        }

    def save_daily_checkin(self, payload: Mapping[str, Any]) -> CheckIn:
        """Create or overwrite today's check-in; the score is always recomputed."""
        require_valid(validate_checkin(payload))
        metrics = _metrics(payload)
        score = calculate_daily_score(metrics["feelingScale"], metrics["sleepQuality"], metrics["stressLevel"])
        return self.store.upsert_checkin(self._build_checkin(payload, metrics, score, self._today()))

    def has_checked_in_today(self, user_id: str) -> bool:
        return self.store.get_checkin_on(user_id, self._today()) is not None

    def _supportive_text(self, payload: Mapping[str, Any], metrics: Dict[str, Any]) -> str:
        try:
            return self.ai.generate(build_checkin_prompt(payload))
        except UpstreamAIError as e:
            log.warning("Check-in AI insight unavailable, using fallback: %s", e)
            return fallback_checkin_insight(metrics)

    def _recent_trend(self, user_id: str, today: date) -> Dict[str, Any]:
        window = settings.recent_trend_days()
        records = self.store.find_checkins(
            user_id, start=today - timedelta(days=window), end=today,
            descending=True, limit=window,
        )
        return recent_trend(records)

    @staticmethod
    def _build_checkin(payload: Mapping[str, Any], metrics: Dict[str, Any],
                       score: float, day: date) -> CheckIn:
        return CheckIn(
            user_id=payload["userId"],
            date=day,
            feeling_scale=metrics["feelingScale"],
            sleep_quality=metrics["sleepQuality"],
            stress_level=metrics["stressLevel"],
            mood=metrics["mood"],
            wellness_score=score,
            activities=list(payload.get("activities") or []),
            notes=payload.get("additionalNotes", payload.get("notes")) or "",
            recent_events=payload.get("recentEvents"),
        )

    # ─── History and aggregates ──────────────────────────────

    def history(self, user_id: str, days: int = 30, page: int = 1, limit: int = 10) -> Dict[str, Any]:
        start = self._today() - timedelta(days=days)
        checkins = self.store.find_checkins(
            user_id, start=start, descending=True, limit=limit, offset=(page - 1) * limit,
        )
        total = self.store.count_checkins(user_id, start=start)
        return {
            "checkins": [c.to_dict() for c in checkins],
            "pagination": {
                "currentPage": page,
                "totalPages": math.ceil(total / limit),
                "totalCount": total,
                "hasNextPage": page * limit < total,
            },
        }

    def wellness_trends(self, user_id: str, days: int = 7) -> Dict[str, Any]:
        records = self.store.find_checkins(user_id, start=self._today() - timedelta(days=days))
        aggregate = wellness_trends(records)
        return {
            "summary": aggregate,
            "dailyTrends": [
                {
                    "date": r.date.isoformat(),
                    "wellnessScore": r.wellness_score,
                    "feelingScale": r.feeling_scale,
                    "sleepQuality": r.sleep_quality,
                    "stressLevel": r.stress_level,
                    "mood": r.mood,
                }
                for r in records
            ],
            "patternInsights": pattern_insights(records, aggregate),
            "period": f"{days} days",
        }

    def correlations(self, user_id: str, days: int = 30) -> Dict[str, Any]:
        records = self.store.find_checkins(user_id, start=self._today() - timedelta(days=days))
        return {
            "correlations": self.engine.compute(records),
            "sampleSize": len(records),
            "period": f"{days} days",
            "note": CORRELATION_NOTE,
        }

    def weekly_data(self, user_id: str, start: date, end: date) -> list:
        return [c.to_dict() for c in self.store.find_checkins(user_id, start=start, end=end)]

    # ─── Quick mood check ────────────────────────────────────

    @staticmethod
    def quick_mood_check(payload: Mapping[str, Any]) -> Dict[str, Any]:
        require_valid(validate_mood_check(payload))
        mood = payload["mood"]
        intensity = payload["intensity"]
        trigger = payload.get("trigger") or None
        needs_support = bool(payload.get("needsSupport"))
        return {
            "mood": mood,
            "intensity": intensity,
            "trigger": trigger,
            "needsSupport": needs_support,
            "response": quick_mood_response(mood, intensity, trigger, needs_support),
            "needsImmediateAttention": needs_immediate_attention(mood, intensity, needs_support),
            "timestamp": utc_timestamp(),
        }
