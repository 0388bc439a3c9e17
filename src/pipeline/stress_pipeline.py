"""Stress assessment scoring, narrative and history."""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from typing import Any, Callable, Dict, Mapping, Optional

from ai_insights import AIInsightAdapter, build_stress_prompt
from analytics.trends import average_stress, daily_stress_averages
from errors import UpstreamAIError
from insight_generator import fallback_stress_analysis
from models import StressAssessment, utc_timestamp
from scoring import calculate_stress_score, stress_level_label
from store import WellnessStore
from validators import normalize_answers, require_valid, validate_stress_answers

log = logging.getLogger("stress_pipeline")


class StressPipeline:
    def __init__(self, store: WellnessStore, ai: AIInsightAdapter,
                 today: Optional[Callable[[], date]] = None):
        self.store = store
        self.ai = ai
        self._today = today or date.today

    def analyze(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        require_valid(validate_stress_answers(payload))
        answers = normalize_answers(payload["answers"])
        score = calculate_stress_score(answers)
        label = stress_level_label(score)

        prompt = build_stress_prompt(
            answers, score,
            user_name=payload.get("userName") or "User",
            user_age=str(payload.get("userAge") or "Not specified"),
        )
        try:
            narrative = self.ai.generate_structured(prompt, list_key="trends")
        except UpstreamAIError as e:
            log.warning("Stress AI analysis unavailable, using fallback: %s", e)
            narrative = fallback_stress_analysis(score, label, answers)

        saved = self.store.insert_stress_assessment(
            StressAssessment(
                user_id=payload["userId"],
                answers=answers,
                stress_score=score,
                stress_level=label,
                analysis=narrative["summary"],
                trends=narrative["trends"],
            )
        )
        log.info("Stress assessment %s stored for user=%s (score=%d)", saved.id, saved.user_id, score)
        return {
            "stressScore": score,
            "stressLevel": label,
            "summary": narrative["summary"],
            "trends": narrative["trends"],
            "timestamp": utc_timestamp(),
            "assessmentId": saved.id,
        }

    def history(self, user_id: str, days: int = 30) -> Dict[str, Any]:
        since = datetime.combine(self._today() - timedelta(days=days), time.min)
        assessments = self.store.find_stress_assessments(user_id, since=since)
        return {
            "assessments": [a.to_dict() for a in assessments],
            "overall": average_stress(assessments),
            "daily": daily_stress_averages(assessments),
            "period": f"{days} days",
        }
