"""
Deterministic insight text.

Threshold-based observations for a single check-in plus the fallback
narratives served whenever generated text is unavailable.  Nothing here
calls out to a model, so every function is safe to use as a fallback.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from constants import (
    AT_RISK_MOODS,
    SLIDER_QUESTIONS,
    STRESS_ANSWER_LABELS,
    STRESS_QUESTIONS,
    TREND_DECLINING,
    TREND_IMPROVING,
)
from scoring import normalize_answer, score_breakdown


def score_band_observation(wellness_score: float) -> str:
    if wellness_score >= 8:
        return "Your daily score is in the higher range today"
    if wellness_score >= 6.5:
        return "Your daily score shows moderate positive levels"
    if wellness_score >= 5:
        return "Your daily score is in the middle range"
    return "Your daily score is in the lower range today"


def observations(wellness_score: float, metrics: Mapping[str, Any]) -> List[str]:
    out = [score_band_observation(wellness_score)]
    if metrics["stressLevel"] >= 7:
        out.append("Your stress level reading is on the higher side")
    if metrics["sleepQuality"] <= 4:
        out.append("Your sleep quality rating is below 5")
    if metrics["feelingScale"] >= 7:
        out.append("Your feeling scale shows positive levels")
    return out


def generate_data_insights(wellness_score: float, metrics: Mapping[str, Any]) -> Dict[str, Any]:
    """Observation block returned with every check-in analysis."""
    return {
        "wellnessScore": wellness_score,
        "scoreCalculation": score_breakdown(
            metrics["feelingScale"], metrics["sleepQuality"], metrics["stressLevel"]
        ),
        "observations": observations(wellness_score, metrics),
        "note": "These are data observations, not medical assessments",
    }


# ─── Fallback narratives ─────────────────────────────────────

def fallback_checkin_insight(metrics: Mapping[str, Any]) -> str:
    feeling = metrics["feelingScale"]
    sleep = metrics["sleepQuality"]
    stress = metrics["stressLevel"]
    mood = metrics.get("mood") or "mixed"

    parts = [
        f"Thank you for submitting your wellness data. Today's entry shows a {mood} mood "
        f"with a {feeling}/10 feeling scale rating."
    ]
    if stress > 7:
        parts.append(f"Your stress level reading of {stress}/10 is in the higher range.")
    if sleep < 5:
        parts.append(f"Your sleep quality rating of {sleep}/10 falls below the midpoint.")
    if feeling >= 7:
        parts.append("Your feeling scale reading indicates levels above 7/10.")
    parts.append(
        "Continuing to track these metrics over time will help identify patterns "
        "and trends in your personal data."
    )
    return " ".join(parts)


def fallback_stress_analysis(stress_score: int, stress_level: str,
                             answers: Mapping[int, float]) -> Dict[str, Any]:
    """Summary plus the answers that pushed the score up the most."""
    ranked = sorted(
        ((normalize_answer(qid, value), qid) for qid, value in answers.items() if qid in STRESS_QUESTIONS),
        key=lambda item: (-item[0], item[1]),
    )
    trends = []
    for norm, qid in ranked[:3]:
        if norm < 0.5:
            break
        trends.append(f"{STRESS_QUESTIONS[qid].lower()}: {describe_answer(qid, answers[qid])}")

    summary = (
        f"Your stress score is {stress_score}/10, which falls in the {stress_level} range. "
        f"You answered {len(answers)} of {len(STRESS_QUESTIONS)} questions."
    )
    if trends:
        summary += " The answers with the strongest stress signal were " + "; ".join(trends) + "."
    else:
        summary += " None of your answers stood out as a strong stress signal."
    return {"summary": summary, "trends": trends}


def describe_answer(question_id: int, value: Any) -> str:
    if question_id in SLIDER_QUESTIONS:
        return f"{value}/10"
    labels = STRESS_ANSWER_LABELS.get(question_id, {})
    try:
        return labels.get(int(value), str(value))
    except (TypeError, ValueError):
        return str(value)


def fallback_weekly_insight(analytics: Mapping[str, Any]) -> str:
    text = f"Looking at your week, your average wellness score was {analytics['avgWellnessScore']}/10. "

    trend = analytics.get("wellnessScoreTrend")
    if trend == TREND_IMPROVING:
        text += "Your wellness has been trending upward this week. "
    elif trend == TREND_DECLINING:
        text += ("Your wellness has been declining this week. "
                 "This is a normal part of life's ups and downs. ")

    if analytics["avgStressLevel"] > 6:
        text += ("Your stress levels have been elevated. Consider incorporating "
                 "stress-reduction activities into your daily routine. ")
    if analytics["avgSleepQuality"] < 6:
        text += ("Your sleep quality could benefit from attention, as good sleep "
                 "is foundational to mental wellness. ")

    text += "Remember that mental health is a journey, and every small step toward self-care matters."
    return text


# ─── Quick mood check ────────────────────────────────────────

def quick_mood_response(mood: str, intensity: float, trigger: Optional[str] = None,
                        needs_support: bool = False) -> str:
    text = f"Thank you for checking in. I see you're feeling {mood} at a {intensity}/10 intensity. "
    if trigger:
        text += f"It sounds like {trigger} might be influencing how you're feeling right now. "

    if intensity >= 7:
        text += "It's wonderful that you're experiencing positive emotions! Try to savor this moment."
    elif intensity >= 4:
        text += ("You're navigating through some mixed feelings, which is completely normal. "
                 "Be gentle with yourself.")
    else:
        text += ("I can see you're having a difficult time right now. Your feelings are valid, "
                 "and it's okay to reach out for support.")

    if needs_support:
        text += (" Since you've indicated you need support, consider talking to a trusted friend, "
                 "family member, or mental health professional.")
    return text


def needs_immediate_attention(mood: str, intensity: float, needs_support: bool = False) -> bool:
    return bool(needs_support) or (intensity <= 3 and mood.strip().lower() in AT_RISK_MOODS)
