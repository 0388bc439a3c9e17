"""Input validation for check-in, stress-assessment and mood-check payloads.

Each validator returns ``None`` when the payload is acceptable, otherwise a
single human-readable message for the first rule that failed.
"""

from __future__ import annotations

from numbers import Real
from typing import Any, Dict, Mapping, Optional

from constants import (
    CHECKIN_METRICS,
    METRIC_MAX,
    METRIC_MIN,
    NOTES_MAX_LENGTH,
    STRESS_WEIGHTS,
    VALID_MOODS,
)
from errors import ValidationError


def _missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def _in_range(value: Real) -> bool:
    return METRIC_MIN <= value <= METRIC_MAX


def validate_checkin(data: Mapping[str, Any]) -> Optional[str]:
    """Check a daily check-in payload (camelCase keys)."""
    required = ("userId",) + CHECKIN_METRICS + ("mood",)
    if any(_missing(data.get(k)) for k in required):
        return "Missing required fields: userId, feelingScale, sleepQuality, stressLevel, mood"

    metrics = [data[k] for k in CHECKIN_METRICS]
    if not all(_is_number(v) for v in metrics):
        return "feelingScale, sleepQuality, and stressLevel must be numbers"
    if not all(float(v).is_integer() for v in metrics):
        return "feelingScale, sleepQuality, and stressLevel must be whole numbers"

    if not isinstance(data["mood"], str) or not isinstance(data["userId"], str):
        return "mood and userId must be strings"

    for key in CHECKIN_METRICS:
        if not _in_range(data[key]):
            return f"{key} must be between {METRIC_MIN} and {METRIC_MAX}"

    if data["mood"].strip().lower() not in VALID_MOODS:
        return f"mood must be one of: {', '.join(VALID_MOODS)}"

    activities = data.get("activities")
    if activities is not None and (
        not isinstance(activities, list) or not all(isinstance(a, str) for a in activities)
    ):
        return "activities must be a list of strings"

    notes = data.get("additionalNotes", data.get("notes"))
    if notes is not None:
        if not isinstance(notes, str):
            return "notes must be a string"
        if len(notes) > NOTES_MAX_LENGTH:
            return f"notes cannot be longer than {NOTES_MAX_LENGTH} characters"

    return None


def validate_user_id(user_id: Any) -> Optional[str]:
    if _missing(user_id):
        return "userId is required"
    if not isinstance(user_id, str):
        return "userId must be a string"
    return None


def validate_stress_answers(data: Mapping[str, Any]) -> Optional[str]:
    """Check a stress-assessment payload: userId plus a non-empty answer map."""
    error = validate_user_id(data.get("userId"))
    if error:
        return error

    answers = data.get("answers")
    if not isinstance(answers, Mapping) or not answers:
        return "Answers are required"

    for key, value in answers.items():
        try:
            qid = int(key)
        except (TypeError, ValueError):
            return f"Unknown question id: {key}"
        if qid not in STRESS_WEIGHTS:
            return f"Unknown question id: {key}"
        if not _is_number(value):
            return f"Answer for question {qid} must be a number"
    return None


def normalize_answers(answers: Mapping[Any, Any]) -> Dict[int, float]:
    """Key a validated answer map by integer question id."""
    return {int(k): v for k, v in answers.items()}


def validate_mood_check(data: Mapping[str, Any]) -> Optional[str]:
    if _missing(data.get("mood")) or data.get("intensity") is None:
        return "Mood and intensity are required"
    if not isinstance(data["mood"], str):
        return "mood must be a string"
    intensity = data["intensity"]
    if not _is_number(intensity):
        return "Intensity must be a number"
    if not _in_range(intensity):
        return "Intensity must be between 1 and 10"
    return None


def require_valid(error: Optional[str]) -> None:
    """Raise ``ValidationError`` for a non-empty validator result."""
    if error:
        raise ValidationError(error)
