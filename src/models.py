"""
Domain records persisted by the store.

Attributes are snake_case; ``to_dict`` renders the camelCase wire shape the
mobile client consumes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional


def _iso(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def utc_timestamp() -> str:
    """Current UTC instant in the `...Z` form the client parses."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class CheckIn:
    user_id: str
    date: date
    feeling_scale: int
    sleep_quality: int
    stress_level: int
    mood: str
    wellness_score: float
    activities: List[str] = field(default_factory=list)
    notes: str = ""
    recent_events: Optional[str] = None
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def last_modified(self) -> Optional[datetime]:
        return self.updated_at or self.created_at

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "date": _iso(self.date),
            "feelingScale": self.feeling_scale,
            "sleepQuality": self.sleep_quality,
            "stressLevel": self.stress_level,
            "mood": self.mood,
            "wellnessScore": self.wellness_score,
            "activities": list(self.activities),
            "notes": self.notes,
            "recentEvents": self.recent_events,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


@dataclass
class StressAssessment:
    user_id: str
    answers: Dict[int, float]
    stress_score: int
    stress_level: str
    analysis: str
    trends: List[str] = field(default_factory=list)
    id: Optional[int] = None
    created_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "answers": {str(k): v for k, v in sorted(self.answers.items())},
            "stressScore": self.stress_score,
            "stressLevel": self.stress_level,
            "analysis": self.analysis,
            "trends": list(self.trends),
            "createdAt": _iso(self.created_at),
        }


@dataclass
class WeeklySummary:
    user_id: str
    week_start_date: date
    week_end_date: date
    summary: Dict[str, Any]
    daily_checkin_ids: List[Any] = field(default_factory=list)
    last_updated: Optional[datetime] = None
    id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "weekStartDate": _iso(self.week_start_date),
            "weekEndDate": _iso(self.week_end_date),
            "summary": self.summary,
            "dailyCheckinIds": list(self.daily_checkin_ids),
            "lastUpdated": _iso(self.last_updated),
        }
