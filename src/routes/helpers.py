"""
Shared helpers for API routes.
Contains: service wiring (one instance per process), response envelopes,
path/query parsing.
"""

from __future__ import annotations

import logging
from datetime import date
from functools import lru_cache
from typing import Any, Dict, Optional

from ai_insights import AIInsightAdapter
from errors import ValidationError
from pipeline.checkin_pipeline import CheckinPipeline
from pipeline.stress_pipeline import StressPipeline
from pipeline.weekly_summary import SummaryOutcome, WeeklySummaryCache, parse_week_start
from models import utc_timestamp
from store import PostgresWellnessStore, WellnessStore
from validators import require_valid, validate_user_id

log = logging.getLogger("api")


# ─── Service wiring ─────────────────────────────────────────

@lru_cache(maxsize=1)
def get_store() -> WellnessStore:
    return PostgresWellnessStore()


@lru_cache(maxsize=1)
def get_ai() -> AIInsightAdapter:
    return AIInsightAdapter()


def get_checkin_pipeline() -> CheckinPipeline:
    return CheckinPipeline(get_store(), get_ai())


def get_stress_pipeline() -> StressPipeline:
    return StressPipeline(get_store(), get_ai())


def get_summary_cache() -> WeeklySummaryCache:
    return WeeklySummaryCache(get_store(), get_ai())


# ─── Envelopes ──────────────────────────────────────────────

def ok(**payload: Any) -> Dict[str, Any]:
    return {"success": True, **payload}


def weekly_summary_payload(outcome: SummaryOutcome) -> Dict[str, Any]:
    return ok(
        weeklySummary={**outcome.summary.summary, "timestamp": utc_timestamp()},
        weekStartDate=outcome.summary.week_start_date.isoformat(),
        weekEndDate=outcome.summary.week_end_date.isoformat(),
        status=outcome.status,
        cached=outcome.cached,
    )


# ─── Parsing ────────────────────────────────────────────────

def require_user_id(value: Any) -> str:
    require_valid(validate_user_id(value))
    return value


def parse_day(value: str, name: str = "date") -> date:
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError as e:
        raise ValidationError(f"{name} must be an ISO date (YYYY-MM-DD)") from e


def parse_optional_week(value: Any) -> Optional[date]:
    try:
        return parse_week_start(value)
    except ValueError as e:
        raise ValidationError(str(e)) from e
