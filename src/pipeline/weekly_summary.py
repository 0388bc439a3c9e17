"""
Weekly summary cache.

One stored summary per (user, week start).  ``WeeklySummaryCache.generate``
walks the lifecycle:

  no check-ins in window   -> delete any stored summary, return an ephemeral
                              "no data" document (nothing persisted)
  stored and fresh         -> return it untouched, no AI call
  absent or stale          -> recompute analytics, ask the AI for narrative
                              text (deterministic fallback), upsert

A stored summary is stale when the set of contributing check-in ids changed
or any contributing check-in was modified after the summary was written.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable, Optional, Sequence, Tuple

from ai_insights import AIInsightAdapter, build_weekly_prompt
from analytics.trends import weekly_analytics
from errors import UpstreamAIError
from insight_generator import fallback_weekly_insight
from models import CheckIn, WeeklySummary
from pipeline.summary_builder import build_weekly_summary, no_data_summary
from store import WellnessStore

log = logging.getLogger("weekly_summary")

WEEK_DAYS = 7

STATUS_NO_DATA = "no_data"
STATUS_CACHED = "cached"
STATUS_GENERATED = "generated"


def week_bounds(day: date) -> Tuple[date, date]:
    """Sunday-start week containing ``day`` as (first day, last day)."""
    start = day - timedelta(days=(day.weekday() + 1) % WEEK_DAYS)
    return start, start + timedelta(days=WEEK_DAYS - 1)


def parse_week_start(value: Optional[str]) -> Optional[date]:
    """Accept ``YYYY-MM-DD`` or a full ISO timestamp; the time part is ignored."""
    if value is None or not str(value).strip():
        return None
    text = str(value).strip()
    try:
        return date.fromisoformat(text[:10])
    except ValueError as e:
        raise ValueError(f"Invalid week start date: {value}") from e


def is_stale(existing: WeeklySummary, records: Sequence[CheckIn]) -> bool:
    ids = [r.id for r in records]
    if len(existing.daily_checkin_ids) != len(ids):
        return True
    if set(map(str, existing.daily_checkin_ids)) != set(map(str, ids)):
        return True
    if existing.last_updated is None:
        return True
    return any(
        r.last_modified is not None and r.last_modified > existing.last_updated
        for r in records
    )


def read_watermark(records: Sequence[CheckIn]) -> Optional[datetime]:
    """Newest modification time among the check-ins a summary was built from."""
    stamps = [r.last_modified for r in records if r.last_modified is not None]
    return max(stamps) if stamps else None


@dataclass
class SummaryOutcome:
    summary: WeeklySummary
    status: str

    @property
    def cached(self) -> bool:
        return self.status == STATUS_CACHED


class WeeklySummaryCache:
    """Lazily builds and refreshes weekly summaries for the summary endpoints."""

    def __init__(self, store: WellnessStore, ai: AIInsightAdapter,
                 today: Optional[Callable[[], date]] = None):
        self.store = store
        self.ai = ai
        self._today = today or date.today

    def generate(self, user_id: str, week_start: Optional[date] = None) -> SummaryOutcome:
        start, end = week_bounds(week_start or self._today())
        records = self.store.find_checkins(user_id, start=start, end=end)
        existing = self.store.get_weekly_summary(user_id, start)

        if not records:
            if existing is not None:
                log.info("Week %s for user=%s has no check-ins; removing stored summary", start, user_id)
                self.store.delete_weekly_summary(existing.id)
            ephemeral = WeeklySummary(
                user_id=user_id,
                week_start_date=start,
                week_end_date=end,
                summary=no_data_summary(start, end),
                last_updated=datetime.now(),
            )
            return SummaryOutcome(ephemeral, STATUS_NO_DATA)

        if existing is not None and not is_stale(existing, records):
            log.info("Weekly summary cache hit for user=%s week=%s", user_id, start)
            return SummaryOutcome(existing, STATUS_CACHED)

        log.info(
            "Generating weekly summary for user=%s week=%s from %d check-ins",
            user_id, start, len(records),
        )
        analytics = weekly_analytics(records)
        summary = WeeklySummary(
            user_id=user_id,
            week_start_date=start,
            week_end_date=end,
            summary=build_weekly_summary(analytics, self._insight_text(records, analytics), start, end),
            daily_checkin_ids=[r.id for r in records],
            # edits landing after the read must compare as newer than the summary
            last_updated=read_watermark(records),
        )
        return SummaryOutcome(self.store.save_weekly_summary(summary), STATUS_GENERATED)

    def _insight_text(self, records: Sequence[CheckIn], analytics) -> str:
        try:
            return self.ai.generate(build_weekly_prompt(records, analytics))
        except UpstreamAIError as e:
            log.warning("Weekly AI insight unavailable, using fallback: %s", e)
            return fallback_weekly_insight(analytics)
