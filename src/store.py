"""
Persistence layer.

``WellnessStore`` defines the storage primitives the pipelines rely on and
owns the two conflict policies:

  * ``create_checkin``       insert; a uniqueness violation on (user, date)
                             surfaces as ``DuplicateCheckinError``.
  * ``save_weekly_summary``  upsert on (user, week start); on a duplicate-key
                             race retry once as an update-only write, and
                             treat a second failure as fatal.

``PostgresWellnessStore`` implements the primitives with psycopg2.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Iterator, List, Optional

import psycopg2
import psycopg2.errors
from psycopg2.extras import Json, RealDictCursor
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

import settings
from errors import DuplicateCheckinError, DuplicateKeyError, PersistenceError
from models import CheckIn, StressAssessment, WeeklySummary

log = logging.getLogger("store")


class WellnessStore:
    """Storage contract plus the conflict-handling policies shared by all backends."""

    # ─── Policies ────────────────────────────────────────────

    def create_checkin(self, checkin: CheckIn) -> CheckIn:
        try:
            return self._insert_checkin(checkin)
        except DuplicateKeyError as e:
            raise DuplicateCheckinError() from e

    def save_weekly_summary(self, summary: WeeklySummary) -> WeeklySummary:
        try:
            return self._upsert_weekly_summary(summary)
        except DuplicateKeyError:
            log.warning(
                "Weekly summary upsert raced for user=%s week=%s; retrying as update",
                summary.user_id, summary.week_start_date,
            )
        try:
            saved = self._update_weekly_summary(summary)
        except DuplicateKeyError as e:
            raise PersistenceError("Failed to save weekly summary") from e
        if saved is None:
            raise PersistenceError("Failed to save weekly summary")
        return saved

    # ─── Primitives ──────────────────────────────────────────

    def _insert_checkin(self, checkin: CheckIn) -> CheckIn:
        raise NotImplementedError

    def upsert_checkin(self, checkin: CheckIn) -> CheckIn:
        raise NotImplementedError

    def find_checkins(self, user_id: str, start: Optional[date] = None, end: Optional[date] = None,
                      descending: bool = False, limit: Optional[int] = None,
                      offset: int = 0) -> List[CheckIn]:
        raise NotImplementedError

    def count_checkins(self, user_id: str, start: Optional[date] = None,
                       end: Optional[date] = None) -> int:
        raise NotImplementedError

    def get_checkin_on(self, user_id: str, day: date) -> Optional[CheckIn]:
        raise NotImplementedError

    def insert_stress_assessment(self, assessment: StressAssessment) -> StressAssessment:
        raise NotImplementedError

    def find_stress_assessments(self, user_id: str, since: Optional[datetime] = None) -> List[StressAssessment]:
        raise NotImplementedError

    def get_weekly_summary(self, user_id: str, week_start: date) -> Optional[WeeklySummary]:
        raise NotImplementedError

    def _upsert_weekly_summary(self, summary: WeeklySummary) -> WeeklySummary:
        raise NotImplementedError

    def _update_weekly_summary(self, summary: WeeklySummary) -> Optional[WeeklySummary]:
        raise NotImplementedError

    def delete_weekly_summary(self, summary_id: Any) -> None:
        raise NotImplementedError


# ─── PostgreSQL ──────────────────────────────────────────────

@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
    retry=retry_if_exception_type(psycopg2.OperationalError),
    reraise=True,
)
def _connect(conn_str: str):
    """Open a connection, retrying transient OperationalErrors with backoff."""
    return psycopg2.connect(conn_str)


def _checkin_from_row(row: Dict[str, Any]) -> CheckIn:
    score = row["wellness_score"]
    return CheckIn(
        id=row["id"],
        user_id=row["user_id"],
        date=row["date"],
        feeling_scale=row["feeling_scale"],
        sleep_quality=row["sleep_quality"],
        stress_level=row["stress_level"],
        mood=row["mood"],
        wellness_score=float(score) if isinstance(score, Decimal) else score,
        activities=list(row.get("activities") or []),
        notes=row.get("notes") or "",
        recent_events=row.get("recent_events"),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


def _stress_from_row(row: Dict[str, Any]) -> StressAssessment:
    return StressAssessment(
        id=row["id"],
        user_id=row["user_id"],
        answers={int(k): v for k, v in (row.get("answers") or {}).items()},
        stress_score=row["stress_score"],
        stress_level=row["stress_level"],
        analysis=row["analysis"],
        trends=list(row.get("trends") or []),
        created_at=row.get("created_at"),
    )


def _summary_from_row(row: Dict[str, Any]) -> WeeklySummary:
    return WeeklySummary(
        id=row["id"],
        user_id=row["user_id"],
        week_start_date=row["week_start_date"],
        week_end_date=row["week_end_date"],
        summary=row["summary"],
        daily_checkin_ids=list(row.get("daily_checkin_ids") or []),
        last_updated=row.get("last_updated"),
    )


def _checkin_params(c: CheckIn) -> tuple:
    return (
        c.user_id, c.date, c.feeling_scale, c.sleep_quality, c.stress_level,
        c.mood, c.wellness_score, Json(list(c.activities)), c.notes or "", c.recent_events,
    )


def _range_clause(start: Optional[date], end: Optional[date]) -> tuple:
    clause, params = "", []
    if start is not None:
        clause += " AND date >= %s"
        params.append(start)
    if end is not None:
        clause += " AND date <= %s"
        params.append(end)
    return clause, params


class PostgresWellnessStore(WellnessStore):
    """psycopg2-backed store; one short-lived connection per operation."""

    def __init__(self, conn_str: Optional[str] = None):
        self.conn_str = conn_str or settings.get_conn_str()

    @contextmanager
    def _cursor(self) -> Iterator[Any]:
        if not self.conn_str:
            raise PersistenceError("Database is not configured")
        try:
            conn = _connect(self.conn_str)
        except psycopg2.Error as e:
            log.error("Database connection failed: %s", e)
            raise PersistenceError() from e
        try:
            with conn:
                with conn.cursor(cursor_factory=RealDictCursor) as cur:
                    yield cur
        except psycopg2.errors.UniqueViolation as e:
            raise DuplicateKeyError(str(e).strip() or DuplicateKeyError.default_message) from e
        except psycopg2.Error as e:
            log.error("Database error: %s", e)
            raise PersistenceError() from e
        finally:
            conn.close()

    # ─── Check-ins ───────────────────────────────────────────

    def _insert_checkin(self, checkin: CheckIn) -> CheckIn:
        with self._cursor() as cur:
            cur.execute(
                """
                INSERT INTO daily_checkins
                    (user_id, date, feeling_scale, sleep_quality, stress_level,
                     mood, wellness_score, activities, notes, recent_events)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                RETURNING *
                """,
                _checkin_params(checkin),
            )
            return _checkin_from_row(cur.fetchone())

    def upsert_checkin(self, checkin: CheckIn) -> CheckIn:
        with self._cursor() as cur:
            cur.execute(
                """
                INSERT INTO daily_checkins
                    (user_id, date, feeling_scale, sleep_quality, stress_level,
                     mood, wellness_score, activities, notes, recent_events)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                ON CONFLICT (user_id, date) DO UPDATE SET
                    feeling_scale  = EXCLUDED.feeling_scale,
                    sleep_quality  = EXCLUDED.sleep_quality,
                    stress_level   = EXCLUDED.stress_level,
                    mood           = EXCLUDED.mood,
                    wellness_score = EXCLUDED.wellness_score,
                    activities     = EXCLUDED.activities,
                    notes          = EXCLUDED.notes,
                    recent_events  = EXCLUDED.recent_events,
                    updated_at     = CURRENT_TIMESTAMP
                RETURNING *
                """,
                _checkin_params(checkin),
            )
            return _checkin_from_row(cur.fetchone())

    def find_checkins(self, user_id: str, start: Optional[date] = None, end: Optional[date] = None,
                      descending: bool = False, limit: Optional[int] = None,
                      offset: int = 0) -> List[CheckIn]:
        clause, params = _range_clause(start, end)
        order = "DESC" if descending else "ASC"
        query = f"SELECT * FROM daily_checkins WHERE user_id = %s{clause} ORDER BY date {order}"
        if limit is not None:
            query += " LIMIT %s OFFSET %s"
            params += [limit, offset]
        with self._cursor() as cur:
            cur.execute(query, [user_id] + params)
            return [_checkin_from_row(r) for r in cur.fetchall()]

    def count_checkins(self, user_id: str, start: Optional[date] = None,
                       end: Optional[date] = None) -> int:
        clause, params = _range_clause(start, end)
        with self._cursor() as cur:
            cur.execute(f"SELECT COUNT(*) AS n FROM daily_checkins WHERE user_id = %s{clause}",
                        [user_id] + params)
            return int(cur.fetchone()["n"])

    def get_checkin_on(self, user_id: str, day: date) -> Optional[CheckIn]:
        with self._cursor() as cur:
            cur.execute("SELECT * FROM daily_checkins WHERE user_id = %s AND date = %s", (user_id, day))
            row = cur.fetchone()
            return _checkin_from_row(row) if row else None

    # ─── Stress assessments ──────────────────────────────────

    def insert_stress_assessment(self, assessment: StressAssessment) -> StressAssessment:
        with self._cursor() as cur:
            cur.execute(
                """
                INSERT INTO stress_assessments
                    (user_id, answers, stress_score, stress_level, analysis, trends)
                VALUES (%s, %s, %s, %s, %s, %s)
                RETURNING *
                """,
                (
                    assessment.user_id,
                    Json({str(k): v for k, v in assessment.answers.items()}),
                    assessment.stress_score,
                    assessment.stress_level,
                    assessment.analysis,
                    Json(list(assessment.trends)),
                ),
            )
            return _stress_from_row(cur.fetchone())

    def find_stress_assessments(self, user_id: str, since: Optional[datetime] = None) -> List[StressAssessment]:
        query = "SELECT * FROM stress_assessments WHERE user_id = %s"
        params: List[Any] = [user_id]
        if since is not None:
            query += " AND created_at >= %s"
            params.append(since)
        with self._cursor() as cur:
            cur.execute(query + " ORDER BY created_at ASC", params)
            return [_stress_from_row(r) for r in cur.fetchall()]

    # ─── Weekly summaries ────────────────────────────────────

    def get_weekly_summary(self, user_id: str, week_start: date) -> Optional[WeeklySummary]:
        with self._cursor() as cur:
            cur.execute(
                "SELECT * FROM weekly_summaries WHERE user_id = %s AND week_start_date = %s",
                (user_id, week_start),
            )
            row = cur.fetchone()
            return _summary_from_row(row) if row else None

    def _upsert_weekly_summary(self, summary: WeeklySummary) -> WeeklySummary:
        with self._cursor() as cur:
            cur.execute(
                """
                INSERT INTO weekly_summaries
                    (user_id, week_start_date, week_end_date, summary, daily_checkin_ids, last_updated)
                VALUES (%s, %s, %s, %s, %s, COALESCE(%s, CURRENT_TIMESTAMP))
                ON CONFLICT (user_id, week_start_date) DO UPDATE SET
                    week_end_date     = EXCLUDED.week_end_date,
                    summary           = EXCLUDED.summary,
                    daily_checkin_ids = EXCLUDED.daily_checkin_ids,
                    last_updated      = EXCLUDED.last_updated
                RETURNING *
                """,
                (
                    summary.user_id, summary.week_start_date, summary.week_end_date,
                    Json(summary.summary), Json(list(summary.daily_checkin_ids)),
                    summary.last_updated,
                ),
            )
            return _summary_from_row(cur.fetchone())

    def _update_weekly_summary(self, summary: WeeklySummary) -> Optional[WeeklySummary]:
        with self._cursor() as cur:
            cur.execute(
                """
                UPDATE weekly_summaries SET
                    week_end_date     = %s,
                    summary           = %s,
                    daily_checkin_ids = %s,
                    last_updated      = COALESCE(%s, CURRENT_TIMESTAMP)
                WHERE user_id = %s AND week_start_date = %s
                RETURNING *
                """,
                (
                    summary.week_end_date, Json(summary.summary),
                    Json(list(summary.daily_checkin_ids)),
                    summary.last_updated,
                    summary.user_id, summary.week_start_date,
                ),
            )
            row = cur.fetchone()
            return _summary_from_row(row) if row else None

    def delete_weekly_summary(self, summary_id: Any) -> None:
        with self._cursor() as cur:
            cur.execute("DELETE FROM weekly_summaries WHERE id = %s", (summary_id,))
