"""
Schema bootstrap and audit helpers.

Tables:
  - daily_checkins      (one row per user per calendar day)
  - stress_assessments  (8-question stress instrument results)
  - weekly_summaries    (cached weekly rollups, one per user per week)

Safe to run on every start (uses IF NOT EXISTS).
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import psycopg2

import settings

log = logging.getLogger("pipeline.migrations")

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS daily_checkins (
    id              SERIAL PRIMARY KEY,
    user_id         TEXT NOT NULL,
    date            DATE NOT NULL,
    feeling_scale   SMALLINT NOT NULL CHECK (feeling_scale BETWEEN 1 AND 10),
    sleep_quality   SMALLINT NOT NULL CHECK (sleep_quality BETWEEN 1 AND 10),
    stress_level    SMALLINT NOT NULL CHECK (stress_level BETWEEN 1 AND 10),
    mood            TEXT NOT NULL,
    wellness_score  NUMERIC(3,1) NOT NULL CHECK (wellness_score BETWEEN 1 AND 10),
    activities      JSONB NOT NULL DEFAULT '[]'::jsonb,
    notes           VARCHAR(500) NOT NULL DEFAULT '',
    recent_events   TEXT,
    created_at      TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at      TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    CONSTRAINT uq_daily_checkins_user_date UNIQUE (user_id, date)
);

CREATE INDEX IF NOT EXISTS idx_daily_checkins_user_date ON daily_checkins(user_id, date DESC);

CREATE TABLE IF NOT EXISTS stress_assessments (
    id            SERIAL PRIMARY KEY,
    user_id       TEXT NOT NULL,
    answers       JSONB NOT NULL,
    stress_score  SMALLINT NOT NULL CHECK (stress_score BETWEEN 0 AND 10),
    stress_level  TEXT NOT NULL,
    analysis      TEXT NOT NULL,
    trends        JSONB NOT NULL DEFAULT '[]'::jsonb,
    created_at    TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_stress_user_created ON stress_assessments(user_id, created_at DESC);

CREATE TABLE IF NOT EXISTS weekly_summaries (
    id                 SERIAL PRIMARY KEY,
    user_id            TEXT NOT NULL,
    week_start_date    DATE NOT NULL,
    week_end_date      DATE NOT NULL,
    summary            JSONB NOT NULL,
    daily_checkin_ids  JSONB NOT NULL DEFAULT '[]'::jsonb,
    last_updated       TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    CONSTRAINT uq_weekly_summaries_user_week UNIQUE (user_id, week_start_date)
)
"""

REQUIRED_COLUMNS = {
    "daily_checkins": ["user_id", "date", "wellness_score", "updated_at"],
    "stress_assessments": ["user_id", "answers", "stress_score"],
    "weekly_summaries": ["user_id", "week_start_date", "daily_checkin_ids", "last_updated"],
}


def _resolve_conn_str(conn_str: Optional[str]) -> str:
    return (conn_str or settings.get_conn_str()).strip()


def ensure_startup_schema(conn_str: Optional[str] = None) -> None:
    """Run idempotent startup migrations."""
    cs = _resolve_conn_str(conn_str)
    if not cs:
        raise RuntimeError("POSTGRES_CONNECTION_STRING (or DATABASE_URL) is not configured")

    conn = psycopg2.connect(cs)
    conn.autocommit = True
    try:
        with conn.cursor() as cur:
            for statement in SCHEMA_SQL.split(";"):
                stmt = statement.strip()
                if stmt:
                    cur.execute(stmt)
    finally:
        conn.close()

    log.info("Startup migrations completed.")


def schema_audit(conn_str: Optional[str] = None) -> Dict[str, Any]:
    """Return table/column audit data for runtime inspection."""
    cs = _resolve_conn_str(conn_str)
    if not cs:
        return {
            "ok": False,
            "error": "POSTGRES_CONNECTION_STRING (or DATABASE_URL) is not configured",
            "tables": {},
            "missing_tables": [],
        }

    out: Dict[str, Any] = {"ok": True, "tables": {}, "missing_tables": []}
    conn = psycopg2.connect(cs)
    try:
        with conn.cursor() as cur:
            for table, expected in REQUIRED_COLUMNS.items():
                cur.execute(
                    """
                    SELECT column_name
                    FROM information_schema.columns
                    WHERE table_schema = 'public' AND table_name = %s
                    ORDER BY ordinal_position
                    """,
                    (table,),
                )
                cols: List[str] = [r[0] for r in cur.fetchall()]
                if not cols:
                    out["missing_tables"].append(table)
                out["tables"][table] = {
                    "exists": bool(cols),
                    "columns": cols,
                    "missing_columns": [c for c in expected if c not in cols],
                }

        out["ok"] = not out["missing_tables"] and not any(
            info["missing_columns"] for info in out["tables"].values()
        )
        return out
    finally:
        conn.close()
