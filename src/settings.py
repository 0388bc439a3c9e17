"""
Shared runtime settings.
Single source of truth for environment-driven configuration
(PostgreSQL connection string, Gemini model/key, timeouts, CORS origins).
"""

from __future__ import annotations

import os
from typing import List

from dotenv import load_dotenv

load_dotenv()

DEFAULT_AI_MODEL = "gemini/gemini-2.5-flash"
DEFAULT_AI_TIMEOUT = 20.0
DEFAULT_ORIGINS = [
    "http://localhost:8081",
    "http://localhost:19006",
    "http://127.0.0.1:8081",
]


def get_conn_str() -> str:
    """Return PostgreSQL connection string.

    Checks POSTGRES_CONNECTION_STRING first, falls back to DATABASE_URL
    (Heroku standard).  Normalises postgres:// to postgresql:// for psycopg2.
    """
    url = (os.getenv("POSTGRES_CONNECTION_STRING") or os.getenv("DATABASE_URL") or "").strip()
    if url.startswith("postgres://"):
        url = "postgresql://" + url[len("postgres://"):]
    return url


def ai_api_key() -> str:
    return os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY") or ""


def ai_model() -> str:
    return os.getenv("AI_MODEL", DEFAULT_AI_MODEL)


def ai_timeout() -> float:
    raw = os.getenv("AI_TIMEOUT_SECONDS", "")
    try:
        value = float(raw)
    except ValueError:
        return DEFAULT_AI_TIMEOUT
    return value if value > 0 else DEFAULT_AI_TIMEOUT


def recent_trend_days() -> int:
    try:
        return max(2, int(os.getenv("RECENT_TREND_DAYS", "7")))
    except ValueError:
        return 7


def frontend_origins() -> List[str]:
    raw = os.getenv("FRONTEND_ORIGINS", "")
    return [o.strip() for o in raw.split(",") if o.strip()] or list(DEFAULT_ORIGINS)


def port() -> int:
    try:
        return int(os.getenv("PORT", "8000"))
    except ValueError:
        return 8000
