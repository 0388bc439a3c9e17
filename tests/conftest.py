"""
Shared test configuration.

Adds both the project root and src/ to sys.path so that flat modules
(scoring, store, ...) and the pipeline/analytics packages import as
`import module_name`.

Also provides an in-memory ``WellnessStore`` and a stub LLM so the
pipelines can be exercised without PostgreSQL or network access.
"""

import os
import sys
from dataclasses import replace
from datetime import date, datetime, timedelta

import pytest

_project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
_src_dir = os.path.join(_project_root, "src")

if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

if _src_dir not in sys.path:
    sys.path.insert(1, _src_dir)

from ai_insights import AIInsightAdapter  # noqa: E402
from errors import DuplicateKeyError  # noqa: E402
from models import CheckIn  # noqa: E402
from scoring import calculate_daily_score  # noqa: E402
from store import WellnessStore  # noqa: E402

# Wednesday; its Sunday-start week runs 2026-10-11 .. 2026-10-17
TODAY = date(2026, 10, 14)


class InMemoryStore(WellnessStore):
    """Dict-backed store with a ticking clock for created/updated timestamps."""

    def __init__(self):
        self.checkins = {}
        self.stress = []
        self.summaries = {}
        self._next_id = 1
        self._now = datetime(2026, 10, 11, 8, 0, 0)
        self.upsert_races = 0
        self.update_returns_none = False
        self.summary_writes = 0
        self.deleted_summaries = []

    def _tick(self) -> datetime:
        self._now += timedelta(seconds=1)
        return self._now

    def _new_id(self) -> int:
        value = self._next_id
        self._next_id += 1
        return value

    # check-ins

    def _insert_checkin(self, checkin):
        key = (checkin.user_id, checkin.date)
        if key in self.checkins:
            raise DuplicateKeyError("duplicate key value violates unique constraint")
        now = self._tick()
        stored = replace(checkin, id=self._new_id(), created_at=now, updated_at=now)
        self.checkins[key] = stored
        return replace(stored)

    def upsert_checkin(self, checkin):
        key = (checkin.user_id, checkin.date)
        existing = self.checkins.get(key)
        if existing is None:
            return self._insert_checkin(checkin)
        stored = replace(checkin, id=existing.id, created_at=existing.created_at, updated_at=self._tick())
        self.checkins[key] = stored
        return replace(stored)

    def _matching(self, user_id, start, end):
        return [
            c for (uid, _), c in self.checkins.items()
            if uid == user_id
            and (start is None or c.date >= start)
            and (end is None or c.date <= end)
        ]

    def find_checkins(self, user_id, start=None, end=None, descending=False, limit=None, offset=0):
        rows = sorted(self._matching(user_id, start, end), key=lambda c: c.date, reverse=descending)
        rows = rows[offset:]
        if limit is not None:
            rows = rows[:limit]
        return [replace(c) for c in rows]

    def count_checkins(self, user_id, start=None, end=None):
        return len(self._matching(user_id, start, end))

    def get_checkin_on(self, user_id, day):
        found = self.checkins.get((user_id, day))
        return replace(found) if found else None

    # stress

    def insert_stress_assessment(self, assessment):
        stored = replace(
            assessment,
            id=self._new_id(),
            created_at=assessment.created_at or self._tick(),
        )
        self.stress.append(stored)
        return replace(stored)

    def find_stress_assessments(self, user_id, since=None):
        rows = [a for a in self.stress if a.user_id == user_id and (since is None or a.created_at >= since)]
        return sorted(rows, key=lambda a: a.created_at)

    # weekly summaries

    def get_weekly_summary(self, user_id, week_start):
        found = self.summaries.get((user_id, week_start))
        return replace(found) if found else None

    def _write_summary(self, summary, existing):
        self.summary_writes += 1
        stored = replace(
            summary,
            id=existing.id if existing else self._new_id(),
            last_updated=summary.last_updated or self._tick(),
        )
        self.summaries[(summary.user_id, summary.week_start_date)] = stored
        return replace(stored)

    def _upsert_weekly_summary(self, summary):
        if self.upsert_races:
            self.upsert_races -= 1
            # another writer landed first
            self._write_summary(summary, None)
            raise DuplicateKeyError("duplicate key value violates unique constraint")
        return self._write_summary(summary, self.summaries.get((summary.user_id, summary.week_start_date)))

    def _update_weekly_summary(self, summary):
        existing = self.summaries.get((summary.user_id, summary.week_start_date))
        if existing is None or self.update_returns_none:
            return None
        return self._write_summary(summary, existing)

    def delete_weekly_summary(self, summary_id):
        self.deleted_summaries.append(summary_id)
        for key, value in list(self.summaries.items()):
            if value.id == summary_id:
                del self.summaries[key]


class StubLLM:
    """Stands in for crewai.LLM: ``call(prompt) -> str``."""

    def __init__(self, reply="Stub insight text.", error=None):
        self.reply = reply
        self.error = error
        self.prompts = []

    @property
    def calls(self):
        return len(self.prompts)

    def call(self, prompt):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def llm():
    return StubLLM()


@pytest.fixture
def ai(llm):
    return AIInsightAdapter(llm=llm, model="test-model", api_key="test-key", timeout=2)


@pytest.fixture
def failing_ai():
    return AIInsightAdapter(llm=StubLLM(error=RuntimeError("quota exceeded")), api_key="test-key", timeout=2)


@pytest.fixture
def make_checkin():
    def _make(day, feeling=7, sleep=6, stress=4, mood="calm", user_id="u1", checkin_id=None):
        return CheckIn(
            user_id=user_id,
            date=day,
            feeling_scale=feeling,
            sleep_quality=sleep,
            stress_level=stress,
            mood=mood,
            wellness_score=calculate_daily_score(feeling, sleep, stress),
            id=checkin_id,
        )
    return _make


@pytest.fixture
def seed(store, make_checkin):
    """Insert check-ins through the store so ids and timestamps are assigned."""
    def _seed(day, **kwargs):
        return store.create_checkin(make_checkin(day, **kwargs))
    return _seed
