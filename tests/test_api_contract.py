"""
Contract/behavior tests for src/api.py.

Services are swapped for in-memory ones through FastAPI dependency overrides.
These tests validate:
- success envelopes for every route
- the uniform {success, error, message} error envelope (400 / 500)
- duplicate check-ins surfacing as 400 duplicate_checkin
- weekly summary caching as seen by the client
"""

import pytest
from fastapi.testclient import TestClient

import api as api_mod
import routes.helpers as helpers_mod
from errors import PersistenceError
from pipeline.checkin_pipeline import CheckinPipeline
from pipeline.stress_pipeline import StressPipeline
from pipeline.weekly_summary import WeeklySummaryCache

CHECKIN = {"userId": "u1", "feelingScale": 8, "sleepQuality": 6, "stressLevel": 3, "mood": "calm"}


@pytest.fixture
def client(store, ai, today):
    app = api_mod.app
    app.dependency_overrides[helpers_mod.get_checkin_pipeline] = lambda: CheckinPipeline(store, ai, today=lambda: today)
    app.dependency_overrides[helpers_mod.get_stress_pipeline] = lambda: StressPipeline(store, ai, today=lambda: today)
    app.dependency_overrides[helpers_mod.get_summary_cache] = lambda: WeeklySummaryCache(store, ai, today=lambda: today)
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


def test_health(client):
    res = client.get("/health")
    assert res.status_code == 200
    assert res.json()["status"] == "OK"


# ─── Check-ins ───────────────────────────────────────────────


class TestCheckinRoutes:

    def test_analyze_envelope(self, client):
        res = client.post("/api/mental-health/analyze", json=CHECKIN)
        assert res.status_code == 200
        body = res.json()
        assert body["success"] is True
        analysis = body["analysis"]
        assert set(analysis) == {
            "wellnessScore", "dataInsights", "supportiveInsights",
            "trends", "summary", "timestamp", "checkinId",
        }
        assert analysis["wellnessScore"] == 7.4

    def test_validation_error_envelope(self, client):
        res = client.post("/api/mental-health/analyze", json={**CHECKIN, "stressLevel": 11})
        assert res.status_code == 400
        assert res.json() == {
            "success": False,
            "error": "validation_error",
            "message": "stressLevel must be between 1 and 10",
        }

    def test_non_object_body_is_400(self, client):
        res = client.post("/api/mental-health/analyze", json=[1, 2, 3])
        assert res.status_code == 400
        assert res.json()["error"] == "validation_error"

    def test_duplicate_is_400_not_500(self, client):
        client.post("/api/mental-health/analyze", json=CHECKIN)
        res = client.post("/api/mental-health/analyze", json=CHECKIN)
        assert res.status_code == 400
        assert res.json() == {
            "success": False,
            "error": "duplicate_checkin",
            "message": "You have already submitted a check-in for today",
        }

    def test_check_today(self, client):
        assert client.get("/api/mental-health/check-today/u1").json()["hasCheckedInToday"] is False
        client.post("/api/mental-health/analyze", json=CHECKIN)
        assert client.get("/api/mental-health/check-today/u1").json()["hasCheckedInToday"] is True

    def test_history_and_query_validation(self, client):
        client.post("/api/mental-health/analyze", json=CHECKIN)
        res = client.get("/api/mental-health/history/u1", params={"page": 1, "limit": 5})
        data = res.json()["data"]
        assert data["pagination"]["totalCount"] == 1
        assert data["checkins"][0]["wellnessScore"] == 7.4

        bad = client.get("/api/mental-health/history/u1", params={"page": 0})
        assert bad.status_code == 400
        assert bad.json()["error"] == "validation_error"

    def test_trends_and_correlations(self, client):
        assert client.get("/api/mental-health/trends/u1").json()["data"]["summary"] is None
        corr = client.get("/api/mental-health/correlations/u1").json()["data"]
        assert corr["correlations"]["minimumRequired"] == 5


# ─── Stress ──────────────────────────────────────────────────


class TestStressRoutes:

    def test_analyze_and_history(self, client, llm):
        llm.reply = '{"summary": "Mixed answers.", "trends": ["tense relationships"]}'
        res = client.post("/api/mental-health/stress/analyze", json={"userId": "u1", "answers": {"6": 4}})
        analysis = res.json()["analysis"]
        assert analysis["stressScore"] == 8
        assert analysis["stressLevel"] == "High"
        assert analysis["trends"] == ["tense relationships"]

        history = client.get("/api/mental-health/stress/history/u1").json()["data"]
        assert history["overall"]["count"] == 1

    def test_missing_answers(self, client):
        res = client.post("/api/mental-health/stress/analyze", json={"userId": "u1"})
        assert res.status_code == 400
        assert res.json()["message"] == "Answers are required"


# ─── Weekly summary ──────────────────────────────────────────


class TestWeeklySummaryRoutes:

    def test_no_data_week(self, client):
        res = client.post("/api/mental-health/summary/weekly-summary", json={"userId": "u1"})
        body = res.json()
        assert res.status_code == 200
        assert body["status"] == "no_data"
        assert body["weeklySummary"]["period"]["totalDays"] == 0
        assert "timestamp" in body["weeklySummary"]

    def test_generate_then_cached(self, client, llm):
        client.post("/api/mental-health/analyze", json=CHECKIN)
        calls_after_checkin = llm.calls

        first = client.post(
            "/api/mental-health/summary/weekly-summary",
            json={"userId": "u1", "weekStartDate": "2026-10-11T07:00:00.000Z"},
        ).json()
        second = client.get("/api/mental-health/summary/weekly-summary/u1", params={"week_start": "2026-10-13"}).json()

        assert first["status"] == "generated"
        assert first["weekStartDate"] == "2026-10-11"
        assert second["status"] == "cached"
        assert second["cached"] is True
        strip = lambda s: {k: v for k, v in s.items() if k != "timestamp"}  # noqa: E731
        assert strip(first["weeklySummary"]) == strip(second["weeklySummary"])
        assert llm.calls == calls_after_checkin + 1

    def test_missing_user(self, client):
        res = client.post("/api/mental-health/summary/weekly-summary", json={})
        assert res.status_code == 400
        assert res.json()["error"] == "validation_error"
        assert "userId" in res.json()["message"]

    @pytest.mark.parametrize("user_id", ["", "   "])
    def test_blank_user_is_rejected(self, client, store, user_id):
        res = client.post("/api/mental-health/summary/weekly-summary", json={"userId": user_id})
        assert res.status_code == 400
        assert res.json() == {"success": False, "error": "validation_error", "message": "userId is required"}
        assert store.summary_writes == 0

    def test_blank_user_rejected_on_reads(self, client):
        paths = [
            "/api/mental-health/summary/weekly-summary/%20",
            "/api/mental-health/check-today/%20",
            "/api/mental-health/stress/history/%20",
        ]
        for path in paths:
            res = client.get(path)
            assert res.status_code == 400, path
            assert res.json()["message"] == "userId is required"

        data = client.get("/api/mental-health/summary/weekly-data/2026-10-11/2026-10-17", params={"userId": ""})
        assert data.status_code == 400
        assert data.json()["error"] == "validation_error"

    def test_bad_week(self, client):
        res = client.post("/api/mental-health/summary/weekly-summary",
                          json={"userId": "u1", "weekStartDate": "soon"})
        assert res.status_code == 400

    def test_daily_checkin_upsert_and_weekly_data(self, client):
        first = client.post("/api/mental-health/summary/daily-checkin", json=CHECKIN).json()
        second = client.post("/api/mental-health/summary/daily-checkin", json={**CHECKIN, "mood": "tired"}).json()
        assert first["checkin"]["id"] == second["checkin"]["id"]
        assert second["checkin"]["mood"] == "tired"

        data = client.get(
            "/api/mental-health/summary/weekly-data/2026-10-11/2026-10-17", params={"userId": "u1"}
        ).json()
        assert len(data["weeklyData"]) == 1

    def test_weekly_data_bad_date(self, client):
        res = client.get("/api/mental-health/summary/weekly-data/yesterday/2026-10-17", params={"userId": "u1"})
        assert res.status_code == 400
        assert res.json()["message"] == "startDate must be an ISO date (YYYY-MM-DD)"

    def test_mood_check(self, client):
        body = client.post("/api/mental-health/summary/mood-check",
                           json={"mood": "anxious", "intensity": 2}).json()
        assert body["moodCheck"]["needsImmediateAttention"] is True


# ─── Failures ────────────────────────────────────────────────


def test_persistence_error_is_generic_500(client, store, monkeypatch):
    def boom(*args, **kwargs):
        raise PersistenceError()

    monkeypatch.setattr(store, "get_checkin_on", boom)
    res = client.get("/api/mental-health/check-today/u1")
    assert res.status_code == 500
    assert res.json() == {
        "success": False,
        "error": "persistence_error",
        "message": "A storage error occurred, please try again later",
    }


def test_unexpected_error_is_internal_500(client, store, monkeypatch):
    def boom(*args, **kwargs):
        raise KeyError("secret")

    monkeypatch.setattr(store, "find_checkins", boom)
    res = client.get("/api/mental-health/trends/u1")
    assert res.status_code == 500
    assert res.json() == {"success": False, "error": "internal_error", "message": "Internal server error"}
