"""
FastAPI backend contract for the mobile check-in client.

Route handlers are defined here; service wiring and shared utilities live in
routes/helpers.py.  Every error leaves as ``{success: false, error, message}``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import Body, Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

import settings
from errors import WellnessError
from models import utc_timestamp
from pipeline.checkin_pipeline import CheckinPipeline
from pipeline.migrations import schema_audit
from pipeline.stress_pipeline import StressPipeline
from pipeline.weekly_summary import WeeklySummaryCache
from routes.helpers import (
    get_checkin_pipeline, get_stress_pipeline, get_summary_cache,
    ok, parse_day, parse_optional_week, require_user_id, weekly_summary_payload,
)

log = logging.getLogger("api")


# ─── App setup ─────────────────────────────────────────────

app = FastAPI(title="Mental Health Check-in API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.frontend_origins(),
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)


@app.exception_handler(WellnessError)
async def handle_wellness_error(request: Request, exc: WellnessError) -> JSONResponse:
    if exc.status_code >= 500:
        log.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(RequestValidationError)
async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    else:
        message = "Invalid request"
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": "validation_error", "message": message},
    )


@app.exception_handler(Exception)
async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    log.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "internal_error", "message": "Internal server error"},
    )


class WeeklySummaryRequest(BaseModel):
    userId: str
    weekStartDate: Optional[str] = None


# ─── Routes ────────────────────────────────────────────────

@app.get("/health")
def health() -> Dict[str, Any]:
    return {"status": "OK", "message": "Mental health API is running", "timestamp": utc_timestamp()}


@app.get("/api/admin/migration-audit")
def migration_audit() -> Dict[str, Any]:
    return schema_audit()


# ─── Check-ins ─────────────────────────────────────────────

@app.post("/api/mental-health/analyze")
def analyze_checkin(
    payload: Dict[str, Any] = Body(...),
    pipeline: CheckinPipeline = Depends(get_checkin_pipeline),
) -> Dict[str, Any]:
    return ok(analysis=pipeline.analyze(payload))


@app.get("/api/mental-health/check-today/{user_id}")
def check_today(user_id: str, pipeline: CheckinPipeline = Depends(get_checkin_pipeline)) -> Dict[str, Any]:
    return ok(hasCheckedInToday=pipeline.has_checked_in_today(require_user_id(user_id)))


@app.get("/api/mental-health/history/{user_id}")
def checkin_history(
    user_id: str,
    days: int = Query(default=30, ge=1, le=3650),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    pipeline: CheckinPipeline = Depends(get_checkin_pipeline),
) -> Dict[str, Any]:
    return ok(data=pipeline.history(require_user_id(user_id), days=days, page=page, limit=limit))


@app.get("/api/mental-health/trends/{user_id}")
def checkin_trends(
    user_id: str,
    days: int = Query(default=7, ge=1, le=3650),
    pipeline: CheckinPipeline = Depends(get_checkin_pipeline),
) -> Dict[str, Any]:
    return ok(data=pipeline.wellness_trends(require_user_id(user_id), days=days))


@app.get("/api/mental-health/correlations/{user_id}")
def checkin_correlations(
    user_id: str,
    days: int = Query(default=30, ge=1, le=3650),
    pipeline: CheckinPipeline = Depends(get_checkin_pipeline),
) -> Dict[str, Any]:
    return ok(data=pipeline.correlations(require_user_id(user_id), days=days))


# ─── Stress assessments ────────────────────────────────────

@app.post("/api/mental-health/stress/analyze")
def analyze_stress(
    payload: Dict[str, Any] = Body(...),
    pipeline: StressPipeline = Depends(get_stress_pipeline),
) -> Dict[str, Any]:
    return ok(analysis=pipeline.analyze(payload))


@app.get("/api/mental-health/stress/history/{user_id}")
def stress_history(
    user_id: str,
    days: int = Query(default=30, ge=1, le=3650),
    pipeline: StressPipeline = Depends(get_stress_pipeline),
) -> Dict[str, Any]:
    return ok(data=pipeline.history(require_user_id(user_id), days=days))


# ─── Weekly summary ────────────────────────────────────────

@app.post("/api/mental-health/summary/weekly-summary")
def generate_weekly_summary(
    body: WeeklySummaryRequest,
    cache: WeeklySummaryCache = Depends(get_summary_cache),
) -> Dict[str, Any]:
    outcome = cache.generate(require_user_id(body.userId), parse_optional_week(body.weekStartDate))
    return weekly_summary_payload(outcome)


@app.get("/api/mental-health/summary/weekly-summary/{user_id}")
def get_weekly_summary(
    user_id: str,
    week_start: Optional[str] = Query(default=None),
    cache: WeeklySummaryCache = Depends(get_summary_cache),
) -> Dict[str, Any]:
    return weekly_summary_payload(cache.generate(require_user_id(user_id), parse_optional_week(week_start)))


@app.post("/api/mental-health/summary/daily-checkin")
def save_daily_checkin(
    payload: Dict[str, Any] = Body(...),
    pipeline: CheckinPipeline = Depends(get_checkin_pipeline),
) -> Dict[str, Any]:
    return ok(checkin=pipeline.save_daily_checkin(payload).to_dict())


@app.get("/api/mental-health/summary/weekly-data/{start_date}/{end_date}")
def weekly_data(
    start_date: str,
    end_date: str,
    userId: str = Query(...),
    pipeline: CheckinPipeline = Depends(get_checkin_pipeline),
) -> Dict[str, Any]:
    user_id = require_user_id(userId)
    start = parse_day(start_date, "startDate")
    end = parse_day(end_date, "endDate")
    return ok(weeklyData=pipeline.weekly_data(user_id, start, end))


@app.post("/api/mental-health/summary/mood-check")
def mood_check(payload: Dict[str, Any] = Body(...)) -> Dict[str, Any]:
    return ok(moodCheck=CheckinPipeline.quick_mood_check(payload))


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s  %(levelname)-8s  %(message)s")
    uvicorn.run(app, host="0.0.0.0", port=settings.port())
