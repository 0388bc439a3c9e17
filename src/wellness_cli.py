"""
Wellness CLI: operator commands against the check-in database
==============================================================

Usage:
    python wellness_cli.py init-db
    python wellness_cli.py audit
    python wellness_cli.py weekly-summary --user U123 [--week 2026-10-11]
    python wellness_cli.py correlations --user U123 [--days 30]

Output is JSON on stdout; progress goes to the log.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
log = logging.getLogger("wellness_cli")

from ai_insights import AIInsightAdapter
from errors import WellnessError
from pipeline.checkin_pipeline import CheckinPipeline
from pipeline.migrations import ensure_startup_schema, schema_audit
from pipeline.weekly_summary import WeeklySummaryCache, parse_week_start
from store import PostgresWellnessStore


def _print(payload) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False, default=str))


def cmd_init_db(args) -> int:
    ensure_startup_schema()
    return 0


def cmd_audit(args) -> int:
    audit = schema_audit()
    _print(audit)
    return 0 if audit["ok"] else 1


def cmd_weekly_summary(args) -> int:
    cache = WeeklySummaryCache(PostgresWellnessStore(), AIInsightAdapter())
    outcome = cache.generate(args.user, parse_week_start(args.week))
    log.info("Weekly summary for %s: %s", args.user, outcome.status)
    _print({"status": outcome.status, **outcome.summary.to_dict()})
    return 0


def cmd_correlations(args) -> int:
    pipeline = CheckinPipeline(PostgresWellnessStore(), AIInsightAdapter())
    _print(pipeline.correlations(args.user, days=args.days))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Mental-health check-in backend tools")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create tables and indexes (idempotent)").set_defaults(func=cmd_init_db)
    sub.add_parser("audit", help="Report missing tables or columns").set_defaults(func=cmd_audit)

    weekly = sub.add_parser("weekly-summary", help="Build or refresh one user's weekly summary")
    weekly.add_argument("--user", required=True, help="User id")
    weekly.add_argument("--week", default=None,
                        help="Any date inside the week (default: current week)")
    weekly.set_defaults(func=cmd_weekly_summary)

    corr = sub.add_parser("correlations", help="Metric correlations over a trailing window")
    corr.add_argument("--user", required=True, help="User id")
    corr.add_argument("--days", type=int, default=30, help="Window length (default: 30)")
    corr.set_defaults(func=cmd_correlations)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return args.func(args)
    except (WellnessError, ValueError, RuntimeError) as e:
        log.error("%s failed: %s", args.command, e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
