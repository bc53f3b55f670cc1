# app/worker/scheduler.py
from __future__ import annotations

import logging
import os
from typing import Callable, Dict

try:
    from tzlocal import get_localzone  # optional dependency
except Exception:
    get_localzone = None  # type: ignore

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from app.db.session import SessionLocal
from app.services.compliance import (
    generate_weekly_report,
    list_compliance_user_ids,
    run_compliance_check,
)

log = logging.getLogger("app.worker")


def _with_db(fn, session_factory: Callable = SessionLocal, **kwargs) -> bool:
    """Run fn(db, **kwargs) with a fresh DB session. Returns False (and logs) on failure."""
    db = session_factory()
    try:
        fn(db, **kwargs)
        return True
    except Exception:
        db.rollback()
        log.exception("Scheduled job %s failed (%s)", getattr(fn, "__name__", fn), kwargs)
        return False
    finally:
        db.close()


def _user_ids(session_factory: Callable) -> list:
    db = session_factory()
    try:
        return list_compliance_user_ids(db)
    finally:
        db.close()


def _for_each_user(fn, session_factory: Callable) -> Dict[str, int]:
    # one session per user; a failing user does not stop the others
    ok = failed = 0
    for user_id in _user_ids(session_factory):
        if _with_db(fn, session_factory, user_id=user_id):
            ok += 1
        else:
            failed += 1
    return {"users": ok + failed, "ok": ok, "failed": failed}


def run_daily_compliance_checks(session_factory: Callable = SessionLocal) -> Dict[str, int]:
    """Compliance check (status, alert sync, history row) for every user with compliance data."""
    stats = _for_each_user(run_compliance_check, session_factory)
    log.info("Daily compliance checks done: %s", stats)
    return stats


def run_weekly_compliance_reports(session_factory: Callable = SessionLocal) -> Dict[str, int]:
    """Weekly analytics snapshot for every user with compliance data."""
    stats = _for_each_user(generate_weekly_report, session_factory)
    log.info("Weekly compliance reports done: %s", stats)
    return stats


def make_scheduler() -> BackgroundScheduler:
    """
    Create and return a BackgroundScheduler configured from env:
      - APP_TIMEZONE             (default: system tz via tzlocal or 'UTC')
      - COMPLIANCE_CHECK_HOUR    (default: 9)
      - COMPLIANCE_CHECK_MINUTE  (default: 0)
      - COMPLIANCE_REPORT_DAY    (default: mon)
      - COMPLIANCE_REPORT_HOUR   (default: 8)
    """
    if get_localzone:
        try:
            tzname = os.getenv("APP_TIMEZONE") or str(get_localzone())
        except Exception:
            tzname = "UTC"
    else:
        tzname = os.getenv("APP_TIMEZONE", "UTC")

    check_hour = int(os.getenv("COMPLIANCE_CHECK_HOUR", "9"))
    check_minute = int(os.getenv("COMPLIANCE_CHECK_MINUTE", "0"))
    report_day = os.getenv("COMPLIANCE_REPORT_DAY", "mon")
    report_hour = int(os.getenv("COMPLIANCE_REPORT_HOUR", "8"))

    sched = BackgroundScheduler(timezone=tzname)

    sched.add_job(
        run_daily_compliance_checks,
        CronTrigger(hour=check_hour, minute=check_minute),
        id="daily_compliance_check",
        replace_existing=True,
    )
    sched.add_job(
        run_weekly_compliance_reports,
        CronTrigger(day_of_week=report_day, hour=report_hour, minute=0),
        id="weekly_compliance_report",
        replace_existing=True,
    )

    log.info(
        "Scheduler configured tz=%s daily=%02d:%02d weekly=%s %02d:00",
        tzname,
        check_hour,
        check_minute,
        report_day,
        report_hour,
    )
    return sched
