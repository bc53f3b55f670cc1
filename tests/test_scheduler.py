from datetime import datetime, timedelta

from app.models.compliance_analytics import ComplianceAnalytics
from app.models.compliance_history import ComplianceHistory
from app.models.compliance_tracking import TrackingItem
from app.models.compliance_recurring import RecurringObligation
from app.worker import scheduler


def _seed(db, user_id, days):
    now = datetime.utcnow()
    db.add(TrackingItem(user_id=user_id, title=f"task for {user_id}", deadline_date=now + timedelta(days=days)))
    db.commit()


class TestDailyChecks:
    def test_checks_every_user(self, db, session_factory):
        _seed(db, "user-a", -1)
        _seed(db, "user-b", 20)
        db.add(RecurringObligation(user_id="user-c", name="Monthly close", next_due_date=datetime.utcnow()))
        db.commit()

        stats = scheduler.run_daily_compliance_checks(session_factory=session_factory)
        assert stats == {"users": 3, "ok": 3, "failed": 0}

        rows = {h.user_id: h for h in db.query(ComplianceHistory).all()}
        assert set(rows) == {"user-a", "user-b", "user-c"}
        assert rows["user-a"].overall_status == "critical"
        assert rows["user-b"].overall_status == "good"

    def test_failing_user_is_skipped(self, db, session_factory, monkeypatch):
        _seed(db, "user-a", 1)
        _seed(db, "user-bad", 1)

        real = scheduler.run_compliance_check

        def flaky(session, user_id):
            if user_id == "user-bad":
                raise RuntimeError("boom")
            return real(session, user_id)

        monkeypatch.setattr(scheduler, "run_compliance_check", flaky)
        stats = scheduler.run_daily_compliance_checks(session_factory=session_factory)
        assert stats == {"users": 2, "ok": 1, "failed": 1}
        assert [h.user_id for h in db.query(ComplianceHistory).all()] == ["user-a"]

    def test_no_users(self, session_factory):
        assert scheduler.run_daily_compliance_checks(session_factory=session_factory) == {
            "users": 0,
            "ok": 0,
            "failed": 0,
        }


class TestWeeklyReports:
    def test_stores_weekly_snapshot(self, db, session_factory):
        _seed(db, "user-a", -3)

        stats = scheduler.run_weekly_compliance_reports(session_factory=session_factory)
        assert stats["ok"] == 1

        report = db.query(ComplianceAnalytics).one()
        assert report.user_id == "user-a"
        assert report.report_type == "weekly"
        data = report.report_data
        assert data["overall_status"] == "critical"
        assert data["alerts"] == [
            {"level": "critical", "type": "overdue_items", "message": "1 compliance item(s) are overdue"}
        ]
        assert len(data["trends"]) == 1


class TestMakeScheduler:
    def test_jobs_from_env(self, monkeypatch):
        monkeypatch.setenv("APP_TIMEZONE", "UTC")
        monkeypatch.setenv("COMPLIANCE_CHECK_HOUR", "7")
        monkeypatch.setenv("COMPLIANCE_CHECK_MINUTE", "30")
        monkeypatch.setenv("COMPLIANCE_REPORT_DAY", "fri")

        sched = scheduler.make_scheduler()
        jobs = {job.id: job for job in sched.get_jobs()}
        assert set(jobs) == {"daily_compliance_check", "weekly_compliance_report"}

        daily = str(jobs["daily_compliance_check"].trigger)
        assert "hour='7'" in daily and "minute='30'" in daily
        weekly = str(jobs["weekly_compliance_report"].trigger)
        assert "day_of_week='fri'" in weekly and "hour='8'" in weekly
