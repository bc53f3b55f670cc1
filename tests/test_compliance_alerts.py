from datetime import datetime, timedelta

from sqlalchemy.exc import OperationalError

from app.models.compliance_alert import ComplianceAlert
from app.services.compliance_alerts import (
    AlertCondition,
    AlertKey,
    build_alert_conditions,
    plan_alert_sync,
    synchronize_alerts,
)
from app.services.compliance_status import classify

NOW = datetime(2026, 10, 19, 12, 0, 0)
USER = "0c8d7f5a-1111-4000-8000-00000000000a"


def _overdue(n):
    return [{"status": "pending", "deadline_date": NOW - timedelta(days=i + 1)} for i in range(n)]


def _active(db):
    return (
        db.query(ComplianceAlert)
        .filter(ComplianceAlert.user_id == USER, ComplianceAlert.is_active.is_(True))
        .all()
    )


class TestBuildAlertConditions:
    def test_one_condition_per_non_empty_bucket(self):
        b = classify(
            NOW,
            _overdue(2),
            [
                {"status": "uploaded", "is_required": False, "expiration_date": NOW - timedelta(days=1)},
                {"status": "missing", "is_required": True, "expiration_date": None},
            ],
            [{"is_active": True, "next_due_date": NOW - timedelta(days=3)}],
        )
        conditions = build_alert_conditions(b)
        assert [(c.type, c.level, c.message) for c in conditions] == [
            ("overdue_items", "critical", "2 compliance item(s) are overdue"),
            ("expired_documents", "critical", "1 document(s) have expired"),
            ("missing_documents", "warning", "1 required document(s) are missing"),
            ("overdue_recurring", "critical", "1 recurring compliance item(s) are overdue"),
        ]
        assert len(conditions[0].items) == 2

    def test_nothing_to_report(self):
        assert build_alert_conditions(classify(NOW, [], [], [])) == []

    def test_dump_is_applied_to_items(self):
        conditions = build_alert_conditions(classify(NOW, _overdue(1), [], []), dump=lambda r: "x")
        assert conditions[0].items == ["x"]


class TestAlertKey:
    def test_structural_identity(self):
        a = AlertCondition("overdue_items", "critical", "1 compliance item(s) are overdue")
        assert a.key == AlertKey("overdue_items", "1 compliance item(s) are overdue")
        # fields are never joined into a single string
        assert AlertKey("a_b", "c") != AlertKey("a", "b_c")


class TestPlanAlertSync:
    def test_inserts_when_nothing_stored(self):
        c = AlertCondition("overdue_items", "critical", "1 compliance item(s) are overdue")
        plan = plan_alert_sync([c], [])
        assert plan.to_insert == [c]
        assert plan.to_resolve == []

    def test_persisting_key_is_untouched(self):
        c = AlertCondition("overdue_items", "critical", "1 compliance item(s) are overdue")
        stored = {"alert_type": "overdue_items", "message": "1 compliance item(s) are overdue"}
        plan = plan_alert_sync([c], [stored])
        assert plan.is_empty

    def test_stale_alert_is_resolved(self):
        stored = {"alert_type": "expired_documents", "message": "1 document(s) have expired"}
        plan = plan_alert_sync([], [stored])
        assert plan.to_resolve == [stored]

    def test_count_change_is_a_new_key(self):
        c = AlertCondition("overdue_items", "critical", "2 compliance item(s) are overdue")
        stored = {"alert_type": "overdue_items", "message": "1 compliance item(s) are overdue"}
        plan = plan_alert_sync([c], [stored])
        assert plan.to_insert == [c]
        assert plan.to_resolve == [stored]

    def test_duplicate_conditions_insert_once(self):
        c1 = AlertCondition("overdue_items", "critical", "1 compliance item(s) are overdue")
        c2 = AlertCondition("overdue_items", "critical", "1 compliance item(s) are overdue")
        assert plan_alert_sync([c1, c2], []).to_insert == [c1]

    def test_duplicate_active_alerts_converge_to_one(self):
        c = AlertCondition("overdue_items", "critical", "1 compliance item(s) are overdue")
        first = {"id": 1, "alert_type": "overdue_items", "message": "1 compliance item(s) are overdue"}
        extra = {"id": 2, "alert_type": "overdue_items", "message": "1 compliance item(s) are overdue"}
        plan = plan_alert_sync([c], [first, extra])
        assert plan.to_insert == []
        assert plan.to_resolve == [extra]


class TestSynchronizeAlerts:
    def test_insert_then_idempotent(self, db):
        conditions = build_alert_conditions(classify(NOW, _overdue(1), [], []))

        first = synchronize_alerts(db, USER, conditions, now=NOW)
        assert len(first.to_insert) == 1
        rows = _active(db)
        assert len(rows) == 1
        assert rows[0].is_read is False
        assert rows[0].severity == "critical"
        assert rows[0].alert_data["type"] == "overdue_items"

        second = synchronize_alerts(db, USER, conditions, now=NOW)
        assert second.is_empty
        assert len(_active(db)) == 1

    def test_resolves_when_condition_clears(self, db):
        synchronize_alerts(db, USER, build_alert_conditions(classify(NOW, _overdue(1), [], [])), now=NOW)

        later = NOW + timedelta(hours=1)
        plan = synchronize_alerts(db, USER, [], now=later)
        assert len(plan.to_resolve) == 1
        assert _active(db) == []

        closed = db.query(ComplianceAlert).filter(ComplianceAlert.user_id == USER).one()
        assert closed.is_active is False
        assert closed.resolved_at == later

    def test_other_users_are_not_touched(self, db):
        synchronize_alerts(db, "someone-else", build_alert_conditions(classify(NOW, _overdue(1), [], [])), now=NOW)
        synchronize_alerts(db, USER, [], now=NOW)
        other = db.query(ComplianceAlert).filter(ComplianceAlert.user_id == "someone-else").one()
        assert other.is_active is True

    def test_duplicate_active_rows_are_resolved(self, db):
        conditions = build_alert_conditions(classify(NOW, _overdue(1), [], []))
        for minutes in (0, 1):
            db.add(
                ComplianceAlert(
                    user_id=USER,
                    alert_type="overdue_items",
                    severity="critical",
                    message="1 compliance item(s) are overdue",
                    is_active=True,
                    created_at=NOW + timedelta(minutes=minutes),
                )
            )
        db.commit()

        plan = synchronize_alerts(db, USER, conditions, now=NOW + timedelta(hours=1))
        assert plan.to_insert == []
        assert len(plan.to_resolve) == 1
        rows = _active(db)
        assert len(rows) == 1
        assert rows[0].created_at == NOW

    def test_store_failure_is_swallowed(self):
        class BrokenSession:
            rolled_back = False

            def query(self, *a, **kw):
                raise OperationalError("SELECT", {}, Exception("db down"))

            def rollback(self):
                self.rolled_back = True

        session = BrokenSession()
        assert synchronize_alerts(session, USER, [], now=NOW) is None
        assert session.rolled_back is True
