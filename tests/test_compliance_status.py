from datetime import datetime, timedelta

import pytest

from app.services.compliance_status import (
    AlertThresholds,
    build_recommendations,
    classify,
    compute_compliance_score,
    count_compliant,
    days_until,
    derive_overall_status,
)

NOW = datetime(2026, 10, 19, 12, 0, 0)


def _task(days=None, status="pending", **extra):
    row = {"status": status, "deadline_date": NOW + timedelta(days=days) if days is not None else None}
    row.update(extra)
    return row


def _doc(days=None, status="uploaded", is_required=False):
    return {
        "status": status,
        "is_required": is_required,
        "expiration_date": NOW + timedelta(days=days) if days is not None else None,
    }


def _rec(days=None, is_active=True, last_completed_date=None):
    return {
        "is_active": is_active,
        "next_due_date": NOW + timedelta(days=days) if days is not None else None,
        "last_completed_date": last_completed_date,
    }


class TestDaysUntil:
    def test_rounds_partial_days_up(self):
        assert days_until(NOW + timedelta(hours=1), NOW) == 1
        assert days_until(NOW + timedelta(days=7, seconds=1), NOW) == 8

    def test_whole_days_and_now(self):
        assert days_until(NOW, NOW) == 0
        assert days_until(NOW + timedelta(days=7), NOW) == 7


class TestAlertThresholds:
    def test_defaults(self):
        assert AlertThresholds().as_dict() == {"critical": 7, "warning": 14, "info": 30}

    def test_per_field_fallback(self):
        t = AlertThresholds.from_mapping({"critical": None, "warning": "10", "info": True})
        assert (t.critical, t.warning, t.info) == (7, 10, 30)

    def test_empty_mapping(self):
        assert AlertThresholds.from_mapping(None) == AlertThresholds()
        assert AlertThresholds.from_mapping({}) == AlertThresholds()


class TestClassifyTracking:
    def test_overdue_not_completed(self):
        late = _task(-1)
        b = classify(NOW, [late], [], [])
        assert b.overdue_items == [late]
        assert b.critical_items == []

    def test_completed_and_undated_are_ignored(self):
        b = classify(NOW, [_task(-3, status="completed"), _task(None)], [], [])
        assert b.overdue_items == b.critical_items == b.warning_items == []

    @pytest.mark.parametrize(
        "days,bucket",
        [(0, "critical_items"), (7, "critical_items"), (8, "warning_items"), (14, "warning_items")],
    )
    def test_threshold_boundaries(self, days, bucket):
        item = _task(days)
        b = classify(NOW, [item], [], [])
        assert getattr(b, bucket) == [item]

    def test_beyond_warning_is_unbucketed(self):
        b = classify(NOW, [_task(15)], [], [])
        assert b.critical_items == b.warning_items == []

    def test_custom_thresholds(self):
        item = _task(5)
        b = classify(NOW, [item], [], [], AlertThresholds(critical=3, warning=10, info=30))
        assert b.critical_items == []
        assert b.warning_items == [item]

    def test_in_progress_items_are_still_classified(self):
        item = _task(-2, status="in_progress")
        assert classify(NOW, [item], [], []).overdue_items == [item]


class TestClassifyDocuments:
    def test_expired_regardless_of_status(self):
        verified = _doc(-1, status="verified")
        b = classify(NOW, [], [verified], [])
        assert b.expired_documents == [verified]
        assert b.expiring_documents == []

    def test_expiring_within_warning(self):
        soon = _doc(10)
        later = _doc(20)
        b = classify(NOW, [], [soon, later], [])
        assert b.expiring_documents == [soon]

    def test_missing_required(self):
        required = _doc(None, status="missing", is_required=True)
        optional = _doc(None, status="missing", is_required=False)
        b = classify(NOW, [], [required, optional], [])
        assert b.missing_required_documents == [required]

    def test_missing_required_can_also_be_expired(self):
        doc = _doc(-5, status="missing", is_required=True)
        b = classify(NOW, [], [doc], [])
        assert b.missing_required_documents == [doc]
        assert b.expired_documents == [doc]

    def test_missing_required_is_not_a_computed_bucket(self):
        b = classify(NOW, [], [_doc(None, status="missing", is_required=True)], [])
        assert "missing_required_documents" not in b.computed()
        assert len(b.computed()) == 7


class TestClassifyRecurring:
    def test_inactive_and_undated_are_ignored(self):
        b = classify(NOW, [], [], [_rec(-3, is_active=False), _rec(None)])
        assert b.overdue_recurring == b.upcoming_recurring == []

    def test_overdue_and_upcoming(self):
        overdue = _rec(-1)
        upcoming = _rec(30)
        too_far = _rec(31)
        b = classify(NOW, [], [], [overdue, upcoming, too_far])
        assert b.overdue_recurring == [overdue]
        assert b.upcoming_recurring == [upcoming]


class TestScore:
    def test_nothing_tracked_is_100(self):
        assert compute_compliance_score([], [], []) == 100

    @pytest.mark.parametrize(
        "compliant,total,expected",
        [(1, 3, 33), (2, 3, 67), (1, 2, 50), (1, 8, 13), (0, 4, 0), (5, 5, 100)],
    )
    def test_rounds_half_up(self, compliant, total, expected):
        tracking = [_task(1, status="completed")] * compliant + [_task(1)] * (total - compliant)
        assert compute_compliance_score(tracking, [], []) == expected

    def test_counts_across_kinds(self):
        tracking = [_task(1, status="completed"), _task(1)]
        documents = [_doc(None, status="verified"), _doc(None, status="uploaded"), _doc(None, status="missing")]
        recurring = [_rec(5, last_completed_date=NOW), _rec(5)]
        assert count_compliant(tracking, documents, recurring) == 4
        assert compute_compliance_score(tracking, documents, recurring) == 57

    def test_completed_recurring_counts_even_when_overdue(self):
        stale = _rec(-60, last_completed_date=NOW - timedelta(days=400))
        assert compute_compliance_score([], [], [stale]) == 100


class TestOverallStatus:
    def test_critical_on_any_overdue_or_expired(self):
        assert derive_overall_status(classify(NOW, [_task(-1)], [], [])) == "critical"
        assert derive_overall_status(classify(NOW, [], [_doc(-1)], [])) == "critical"
        assert derive_overall_status(classify(NOW, [], [], [_rec(-1)])) == "critical"

    def test_warning_on_near_deadlines(self):
        assert derive_overall_status(classify(NOW, [_task(3)], [], [])) == "warning"
        assert derive_overall_status(classify(NOW, [], [_doc(10)], [])) == "warning"
        assert derive_overall_status(classify(NOW, [], [], [_rec(20)])) == "warning"

    def test_good_otherwise(self):
        assert derive_overall_status(classify(NOW, [_task(10)], [], [])) == "good"
        assert derive_overall_status(classify(NOW, [], [], [])) == "good"


class TestRecommendations:
    def test_low_score_and_every_problem(self):
        b = classify(
            NOW,
            [],
            [_doc(-1), _doc(None, status="missing", is_required=True)],
            [_rec(-2)],
        )
        recs = build_recommendations(b, 79)
        assert recs == [
            "Focus on completing pending compliance items to improve your score",
            "Renew expired documents immediately to maintain compliance",
            "Upload required documents to ensure regulatory compliance",
            "Catch up on overdue recurring compliance tasks",
        ]

    def test_nothing_to_recommend(self):
        assert build_recommendations(classify(NOW, [], [], []), 80) == []
