# app/services/compliance_status.py
from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional

SECONDS_PER_DAY = 24 * 60 * 60

OVERALL_GOOD = "good"
OVERALL_WARNING = "warning"
OVERALL_CRITICAL = "critical"

TRACKING_DONE = {"completed"}
DOCUMENT_COMPLIANT = {"verified", "uploaded"}


@dataclass(frozen=True)
class AlertThresholds:
    """
    Day counts that split upcoming deadlines into buckets.

      - critical: deadline within N days            (default 7)
      - warning:  deadline within (critical, N] days (default 14)
      - info:     horizon for upcoming recurring     (default 30)
    """

    critical: int = 7
    warning: int = 14
    info: int = 30

    @classmethod
    def from_mapping(cls, raw: Optional[Mapping[str, Any]]) -> "AlertThresholds":
        """Per-field fallback to the defaults for missing/None/invalid values."""
        defaults = cls()
        if not raw:
            return defaults

        def _pick(name: str) -> int:
            v = raw.get(name)
            if v is None or isinstance(v, bool):
                return getattr(defaults, name)
            try:
                return int(v)
            except (TypeError, ValueError):
                return getattr(defaults, name)

        return cls(
            critical=_pick("critical"),
            warning=_pick("warning"),
            info=_pick("info"),
        )

    def as_dict(self) -> Dict[str, int]:
        return {"critical": self.critical, "warning": self.warning, "info": self.info}


DEFAULT_THRESHOLDS = AlertThresholds()
DEFAULT_NOTIFICATION_PREFERENCES: Dict[str, bool] = {"email": True, "app": True, "sms": False}


def _field(obj: Any, name: str) -> Any:
    """Read an attribute from an ORM row or a key from a dict."""
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def _status(obj: Any) -> str:
    return (_field(obj, "status") or "").lower()


def days_until(when: datetime, now: datetime) -> int:
    """Whole days until `when`, rounded up (a deadline later today is 1, one passed earlier today is 0)."""
    return math.ceil((when - now).total_seconds() / SECONDS_PER_DAY)


@dataclass
class ComplianceBuckets:
    overdue_items: List[Any] = field(default_factory=list)
    critical_items: List[Any] = field(default_factory=list)
    warning_items: List[Any] = field(default_factory=list)
    expired_documents: List[Any] = field(default_factory=list)
    expiring_documents: List[Any] = field(default_factory=list)
    missing_required_documents: List[Any] = field(default_factory=list)
    overdue_recurring: List[Any] = field(default_factory=list)
    upcoming_recurring: List[Any] = field(default_factory=list)

    def computed(self) -> Dict[str, List[Any]]:
        """The buckets shown on the dashboard as `alerts.computed`."""
        return {
            "overdue_items": self.overdue_items,
            "critical_items": self.critical_items,
            "warning_items": self.warning_items,
            "expired_documents": self.expired_documents,
            "expiring_documents": self.expiring_documents,
            "overdue_recurring": self.overdue_recurring,
            "upcoming_recurring": self.upcoming_recurring,
        }


def classify(
    now: datetime,
    tracking: Iterable[Any],
    documents: Iterable[Any],
    recurring: Iterable[Any],
    thresholds: AlertThresholds = DEFAULT_THRESHOLDS,
) -> ComplianceBuckets:
    """
    Partition items into deadline buckets.

    Rows without a date never enter a date-based bucket. The boundary day
    (days_until == threshold) belongs to the bucket whose upper bound is inclusive.
    """
    b = ComplianceBuckets()

    for item in tracking:
        if _status(item) in TRACKING_DONE:
            continue
        deadline = _field(item, "deadline_date")
        if deadline is None:
            continue
        if deadline < now:
            b.overdue_items.append(item)
            continue
        d = days_until(deadline, now)
        if d <= thresholds.critical:
            b.critical_items.append(item)
        elif d <= thresholds.warning:
            b.warning_items.append(item)

    for doc in documents:
        if _field(doc, "is_required") and _status(doc) == "missing":
            b.missing_required_documents.append(doc)
        expires = _field(doc, "expiration_date")
        if expires is None:
            continue
        if expires < now:
            b.expired_documents.append(doc)
        elif days_until(expires, now) <= thresholds.warning:
            b.expiring_documents.append(doc)

    for item in recurring:
        if not _field(item, "is_active"):
            continue
        due = _field(item, "next_due_date")
        if due is None:
            continue
        if due < now:
            b.overdue_recurring.append(item)
        elif days_until(due, now) <= thresholds.info:
            b.upcoming_recurring.append(item)

    return b


def count_compliant(
    tracking: Iterable[Any], documents: Iterable[Any], recurring: Iterable[Any]
) -> int:
    # NOTE: a recurring item counts once it has *ever* been completed; recency is not checked.
    return (
        sum(1 for t in tracking if _status(t) in TRACKING_DONE)
        + sum(1 for d in documents if _status(d) in DOCUMENT_COMPLIANT)
        + sum(1 for r in recurring if _field(r, "last_completed_date") is not None)
    )


def compute_compliance_score(
    tracking: List[Any], documents: List[Any], recurring: List[Any]
) -> int:
    """
    0-100 integer: share of tracked items in a compliant state, rounded half up.
    Nothing tracked is vacuously compliant (100).
    """
    total = len(tracking) + len(documents) + len(recurring)
    if total == 0:
        return 100
    compliant = count_compliant(tracking, documents, recurring)
    # integer round-half-up of 100 * compliant / total
    return (200 * compliant + total) // (2 * total)


def derive_overall_status(buckets: ComplianceBuckets) -> str:
    if buckets.overdue_items or buckets.expired_documents or buckets.overdue_recurring:
        return OVERALL_CRITICAL
    if buckets.critical_items or buckets.expiring_documents or buckets.upcoming_recurring:
        return OVERALL_WARNING
    return OVERALL_GOOD


def build_recommendations(buckets: ComplianceBuckets, score: int) -> List[str]:
    recs: List[str] = []
    if score < 80:
        recs.append("Focus on completing pending compliance items to improve your score")
    if buckets.expired_documents:
        recs.append("Renew expired documents immediately to maintain compliance")
    if buckets.missing_required_documents:
        recs.append("Upload required documents to ensure regulatory compliance")
    if buckets.overdue_recurring:
        recs.append("Catch up on overdue recurring compliance tasks")
    return recs
