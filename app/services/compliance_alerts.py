# app/services/compliance_alerts.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, NamedTuple, Optional

from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session

from app.models.compliance_alert import ComplianceAlert
from app.services.compliance_status import ComplianceBuckets

log = logging.getLogger("app.compliance")


class AlertKey(NamedTuple):
    """Identity of an alert condition. Compared structurally, never concatenated."""

    type: str
    message: str


@dataclass
class AlertCondition:
    type: str
    level: str
    message: str
    items: List[Any] = field(default_factory=list)

    @property
    def key(self) -> AlertKey:
        return AlertKey(self.type, self.message)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "type": self.type,
            "message": self.message,
            "items": self.items,
        }


@dataclass
class AlertSyncPlan:
    to_insert: List[AlertCondition] = field(default_factory=list)
    to_resolve: List[Any] = field(default_factory=list)  # stored alert rows

    @property
    def is_empty(self) -> bool:
        return not self.to_insert and not self.to_resolve


def _identity(x: Any) -> Any:
    return x


def build_alert_conditions(
    buckets: ComplianceBuckets,
    *,
    dump: Callable[[Any], Any] = _identity,
) -> List[AlertCondition]:
    """
    One condition per non-empty risk bucket. `dump` converts rows for the
    alert payload (e.g. ORM row -> dict).
    """
    conditions: List[AlertCondition] = []

    def _add(rows: List[Any], type_: str, level: str, message: str) -> None:
        if rows:
            conditions.append(
                AlertCondition(type=type_, level=level, message=message, items=[dump(r) for r in rows])
            )

    _add(
        buckets.overdue_items,
        "overdue_items",
        "critical",
        f"{len(buckets.overdue_items)} compliance item(s) are overdue",
    )
    _add(
        buckets.expired_documents,
        "expired_documents",
        "critical",
        f"{len(buckets.expired_documents)} document(s) have expired",
    )
    _add(
        buckets.missing_required_documents,
        "missing_documents",
        "warning",
        f"{len(buckets.missing_required_documents)} required document(s) are missing",
    )
    _add(
        buckets.overdue_recurring,
        "overdue_recurring",
        "critical",
        f"{len(buckets.overdue_recurring)} recurring compliance item(s) are overdue",
    )
    return conditions


def _stored_key(alert: Any) -> AlertKey:
    if isinstance(alert, dict):
        return AlertKey(alert.get("alert_type") or "", alert.get("message") or "")
    return AlertKey(alert.alert_type or "", alert.message or "")


def plan_alert_sync(
    conditions: Iterable[AlertCondition],
    active_alerts: Iterable[Any],
) -> AlertSyncPlan:
    """
    Diff fresh conditions against the stored *active* alerts.

      - to_insert: conditions with no active alert of the same key
      - to_resolve: active alerts whose key is no longer computed, plus any
        extra active alert repeating a key already kept
    Alerts whose key persists are left as they are (content is not refreshed).
    The first alert of a key in `active_alerts` is the one kept.
    """
    conditions = list(conditions)
    active_alerts = list(active_alerts)

    fresh_keys = {c.key for c in conditions}

    plan = AlertSyncPlan()
    kept = set()
    for a in active_alerts:
        key = _stored_key(a)
        if key in fresh_keys and key not in kept:
            kept.add(key)
        else:
            plan.to_resolve.append(a)

    for c in conditions:
        if c.key in kept:
            continue
        kept.add(c.key)
        plan.to_insert.append(c)

    return plan


def synchronize_alerts(
    db: Session,
    user_id: str,
    conditions: List[AlertCondition],
    *,
    now: Optional[datetime] = None,
) -> Optional[AlertSyncPlan]:
    """
    Persist the plan: insert new conditions as active/unread alerts and
    soft-close the stale ones. Best-effort: any failure is logged, rolled
    back and reported as None; it never fails the caller.
    """
    now = now or datetime.utcnow()
    try:
        active = (
            db.query(ComplianceAlert)
            .filter(ComplianceAlert.user_id == user_id, ComplianceAlert.is_active.is_(True))
            .order_by(ComplianceAlert.created_at.asc(), ComplianceAlert.id.asc())
            .all()
        )
        plan = plan_alert_sync(conditions, active)

        for c in plan.to_insert:
            db.add(
                ComplianceAlert(
                    user_id=user_id,
                    alert_type=c.type,
                    severity=c.level,
                    message=c.message,
                    alert_data=jsonable_encoder(c.as_dict()),
                    is_active=True,
                    is_read=False,
                    created_at=now,
                )
            )

        for a in plan.to_resolve:
            a.is_active = False
            a.resolved_at = now
            db.add(a)

        db.commit()
    except Exception:
        db.rollback()
        log.warning("Failed to sync compliance alerts for user_id=%s", user_id, exc_info=True)
        return None

    if not plan.is_empty:
        log.info(
            "Compliance alerts synced user_id=%s inserted=%s resolved=%s",
            user_id,
            len(plan.to_insert),
            len(plan.to_resolve),
        )
    return plan
