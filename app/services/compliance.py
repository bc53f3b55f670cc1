# app/services/compliance.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Type

from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel
from sqlalchemy import select, union
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.compliance_alert import ComplianceAlert
from app.models.compliance_analytics import ComplianceAnalytics
from app.models.compliance_document import ComplianceDocument
from app.models.compliance_history import ComplianceHistory
from app.models.compliance_preferences import CompliancePreferences
from app.models.compliance_recurring import RecurringObligation
from app.models.compliance_rule import ComplianceRule
from app.models.compliance_tracking import TrackingItem
from app.schemas.compliance import (
    AlertOut,
    AnalyticsOut,
    DocumentOut,
    HistoryOut,
    PreferencesOut,
    RecurringOut,
    RuleOut,
    TrackingItemOut,
)
from app.services.compliance_alerts import build_alert_conditions, synchronize_alerts
from app.services.compliance_status import (
    DEFAULT_NOTIFICATION_PREFERENCES,
    AlertThresholds,
    build_recommendations,
    classify,
    compute_compliance_score,
    count_compliant,
    derive_overall_status,
)

log = logging.getLogger("app.compliance")

HISTORY_LIMIT = 10
ALERTS_LIMIT = 20
ANALYTICS_LIMIT = 5
TRENDS_LIMIT = 30


# =========================
# Serialization helpers
# =========================
def _dumper(schema: Type[BaseModel]) -> Callable[[Any], Dict[str, Any]]:
    def _dump(row: Any) -> Dict[str, Any]:
        return schema.model_validate(row).model_dump()

    return _dump


dump_tracking = _dumper(TrackingItemOut)
dump_document = _dumper(DocumentOut)
dump_recurring = _dumper(RecurringOut)


def _dump_any(row: Any) -> Dict[str, Any]:
    """Serialize a bucket row with the schema matching its model."""
    if isinstance(row, TrackingItem):
        return dump_tracking(row)
    if isinstance(row, ComplianceDocument):
        return dump_document(row)
    if isinstance(row, RecurringObligation):
        return dump_recurring(row)
    return row


def _dump_all(rows: List[Any], schema: Type[BaseModel]) -> List[Dict[str, Any]]:
    return [schema.model_validate(r).model_dump() for r in rows]


def preferences_view(row: Optional[CompliancePreferences]) -> Dict[str, Any]:
    """Stored preferences with defaults filled in for anything missing."""
    thresholds = AlertThresholds.from_mapping(row.alert_thresholds if row else None)
    notif = dict(DEFAULT_NOTIFICATION_PREFERENCES)
    if row and row.notification_preferences:
        notif.update({k: bool(v) for k, v in row.notification_preferences.items() if v is not None})
    return PreferencesOut(
        user_id=row.user_id if row else None,
        alert_thresholds=thresholds.as_dict(),
        notification_preferences=notif,
        updated_at=row.updated_at if row else None,
    ).model_dump()


# =========================
# Data fetcher
# =========================
@dataclass
class ComplianceData:
    tracking: List[TrackingItem] = field(default_factory=list)
    documents: List[ComplianceDocument] = field(default_factory=list)
    recurring: List[RecurringObligation] = field(default_factory=list)
    preferences: Optional[CompliancePreferences] = None
    history: List[ComplianceHistory] = field(default_factory=list)
    alerts: List[ComplianceAlert] = field(default_factory=list)
    rules: List[ComplianceRule] = field(default_factory=list)
    analytics: List[ComplianceAnalytics] = field(default_factory=list)

    @property
    def thresholds(self) -> AlertThresholds:
        return AlertThresholds.from_mapping(
            self.preferences.alert_thresholds if self.preferences else None
        )


def _safe_read(db: Session, label: str, fn: Callable[[], Any], default: Any) -> Any:
    """
    Run one read; a data-store error degrades to `default` (partial data)
    instead of failing the whole request.
    """
    try:
        return fn()
    except SQLAlchemyError:
        db.rollback()
        log.warning("Compliance read failed (%s); using fallback", label, exc_info=True)
        return default


def _load_tracking(db: Session, user_id: str) -> List[TrackingItem]:
    return (
        db.query(TrackingItem)
        .filter(TrackingItem.user_id == user_id)
        .order_by(TrackingItem.deadline_date.asc(), TrackingItem.id.asc())
        .all()
    )


def _load_documents(db: Session, user_id: str) -> List[ComplianceDocument]:
    return (
        db.query(ComplianceDocument)
        .filter(ComplianceDocument.user_id == user_id)
        .order_by(ComplianceDocument.expiration_date.asc(), ComplianceDocument.id.asc())
        .all()
    )


def _load_recurring(db: Session, user_id: str) -> List[RecurringObligation]:
    return (
        db.query(RecurringObligation)
        .filter(RecurringObligation.user_id == user_id)
        .order_by(RecurringObligation.next_due_date.asc(), RecurringObligation.id.asc())
        .all()
    )


def _load_preferences(db: Session, user_id: str) -> Optional[CompliancePreferences]:
    return (
        db.query(CompliancePreferences)
        .filter(CompliancePreferences.user_id == user_id)
        .first()
    )


def _load_history(db: Session, user_id: str, limit: int = HISTORY_LIMIT) -> List[ComplianceHistory]:
    return (
        db.query(ComplianceHistory)
        .filter(ComplianceHistory.user_id == user_id)
        .order_by(ComplianceHistory.check_date.desc(), ComplianceHistory.id.desc())
        .limit(limit)
        .all()
    )


def _load_alerts(db: Session, user_id: str) -> List[ComplianceAlert]:
    return (
        db.query(ComplianceAlert)
        .filter(ComplianceAlert.user_id == user_id)
        .order_by(ComplianceAlert.created_at.desc(), ComplianceAlert.id.desc())
        .limit(ALERTS_LIMIT)
        .all()
    )


def _load_rules(db: Session) -> List[ComplianceRule]:
    return (
        db.query(ComplianceRule)
        .filter(ComplianceRule.is_active.is_(True))
        .order_by(ComplianceRule.rule_name.asc())
        .all()
    )


def _load_analytics(db: Session, user_id: str) -> List[ComplianceAnalytics]:
    return (
        db.query(ComplianceAnalytics)
        .filter(ComplianceAnalytics.user_id == user_id)
        .order_by(ComplianceAnalytics.report_date.desc(), ComplianceAnalytics.id.desc())
        .limit(ANALYTICS_LIMIT)
        .all()
    )


def fetch_compliance_data(
    db: Session, user_id: str, *, full: bool = True, strict: bool = False
) -> ComplianceData:
    """
    Read everything the dashboard needs for one user. With full=False only the
    inputs of a compliance check are read (items + preferences).

    strict=True lets a failed item read raise instead of degrading to an empty
    list; callers that write alerts or history from the result must use it.
    """

    def _read(label: str, fn: Callable[[], Any], default: Any) -> Any:
        return fn() if strict else _safe_read(db, label, fn, default)

    data = ComplianceData(
        tracking=_read("tracking", lambda: _load_tracking(db, user_id), []),
        documents=_read("documents", lambda: _load_documents(db, user_id), []),
        recurring=_read("recurring", lambda: _load_recurring(db, user_id), []),
        preferences=_read("preferences", lambda: _load_preferences(db, user_id), None),
    )
    if full:
        data.history = _safe_read(db, "history", lambda: _load_history(db, user_id), [])
        data.alerts = _safe_read(db, "alerts", lambda: _load_alerts(db, user_id), [])
        data.rules = _safe_read(db, "rules", lambda: _load_rules(db), [])
        data.analytics = _safe_read(db, "analytics", lambda: _load_analytics(db, user_id), [])
    return data


# =========================
# Overview (GET)
# =========================
def build_overview(
    data: ComplianceData,
    *,
    now: Optional[datetime] = None,
    thresholds: Optional[AlertThresholds] = None,
) -> Dict[str, Any]:
    now = now or datetime.utcnow()
    thresholds = thresholds or data.thresholds

    buckets = classify(now, data.tracking, data.documents, data.recurring, thresholds)
    score = compute_compliance_score(data.tracking, data.documents, data.recurring)

    active = [a for a in data.alerts if a.is_active]
    resolved = [a for a in data.alerts if not a.is_active]

    return {
        "overall_status": derive_overall_status(buckets),
        "compliance_score": score,
        "tracking_items": _dump_all(data.tracking, TrackingItemOut),
        "documents": _dump_all(data.documents, DocumentOut),
        "history": _dump_all(data.history, HistoryOut),
        "preferences": preferences_view(data.preferences),
        "recurring_items": _dump_all(data.recurring, RecurringOut),
        "alerts": {
            "computed": {k: [_dump_any(r) for r in rows] for k, rows in buckets.computed().items()},
            "active": _dump_all(active, AlertOut),
            "recent": _dump_all(data.alerts, AlertOut),
            "resolved": _dump_all(resolved, AlertOut),
        },
        "rules": _dump_all(data.rules, RuleOut),
        "analytics": _dump_all(data.analytics, AnalyticsOut),
        "summary": {
            "total_tracking_items": len(data.tracking),
            "completed_items": sum(1 for t in data.tracking if t.status == "completed"),
            "pending_items": sum(1 for t in data.tracking if t.status == "pending"),
            "overdue_count": len(buckets.overdue_items),
            "total_documents": len(data.documents),
            "verified_documents": sum(1 for d in data.documents if d.status == "verified"),
            "missing_documents": sum(1 for d in data.documents if d.status == "missing"),
            "expired_documents": len(buckets.expired_documents),
            "total_recurring_items": len(data.recurring),
            "active_recurring_items": sum(1 for r in data.recurring if r.is_active),
            "overdue_recurring": len(buckets.overdue_recurring),
        },
    }


def get_compliance_overview(db: Session, user_id: str, *, now: Optional[datetime] = None) -> Dict[str, Any]:
    return build_overview(fetch_compliance_data(db, user_id), now=now)


# =========================
# Compliance check (POST run_compliance_check, scheduler)
# =========================
def log_compliance_check(db: Session, user_id: str, result: Dict[str, Any], *, now: datetime) -> bool:
    """Best-effort history row for an executed check. Returns False if it could not be written."""
    try:
        db.add(
            ComplianceHistory(
                user_id=user_id,
                check_date=now,
                overall_status=result["overall_status"],
                compliance_score=result["compliance_score"],
                results=jsonable_encoder(result),
                alerts_generated=jsonable_encoder(result.get("alerts") or []),
                recommendations=list(result.get("recommendations") or []),
            )
        )
        db.commit()
        return True
    except SQLAlchemyError:
        db.rollback()
        log.warning("Failed to log compliance check for user_id=%s", user_id, exc_info=True)
        return False


def run_compliance_check(db: Session, user_id: str, *, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Recompute status for one user, reconcile stored alerts with the fresh
    conditions and record the run in compliance_history.
    """
    now = now or datetime.utcnow()
    data = fetch_compliance_data(db, user_id, full=False, strict=True)

    buckets = classify(now, data.tracking, data.documents, data.recurring, data.thresholds)
    score = compute_compliance_score(data.tracking, data.documents, data.recurring)
    overall = derive_overall_status(buckets)
    conditions = build_alert_conditions(buckets, dump=_dump_any)
    recommendations = build_recommendations(buckets, score)

    plan = synchronize_alerts(db, user_id, conditions, now=now)

    result: Dict[str, Any] = {
        "checked_at": now,
        "overall_status": overall,
        "compliance_score": score,
        "alerts": [c.as_dict() for c in conditions],
        "recommendations": recommendations,
        "summary": {
            "total_items": len(data.tracking) + len(data.documents) + len(data.recurring),
            "compliant_items": count_compliant(data.tracking, data.documents, data.recurring),
            "overdue_items": len(buckets.overdue_items),
            "expired_documents": len(buckets.expired_documents),
            "missing_documents": len(buckets.missing_required_documents),
            "overdue_recurring": len(buckets.overdue_recurring),
            "upcoming_recurring": len(buckets.upcoming_recurring),
        },
        "detail": {
            "overdue_items": [_dump_any(r) for r in buckets.overdue_items],
            "expired_documents": [_dump_any(r) for r in buckets.expired_documents],
            "missing_required_documents": [_dump_any(r) for r in buckets.missing_required_documents],
            "overdue_recurring": [_dump_any(r) for r in buckets.overdue_recurring],
            "upcoming_recurring": [_dump_any(r) for r in buckets.upcoming_recurring],
        },
        "alert_sync": (
            {"inserted": len(plan.to_insert), "resolved": len(plan.to_resolve)}
            if plan is not None
            else None
        ),
    }

    log_compliance_check(db, user_id, result, now=now)
    log.info(
        "Compliance check user_id=%s status=%s score=%s alerts=%s",
        user_id,
        overall,
        score,
        len(conditions),
    )
    return result


# =========================
# Reporting (weekly analytics, trends)
# =========================
def get_compliance_trends(db: Session, user_id: str, limit: int = TRENDS_LIMIT) -> List[Dict[str, Any]]:
    rows = _load_history(db, user_id, limit=limit)
    return [
        {
            "check_date": r.check_date,
            "compliance_score": r.compliance_score,
            "overall_status": r.overall_status,
        }
        for r in rows
    ]


def generate_weekly_report(
    db: Session, user_id: str, *, now: Optional[datetime] = None
) -> ComplianceAnalytics:
    """Run a fresh check and store it, with recent trends, as a weekly analytics snapshot."""
    now = now or datetime.utcnow()
    result = run_compliance_check(db, user_id, now=now)

    report = {
        "week_of": now,
        "overall_status": result["overall_status"],
        "compliance_score": result["compliance_score"],
        "summary": result["summary"],
        "alerts": [{k: a[k] for k in ("level", "type", "message")} for a in result["alerts"]],
        "recommendations": result["recommendations"],
        "trends": get_compliance_trends(db, user_id),
    }

    row = ComplianceAnalytics(
        user_id=user_id,
        report_type="weekly",
        report_date=now,
        report_data=jsonable_encoder(report),
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def list_compliance_user_ids(db: Session) -> List[str]:
    """Every user that owns at least one tracking item, document or recurring obligation."""
    stmt = union(
        select(TrackingItem.user_id),
        select(ComplianceDocument.user_id),
        select(RecurringObligation.user_id),
    )
    return sorted({uid for uid in db.execute(stmt).scalars().all() if uid})
