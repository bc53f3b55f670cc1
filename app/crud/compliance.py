# app/crud/compliance.py
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from app.models.compliance_alert import ComplianceAlert
from app.models.compliance_document import ComplianceDocument
from app.models.compliance_preferences import CompliancePreferences
from app.models.compliance_recurring import RecurringObligation
from app.models.compliance_tracking import TrackingItem
from app.schemas.compliance import (
    AlertCreate,
    DocumentCreate,
    DocumentUpdate,
    PreferencesUpdate,
    RecurringCreate,
    RecurringUpdate,
    TrackingItemCreate,
    TrackingItemUpdate,
)
from app.services.compliance_status import DEFAULT_NOTIFICATION_PREFERENCES, DEFAULT_THRESHOLDS
from app.services.recurring import advance_due_date


def _get_owned(db: Session, model, row_id: int, user_id: str):
    return (
        db.query(model)
        .filter(model.id == row_id, model.user_id == user_id)
        .first()
    )


def _insert(db: Session, obj):
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


def _changes(model, payload) -> Dict[str, Any]:
    # Fields sent in the payload; an explicit null is dropped for NOT NULL columns
    data = payload.model_dump(exclude_unset=True)
    required = {c.name for c in model.__table__.columns if not c.nullable}
    return {k: v for k, v in data.items() if v is not None or k not in required}


def _apply(db: Session, obj, data: Dict[str, Any]):
    for k, v in data.items():
        setattr(obj, k, v)
    obj.updated_at = datetime.utcnow()
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


# -----------------------------
# Tracking items
# -----------------------------
def create_tracking_item(db: Session, user_id: str, payload: TrackingItemCreate) -> TrackingItem:
    now = datetime.utcnow()
    return _insert(
        db,
        TrackingItem(user_id=user_id, created_at=now, updated_at=now, **payload.model_dump()),
    )


def update_tracking_item(
    db: Session, user_id: str, item_id: int, payload: TrackingItemUpdate
) -> Optional[TrackingItem]:
    obj = _get_owned(db, TrackingItem, item_id, user_id)
    if not obj:
        return None
    return _apply(db, obj, _changes(type(obj), payload))


# -----------------------------
# Documents
# -----------------------------
def create_document(db: Session, user_id: str, payload: DocumentCreate) -> ComplianceDocument:
    now = datetime.utcnow()
    return _insert(
        db,
        ComplianceDocument(user_id=user_id, created_at=now, updated_at=now, **payload.model_dump()),
    )


def update_document(
    db: Session, user_id: str, doc_id: int, payload: DocumentUpdate
) -> Optional[ComplianceDocument]:
    obj = _get_owned(db, ComplianceDocument, doc_id, user_id)
    if not obj:
        return None
    return _apply(db, obj, _changes(type(obj), payload))


# -----------------------------
# Recurring obligations
# -----------------------------
def create_recurring(db: Session, user_id: str, payload: RecurringCreate) -> RecurringObligation:
    now = datetime.utcnow()
    return _insert(
        db,
        RecurringObligation(user_id=user_id, created_at=now, updated_at=now, **payload.model_dump()),
    )


def update_recurring(
    db: Session, user_id: str, recurring_id: int, payload: RecurringUpdate
) -> Optional[RecurringObligation]:
    """
    Partial update. Completing a cycle (sending last_completed_date without an
    explicit next_due_date) rolls next_due_date forward by one frequency step.
    """
    obj = _get_owned(db, RecurringObligation, recurring_id, user_id)
    if not obj:
        return None

    data = _changes(RecurringObligation, payload)

    completed = data.get("last_completed_date")
    if completed is not None and "next_due_date" not in data and obj.next_due_date is not None:
        data["next_due_date"] = advance_due_date(
            obj.next_due_date,
            data.get("frequency", obj.frequency),
            data.get("frequency_interval", obj.frequency_interval),
        )

    return _apply(db, obj, data)


# -----------------------------
# Alerts
# -----------------------------
def create_alert(db: Session, user_id: str, payload: AlertCreate) -> ComplianceAlert:
    return _insert(
        db,
        ComplianceAlert(user_id=user_id, created_at=datetime.utcnow(), **payload.model_dump()),
    )


def mark_alert_read(db: Session, user_id: str, alert_id: int) -> Optional[ComplianceAlert]:
    obj = _get_owned(db, ComplianceAlert, alert_id, user_id)
    if not obj:
        return None
    return _apply(db, obj, {"is_read": True})


def resolve_alert(db: Session, user_id: str, alert_id: int) -> Optional[ComplianceAlert]:
    obj = _get_owned(db, ComplianceAlert, alert_id, user_id)
    if not obj:
        return None
    now = datetime.utcnow()
    return _apply(db, obj, {"is_active": False, "is_read": True, "resolved_at": now})


# -----------------------------
# Preferences
# -----------------------------
def get_preferences(db: Session, user_id: str) -> Optional[CompliancePreferences]:
    return (
        db.query(CompliancePreferences)
        .filter(CompliancePreferences.user_id == user_id)
        .first()
    )


def upsert_preferences(db: Session, user_id: str, payload: PreferencesUpdate) -> CompliancePreferences:
    """
    Create or update the single preferences row of a user. Sub-keys that are
    not sent keep their stored value (or the default on first write).
    """
    obj = get_preferences(db, user_id)
    now = datetime.utcnow()
    if obj is None:
        obj = CompliancePreferences(
            user_id=user_id,
            alert_thresholds=DEFAULT_THRESHOLDS.as_dict(),
            notification_preferences=dict(DEFAULT_NOTIFICATION_PREFERENCES),
            created_at=now,
        )

    if payload.alert_thresholds is not None:
        merged = dict(obj.alert_thresholds or DEFAULT_THRESHOLDS.as_dict())
        merged.update(payload.alert_thresholds.model_dump(exclude_none=True))
        # reassign so the JSON column is flagged dirty
        obj.alert_thresholds = merged

    if payload.notification_preferences is not None:
        merged = dict(obj.notification_preferences or DEFAULT_NOTIFICATION_PREFERENCES)
        merged.update(payload.notification_preferences.model_dump(exclude_none=True))
        obj.notification_preferences = merged

    obj.updated_at = now
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj
