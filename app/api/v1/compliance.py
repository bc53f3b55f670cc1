# app/api/v1/compliance.py
from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.core.errors import ApiError
from app.crud import compliance as crud
from app.db.session import get_db
from app.schemas.compliance import (
    AlertCreate,
    AlertOut,
    ComplianceAction,
    ComplianceActionRequest,
    DocumentCreate,
    DocumentOut,
    DocumentUpdate,
    PreferencesUpdate,
    RecurringCreate,
    RecurringOut,
    RecurringUpdate,
    RowRef,
    TrackingItemCreate,
    TrackingItemOut,
    TrackingItemUpdate,
)
from app.services.compliance import (
    get_compliance_overview,
    preferences_view,
    run_compliance_check,
)

log = logging.getLogger("app.compliance")

router = APIRouter(prefix="/compliance", tags=["compliance"])


def _ok(data: Any) -> JSONResponse:
    return JSONResponse(content=jsonable_encoder({"success": True, "data": data}))


def _out(schema, row) -> Optional[Dict[str, Any]]:
    return schema.model_validate(row).model_dump() if row is not None else None


# -----------------------------
# Action handlers: (db, user_id, data) -> result, None when the row is unknown
# -----------------------------
def _create_tracking_item(db: Session, user_id: str, data: Dict[str, Any]):
    payload = TrackingItemCreate.model_validate(data)
    return _out(TrackingItemOut, crud.create_tracking_item(db, user_id, payload))


def _update_tracking_item(db: Session, user_id: str, data: Dict[str, Any]):
    ref = RowRef.model_validate(data)
    payload = TrackingItemUpdate.model_validate(data)
    return _out(TrackingItemOut, crud.update_tracking_item(db, user_id, ref.id, payload))


def _create_document(db: Session, user_id: str, data: Dict[str, Any]):
    payload = DocumentCreate.model_validate(data)
    return _out(DocumentOut, crud.create_document(db, user_id, payload))


def _update_document(db: Session, user_id: str, data: Dict[str, Any]):
    ref = RowRef.model_validate(data)
    payload = DocumentUpdate.model_validate(data)
    return _out(DocumentOut, crud.update_document(db, user_id, ref.id, payload))


def _create_recurring(db: Session, user_id: str, data: Dict[str, Any]):
    payload = RecurringCreate.model_validate(data)
    return _out(RecurringOut, crud.create_recurring(db, user_id, payload))


def _update_recurring(db: Session, user_id: str, data: Dict[str, Any]):
    ref = RowRef.model_validate(data)
    payload = RecurringUpdate.model_validate(data)
    return _out(RecurringOut, crud.update_recurring(db, user_id, ref.id, payload))


def _create_alert(db: Session, user_id: str, data: Dict[str, Any]):
    payload = AlertCreate.model_validate(data)
    return _out(AlertOut, crud.create_alert(db, user_id, payload))


def _mark_alert_read(db: Session, user_id: str, data: Dict[str, Any]):
    ref = RowRef.model_validate(data)
    return _out(AlertOut, crud.mark_alert_read(db, user_id, ref.id))


def _resolve_alert(db: Session, user_id: str, data: Dict[str, Any]):
    ref = RowRef.model_validate(data)
    return _out(AlertOut, crud.resolve_alert(db, user_id, ref.id))


def _update_preferences(db: Session, user_id: str, data: Dict[str, Any]):
    payload = PreferencesUpdate.model_validate(data)
    return preferences_view(crud.upsert_preferences(db, user_id, payload))


def _run_compliance_check(db: Session, user_id: str, data: Dict[str, Any]):
    return run_compliance_check(db, user_id)


ACTIONS: Dict[ComplianceAction, Callable[[Session, str, Dict[str, Any]], Any]] = {
    "create_tracking_item": _create_tracking_item,
    "update_tracking_item": _update_tracking_item,
    "create_document": _create_document,
    "update_document": _update_document,
    "create_recurring": _create_recurring,
    "update_recurring": _update_recurring,
    "create_alert": _create_alert,
    "mark_alert_read": _mark_alert_read,
    "resolve_alert": _resolve_alert,
    "update_preferences": _update_preferences,
    "run_compliance_check": _run_compliance_check,
}


# -----------------------------
# Routes
# -----------------------------
@router.get("")
def get_compliance(
    user_id: Optional[str] = Query(None, alias="userId"),
    db: Session = Depends(get_db),
):
    """Compliance overview for one user: items, computed alerts, score and summary."""
    if not user_id:
        raise ApiError(400, "userId required")
    try:
        overview = get_compliance_overview(db, user_id)
    except Exception:
        log.exception("Compliance overview failed for user_id=%s", user_id)
        raise ApiError(500, "Server error")
    return _ok(overview)


@router.post("")
def post_compliance(
    body: Optional[ComplianceActionRequest] = Body(None),
    db: Session = Depends(get_db),
):
    """
    Single mutation endpoint. `action` selects the operation, `data` carries
    its payload (row `id` for update/read/resolve actions).
    """
    if body is None or not body.user_id or not body.action:
        raise ApiError(400, "userId and action required")

    handler = ACTIONS.get(body.action)
    if handler is None:
        raise ApiError(400, "Invalid action")

    try:
        result = handler(db, body.user_id, body.data or {})
    except ValidationError as e:
        raise ApiError(400, "Invalid data", details=json.loads(e.json(include_url=False)))
    except Exception:
        db.rollback()
        log.exception("Compliance action %s failed for user_id=%s", body.action, body.user_id)
        raise ApiError(500, "Server error")

    if result is None:
        raise ApiError(404, "Not found")

    log.info("Compliance action %s user_id=%s", body.action, body.user_id)
    return _ok(result)
