# app/schemas/compliance.py
from datetime import datetime, timezone
from typing import Annotated, Any, Dict, List, Literal, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, conint, constr

TrackingStatus = Literal["pending", "in_progress", "completed"]
TrackingPriority = Literal["low", "medium", "high", "critical"]
DocumentStatus = Literal["missing", "uploaded", "verified"]
RecurringFrequency = Literal["daily", "weekly", "monthly", "quarterly", "annually"]
AlertSeverity = Literal["critical", "warning", "info"]
OverallStatus = Literal["good", "warning", "critical"]

ComplianceAction = Literal[
    "create_tracking_item",
    "update_tracking_item",
    "create_document",
    "update_document",
    "create_recurring",
    "update_recurring",
    "create_alert",
    "mark_alert_read",
    "resolve_alert",
    "update_preferences",
    "run_compliance_check",
]


def to_naive_utc(v: datetime) -> datetime:
    """Store everything as naive UTC (same convention as datetime.utcnow())."""
    if v.tzinfo is not None:
        return v.astimezone(timezone.utc).replace(tzinfo=None)
    return v


NaiveUTCDatetime = Annotated[datetime, AfterValidator(to_naive_utc)]


# -----------------------------
# Request envelope
# -----------------------------
class ComplianceActionRequest(BaseModel):
    """
    POST /api/compliance body. Everything is optional here so missing
    userId/action can be answered with 400 instead of a 422.
    """

    model_config = ConfigDict(populate_by_name=True)

    user_id: Optional[str] = Field(None, alias="userId")
    action: Optional[str] = None
    data: Optional[Dict[str, Any]] = None


class RowRef(BaseModel):
    """Payload for update/read/resolve actions: only the row id is required."""

    model_config = ConfigDict(extra="ignore")

    id: conint(ge=1) = Field(..., description="Row ID.")


# -----------------------------
# Tracking items
# -----------------------------
class TrackingItemCreate(BaseModel):
    title: constr(strip_whitespace=True, min_length=1, max_length=255)
    compliance_type: Optional[constr(strip_whitespace=True, max_length=50)] = None
    description: Optional[str] = None
    status: TrackingStatus = "pending"
    priority: TrackingPriority = "medium"
    deadline_date: Optional[NaiveUTCDatetime] = Field(None, description="Deadline (ISO 8601).")
    frequency: Optional[str] = None
    estimated_hours: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None


class TrackingItemUpdate(BaseModel):
    # All optional; only fields present in the payload are applied
    title: Optional[constr(strip_whitespace=True, min_length=1, max_length=255)] = None
    compliance_type: Optional[constr(strip_whitespace=True, max_length=50)] = None
    description: Optional[str] = None
    status: Optional[TrackingStatus] = None
    priority: Optional[TrackingPriority] = None
    deadline_date: Optional[NaiveUTCDatetime] = None
    frequency: Optional[str] = None
    estimated_hours: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None


class TrackingItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    title: str
    compliance_type: Optional[str] = None
    description: Optional[str] = None
    status: str
    priority: str
    deadline_date: Optional[datetime] = None
    frequency: Optional[str] = None
    estimated_hours: Optional[float] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


# -----------------------------
# Documents
# -----------------------------
class DocumentCreate(BaseModel):
    document_type: constr(strip_whitespace=True, min_length=1, max_length=100)
    document_name: Optional[constr(strip_whitespace=True, max_length=255)] = None
    status: DocumentStatus = "missing"
    is_required: bool = False
    expiration_date: Optional[NaiveUTCDatetime] = Field(None, description="Expiry (ISO 8601).")
    document_url: Optional[str] = None
    notes: Optional[str] = None


class DocumentUpdate(BaseModel):
    document_type: Optional[constr(strip_whitespace=True, min_length=1, max_length=100)] = None
    document_name: Optional[constr(strip_whitespace=True, max_length=255)] = None
    status: Optional[DocumentStatus] = None
    is_required: Optional[bool] = None
    expiration_date: Optional[NaiveUTCDatetime] = None
    document_url: Optional[str] = None
    notes: Optional[str] = None


class DocumentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    document_type: str
    document_name: Optional[str] = None
    status: str
    is_required: bool
    expiration_date: Optional[datetime] = None
    document_url: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


# -----------------------------
# Recurring obligations
# -----------------------------
class RecurringCreate(BaseModel):
    name: constr(strip_whitespace=True, min_length=1, max_length=255)
    compliance_type: Optional[constr(strip_whitespace=True, max_length=50)] = None
    description: Optional[str] = None
    frequency: RecurringFrequency = "monthly"
    frequency_interval: conint(ge=1, le=365) = 1
    next_due_date: Optional[NaiveUTCDatetime] = None
    last_completed_date: Optional[NaiveUTCDatetime] = None
    reminder_days: Optional[conint(ge=0, le=365)] = 7
    estimated_hours: Optional[float] = Field(None, ge=0)
    is_active: bool = True


class RecurringUpdate(BaseModel):
    name: Optional[constr(strip_whitespace=True, min_length=1, max_length=255)] = None
    compliance_type: Optional[constr(strip_whitespace=True, max_length=50)] = None
    description: Optional[str] = None
    frequency: Optional[RecurringFrequency] = None
    frequency_interval: Optional[conint(ge=1, le=365)] = None
    next_due_date: Optional[NaiveUTCDatetime] = None
    last_completed_date: Optional[NaiveUTCDatetime] = None
    reminder_days: Optional[conint(ge=0, le=365)] = None
    estimated_hours: Optional[float] = Field(None, ge=0)
    is_active: Optional[bool] = None


class RecurringOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    name: str
    compliance_type: Optional[str] = None
    description: Optional[str] = None
    frequency: str
    frequency_interval: int
    next_due_date: Optional[datetime] = None
    last_completed_date: Optional[datetime] = None
    reminder_days: Optional[int] = None
    estimated_hours: Optional[float] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


# -----------------------------
# Alerts
# -----------------------------
class AlertCreate(BaseModel):
    alert_type: constr(strip_whitespace=True, min_length=1, max_length=50)
    severity: AlertSeverity = "warning"
    message: constr(strip_whitespace=True, min_length=1)
    alert_data: Optional[Dict[str, Any]] = None
    is_active: bool = True
    is_read: bool = False


class AlertOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    alert_type: str
    severity: str
    message: str
    alert_data: Optional[Dict[str, Any]] = None
    is_active: bool
    is_read: bool
    created_at: datetime
    updated_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None


# -----------------------------
# Preferences
# -----------------------------
class AlertThresholdsIn(BaseModel):
    critical: Optional[conint(ge=0, le=365)] = None
    warning: Optional[conint(ge=0, le=365)] = None
    info: Optional[conint(ge=0, le=365)] = None


class NotificationPreferencesIn(BaseModel):
    email: Optional[bool] = None
    app: Optional[bool] = None
    sms: Optional[bool] = None


class PreferencesUpdate(BaseModel):
    alert_thresholds: Optional[AlertThresholdsIn] = None
    notification_preferences: Optional[NotificationPreferencesIn] = None


class PreferencesOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: Optional[str] = None
    alert_thresholds: Dict[str, int]
    notification_preferences: Dict[str, bool]
    updated_at: Optional[datetime] = None


# -----------------------------
# Read-only views
# -----------------------------
class HistoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    check_date: datetime
    overall_status: OverallStatus
    compliance_score: int
    results: Optional[Dict[str, Any]] = None
    alerts_generated: Optional[List[Any]] = None
    recommendations: Optional[List[Any]] = None


class RuleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    rule_name: str
    description: Optional[str] = None
    frequency: Optional[str] = None
    deadline_offset_days: Optional[int] = None
    required_documents: Optional[List[str]] = None
    is_critical: bool
    is_active: bool


class AnalyticsOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    report_type: str
    report_date: datetime
    report_data: Optional[Dict[str, Any]] = None
