# app/models/compliance_alert.py
from datetime import datetime
from sqlalchemy import (
    Column, Integer, String, Text, DateTime, Boolean, JSON, CheckConstraint, Index
)

from app.db.base import Base

ALERT_SEVERITY = ("critical", "warning", "info")


class ComplianceAlert(Base):
    """
    Persisted, deduplicated notification for one detected compliance condition.
    Identity is (alert_type, message); alerts are soft-closed via is_active/resolved_at.
    """

    __tablename__ = "compliance_alerts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(36), nullable=False, index=True)

    alert_type = Column(String(50), nullable=False)
    severity = Column(String(20), nullable=False, default="warning")
    message = Column(Text, nullable=False)
    alert_data = Column(JSON, nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)
    is_read = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=True, onupdate=datetime.utcnow)
    resolved_at = Column(DateTime, nullable=True)

    __table_args__ = (
        CheckConstraint(
            f"severity IN {ALERT_SEVERITY}",
            name="ck_compliance_alerts_severity_allowed",
        ),
        Index("ix_alerts_user_active", "user_id", "is_active"),
    )

    def __repr__(self) -> str:
        return f"<ComplianceAlert id={self.id} type={self.alert_type} active={self.is_active} message={self.message!r}>"
