# app/models/compliance_tracking.py
from datetime import datetime
from sqlalchemy import (
    Column, Integer, String, Text, DateTime, Float, CheckConstraint, Index
)

from app.db.base import Base

# NOTE: keep simple string "enums" for SQLite portability
TRACKING_STATUS = ("pending", "in_progress", "completed")
TRACKING_PRIORITY = ("low", "medium", "high", "critical")


class TrackingItem(Base):
    """A discrete compliance obligation with a deadline and completion status."""

    __tablename__ = "compliance_tracking"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(36), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    compliance_type = Column(String(50), nullable=True, index=True)  # grant_reporting, tax_filing, ...
    description = Column(Text, nullable=True)

    # pending | in_progress | completed
    status = Column(String(20), nullable=False, default="pending", index=True)
    # low | medium | high | critical
    priority = Column(String(20), nullable=False, default="medium")

    deadline_date = Column(DateTime, nullable=True, index=True)
    frequency = Column(String(20), nullable=True)  # informational only, see RecurringObligation
    estimated_hours = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        CheckConstraint(
            f"status IN {TRACKING_STATUS}",
            name="ck_compliance_tracking_status_allowed",
        ),
        CheckConstraint(
            f"priority IN {TRACKING_PRIORITY}",
            name="ck_compliance_tracking_priority_allowed",
        ),
        Index("ix_tracking_user_status", "user_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<TrackingItem id={self.id} title={self.title!r} status={self.status} deadline={self.deadline_date}>"
