# app/models/compliance_recurring.py
from datetime import datetime
from sqlalchemy import (
    Column, Integer, String, Text, DateTime, Boolean, Float, CheckConstraint, Index
)

from app.db.base import Base

RECURRING_FREQUENCY = ("daily", "weekly", "monthly", "quarterly", "annually")


class RecurringObligation(Base):
    """Periodic compliance task with a rolling due date."""

    __tablename__ = "compliance_recurring"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(36), nullable=False, index=True)

    name = Column(String(255), nullable=False)
    compliance_type = Column(String(50), nullable=True)
    description = Column(Text, nullable=True)

    # daily | weekly | monthly | quarterly | annually
    frequency = Column(String(20), nullable=False, default="monthly")
    # every N frequency units (e.g. 2 + monthly = bi-monthly)
    frequency_interval = Column(Integer, nullable=False, default=1)

    next_due_date = Column(DateTime, nullable=True, index=True)
    last_completed_date = Column(DateTime, nullable=True)

    reminder_days = Column(Integer, nullable=True, default=7)
    estimated_hours = Column(Float, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        CheckConstraint(
            f"frequency IN {RECURRING_FREQUENCY}",
            name="ck_compliance_recurring_frequency_allowed",
        ),
        CheckConstraint("frequency_interval >= 1", name="ck_compliance_recurring_interval_positive"),
        Index("ix_recurring_user_active", "user_id", "is_active"),
    )

    def __repr__(self) -> str:
        return f"<RecurringObligation id={self.id} name={self.name!r} next_due={self.next_due_date} active={self.is_active}>"
