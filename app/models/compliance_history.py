# app/models/compliance_history.py
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, JSON, Index

from app.db.base import Base


class ComplianceHistory(Base):
    """One row per executed compliance check (manual or scheduled)."""

    __tablename__ = "compliance_history"

    id = Column(Integer, primary_key=True)
    user_id = Column(String(36), nullable=False, index=True)

    check_date = Column(DateTime, nullable=False, default=datetime.utcnow)
    overall_status = Column(String(20), nullable=False)  # good | warning | critical
    compliance_score = Column(Integer, nullable=False)

    results = Column(JSON, nullable=True)
    alerts_generated = Column(JSON, nullable=True)
    recommendations = Column(JSON, nullable=True)

    __table_args__ = (Index("ix_history_user_check_date", "user_id", "check_date"),)
