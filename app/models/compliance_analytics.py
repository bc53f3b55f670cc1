# app/models/compliance_analytics.py
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, JSON, Index

from app.db.base import Base


class ComplianceAnalytics(Base):
    __tablename__ = "compliance_analytics"

    id = Column(Integer, primary_key=True)
    user_id = Column(String(36), nullable=False, index=True)

    report_type = Column(String(20), nullable=False, default="weekly")
    report_date = Column(DateTime, nullable=False, default=datetime.utcnow)
    report_data = Column(JSON, nullable=True)

    __table_args__ = (Index("ix_analytics_user_report_date", "user_id", "report_date"),)
