# app/models/compliance_preferences.py
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, JSON

from app.db.base import Base


class CompliancePreferences(Base):
    __tablename__ = "compliance_preferences"

    id = Column(Integer, primary_key=True)
    user_id = Column(String(36), nullable=False, unique=True, index=True)

    # {"critical": 7, "warning": 14, "info": 30} - day counts
    alert_thresholds = Column(JSON, nullable=True)
    # {"email": true, "app": true, "sms": false}
    notification_preferences = Column(JSON, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
