# app/models/compliance_rule.py
from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, JSON

from app.db.base import Base


class ComplianceRule(Base):
    """Reference rule (shared across users): cadence and documents a compliance area needs."""

    __tablename__ = "compliance_rules"

    id = Column(Integer, primary_key=True)
    rule_name = Column(String(100), nullable=False, unique=True, index=True)
    description = Column(Text, nullable=True)

    frequency = Column(String(20), nullable=True)  # quarterly | annual | ...
    deadline_offset_days = Column(Integer, nullable=True)  # days before due to start preparing
    required_documents = Column(JSON, nullable=True)  # list[str]

    is_critical = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
