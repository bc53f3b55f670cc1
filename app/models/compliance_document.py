# app/models/compliance_document.py
from datetime import datetime
from sqlalchemy import (
    Column, Integer, String, Text, DateTime, Boolean, CheckConstraint, Index
)

from app.db.base import Base

DOCUMENT_STATUS = ("missing", "uploaded", "verified")


class ComplianceDocument(Base):
    """
    A compliance document record (registration, certificate, insurance, ...).
    Expiry is tracked independently of the upload/verification status.
    """

    __tablename__ = "compliance_documents"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(36), nullable=False, index=True)

    document_type = Column(String(100), nullable=False)  # e.g. sam_registration
    document_name = Column(String(255), nullable=True)

    # missing | uploaded | verified
    status = Column(String(20), nullable=False, default="missing", index=True)
    is_required = Column(Boolean, nullable=False, default=False)

    expiration_date = Column(DateTime, nullable=True, index=True)
    document_url = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        CheckConstraint(
            f"status IN {DOCUMENT_STATUS}",
            name="ck_compliance_documents_status_allowed",
        ),
        Index("ix_documents_user_status", "user_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<ComplianceDocument id={self.id} type={self.document_type!r} status={self.status} expires={self.expiration_date}>"
