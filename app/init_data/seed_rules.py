# app/init_data/seed_rules.py
from sqlalchemy.orm import Session

from app.db.session import SessionLocal
from app.models.compliance_rule import ComplianceRule

DEFAULT_RULES = [
    {
        "rule_name": "grant_reporting",
        "description": "Quarterly grant reporting requirements",
        "frequency": "quarterly",
        "deadline_offset_days": 30,
        "required_documents": ["financial_report", "progress_report"],
        "is_critical": True,
    },
    {
        "rule_name": "tax_filing",
        "description": "Annual tax filing requirements",
        "frequency": "annual",
        "deadline_offset_days": 60,
        "required_documents": ["990_form", "financial_statements"],
        "is_critical": True,
    },
    {
        "rule_name": "audit_preparation",
        "description": "Annual audit preparation",
        "frequency": "annual",
        "deadline_offset_days": 90,
        "required_documents": ["audit_documentation", "internal_controls"],
        "is_critical": False,
    },
]


def seed_compliance_rules(db: Session) -> int:
    """Insert missing default rules (matched by rule_name). Returns how many were created."""
    created = 0
    for data in DEFAULT_RULES:
        existing = (
            db.query(ComplianceRule)
            .filter(ComplianceRule.rule_name == data["rule_name"])
            .first()
        )
        if not existing:
            db.add(ComplianceRule(is_active=True, **data))
            created += 1
    db.commit()
    return created


if __name__ == "__main__":
    db = SessionLocal()
    try:
        print(f"Compliance rules seeded (+{seed_compliance_rules(db)} new).")
    finally:
        db.close()
