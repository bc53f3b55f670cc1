#!/usr/bin/env python3
"""
Minimal seed:
- Creates tables when ENABLE_CREATE_ALL=1 (default).
- Ensures the default compliance rules exist.
- Safe to run multiple times (idempotent).
"""
import os
import sys

# enable 'app.' imports
sys.path.append(os.getcwd())

from app.db.session import SessionLocal, engine
from app.init_data.seed_rules import seed_compliance_rules
from app.models import Base


def main():
    if os.getenv("ENABLE_CREATE_ALL", "1") == "1":
        Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        created = seed_compliance_rules(db)
        print(f"OK: compliance rules ensured (+{created} new)")
    finally:
        db.close()


if __name__ == "__main__":
    main()
