#!/usr/bin/env python3
"""
Canonical Field + Mapping Seed Script
Seeds the default canonical fields and the EXPERIAN / EQUIFAX / ARRAY mappings.
Safe to re-run: fields and mappings are upserted.

Usage:
    python -m scripts.seed_mappings
"""
import sys
import os
from collections import defaultdict

# Add the parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy.orm import Session
from credit_ingest.database import SessionLocal, init_db
from credit_ingest.services.mapping_registry import MappingRegistry


CANONICAL_FIELDS = [
    ("accountNumber", "string", "Primary account identifier"),
    ("accountStatus", "string", "Current status of the account"),
    ("balance", "decimal", "Outstanding account balance"),
    ("openedDate", "date", "Account opening date"),
]

# (sourceType, sourceField, targetField)
DEFAULT_MAPPINGS = [
    ("EXPERIAN", "acct_num", "accountNumber"),
    ("EXPERIAN", "status", "accountStatus"),
    ("EXPERIAN", "balance", "balance"),
    ("EXPERIAN", "opened", "openedDate"),

    ("EQUIFAX", "account_no", "accountNumber"),
    ("EQUIFAX", "acct_status", "accountStatus"),
    ("EQUIFAX", "current_balance", "balance"),
    ("EQUIFAX", "open_date", "openedDate"),

    ("ARRAY", "accountNumber", "accountNumber"),
    ("ARRAY", "status", "accountStatus"),
    ("ARRAY", "balance", "balance"),
    ("ARRAY", "opened_at", "openedDate"),
]


def seed(db: Session) -> int:
    """Upsert the default fields and mappings. Returns the number of mappings saved."""
    registry = MappingRegistry(db)
    for name, data_type, description in CANONICAL_FIELDS:
        registry.upsert_canonical_field(name, data_type, description)

    by_source = defaultdict(list)
    for source_type, source_field, target_field in DEFAULT_MAPPINGS:
        by_source[source_type].append({"sourceField": source_field, "targetField": target_field})

    saved = 0
    for source_type, mappings in by_source.items():
        saved += len(registry.upsert_mappings(source_type, mappings))
    return saved


def main():
    init_db()
    db = SessionLocal()
    try:
        saved = seed(db)
        print(f"Seed completed successfully: {len(CANONICAL_FIELDS)} fields, {saved} mappings")
    except Exception as e:
        print(f"Error seeding mappings: {e}")
        db.rollback()
        sys.exit(1)
    finally:
        db.close()


if __name__ == "__main__":
    main()
