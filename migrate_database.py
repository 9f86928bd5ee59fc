#!/usr/bin/env python3
"""
Manual database migration script
Run this against an existing database to bring the scheduling schema up to date
"""
import json
import sys

from sqlmodel import Session, select

from clinic_scheduler.database import engine as default_engine, create_db_and_tables
from clinic_scheduler.db.models import Appointment, Doctor
from clinic_scheduler.domain.slots import normalize_available_times
from clinic_scheduler.infrastructure.persistence.sqlalchemy.repositories.doctors_repository_sql import load_available_times


def migrate_database(bind=None) -> int:
    """
    Create missing tables and indexes, then rewrite every doctor's
    availability as canonical slot labels. Returns the number of doctors changed.
    """
    bind = bind or default_engine
    print("Checking database schema...")
    create_db_and_tables(bind)

    # create_all skips indexes of tables that already existed
    for index in Appointment.__table__.indexes:
        index.create(bind, checkfirst=True)
    print("✓ appointment indexes present")

    changed = 0
    skipped = 0
    with Session(bind) as session:
        for doctor in session.exec(select(Doctor)).all():
            entries = load_available_times(doctor.available_times)
            if entries is None:
                # Undecodable rows are left as stored
                print(f"⚠ skipping doctor {doctor.id}: availability is not a JSON list")
                skipped += 1
                continue
            normalized = json.dumps(normalize_available_times(entries))
            if normalized != doctor.available_times:
                doctor.available_times = normalized
                session.add(doctor)
                changed += 1
        session.commit()
    print(f"✓ normalized availability for {changed} doctor(s)")
    if skipped:
        print(f"⚠ {skipped} doctor(s) need their availability fixed by hand")
    return changed


if __name__ == "__main__":
    print("🔄 Starting database migration...")
    try:
        migrate_database()
    except Exception as e:
        print(f"❌ Migration failed: {e}")
        sys.exit(1)
    print("✅ Migration completed!")
