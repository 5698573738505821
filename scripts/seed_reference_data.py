"""
Seed permissions, system roles, default departments and the initial super admin.
Existing rows are left unchanged. Run with .env loaded.

Usage:
  python scripts/seed_reference_data.py
  python scripts/seed_reference_data.py --no-admin
"""
import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from app.core.logging import setup_logging
from app.db.init_db import init_db
from app.db.session import SessionLocal
from app.models.role import Permission, Role


def main():
    parser = argparse.ArgumentParser(description="Seed reference data")
    parser.add_argument("--no-admin", action="store_true", help="Do not create the initial super admin")
    args = parser.parse_args()

    setup_logging()
    db = SessionLocal()
    try:
        init_db(db, create_admin=not args.no_admin)
        print(f"Roles: {db.query(Role).count()}, permissions: {db.query(Permission).count()}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
