"""
Delete refresh tokens past their expiry. Safe to run from cron.

Usage:
  python scripts/cleanup_refresh_tokens.py
  python scripts/cleanup_refresh_tokens.py --dry-run
"""
import argparse
import sys
from pathlib import Path

# Add project root so app is importable
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from app.core.logging import setup_logging
from app.db import session as db_session
from app.models.refresh_token import RefreshToken
from app.services.token_ledger_service import sweep_expired
from app.utils.datetime_utils import now_utc


def main():
    parser = argparse.ArgumentParser(description="Delete expired refresh tokens")
    parser.add_argument("--dry-run", action="store_true", help="Only count expired tokens")
    args = parser.parse_args()

    setup_logging()
    db = db_session.SessionLocal()
    try:
        if args.dry_run:
            count = db.query(RefreshToken).filter(RefreshToken.expires_at < now_utc()).count()
            print(f"{count} expired refresh token(s) would be deleted")
            return
        count = sweep_expired(db)
        print(f"Deleted {count} expired refresh token(s)")
    finally:
        db.close()


if __name__ == "__main__":
    main()
