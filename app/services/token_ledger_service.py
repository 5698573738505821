"""
Refresh token ledger - durable, revocable record of issued refresh tokens

Each row holds a salted hash of one raw refresh token. Because the salt is
per row, a candidate token is matched by verifying it against every live row
of its owner rather than by an indexed lookup.
"""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from app.core.security import hash_token, verify_token_hash
from app.models.refresh_token import RefreshToken
from app.utils.datetime_utils import days_from_now, now_utc

logger = logging.getLogger(__name__)


def issue_refresh_token(
    db: Session,
    user_id: int,
    raw_token: str,
    ttl_days: int,
    user_agent: Optional[str] = None,
    ip_address: Optional[str] = None,
    commit: bool = True,
) -> RefreshToken:
    """
    Store the hash of a newly issued refresh token

    The plaintext token is never persisted.
    """
    record = RefreshToken(
        token_hash=hash_token(raw_token),
        user_id=user_id,
        expires_at=days_from_now(ttl_days),
        is_revoked=False,
        user_agent=user_agent[:512] if user_agent else None,
        ip_address=ip_address,
        created_at=now_utc(),
    )
    db.add(record)
    if commit:
        db.commit()
        db.refresh(record)
    else:
        db.flush()
    return record


def _live_tokens(db: Session, user_id: int):
    return (
        db.query(RefreshToken)
        .filter(
            RefreshToken.user_id == user_id,
            RefreshToken.is_revoked.is_(False),
            RefreshToken.expires_at > now_utc(),
        )
        .order_by(RefreshToken.id.desc())
        .all()
    )


def find_matching_token(db: Session, user_id: int, raw_token: str) -> Optional[RefreshToken]:
    """Return the live ledger row whose hash matches raw_token, if any"""
    for record in _live_tokens(db, user_id):
        if verify_token_hash(raw_token, record.token_hash):
            return record
    return None


def validate_refresh_token(db: Session, user_id: int, raw_token: str) -> bool:
    """True iff raw_token matches one non-revoked, non-expired row of the user"""
    return find_matching_token(db, user_id, raw_token) is not None


def revoke_all(db: Session, user_id: int, commit: bool = True) -> int:
    """
    Revoke every non-revoked refresh token of a user

    Returns:
        Number of rows revoked
    """
    count = (
        db.query(RefreshToken)
        .filter(RefreshToken.user_id == user_id, RefreshToken.is_revoked.is_(False))
        .update(
            {RefreshToken.is_revoked: True, RefreshToken.revoked_at: now_utc()},
            synchronize_session=False,
        )
    )
    if commit:
        db.commit()
    logger.info("Revoked %d refresh token(s) for user %s", count, user_id)
    return count


def revoke_record(db: Session, record: RefreshToken, commit: bool = True) -> None:
    record.is_revoked = True
    record.revoked_at = now_utc()
    if commit:
        db.commit()


def revoke_one(db: Session, user_id: int, raw_token: Optional[str] = None, commit: bool = True) -> int:
    """
    Revoke the single row matching raw_token

    Without a token this degrades to revoke_all (sign out everywhere).

    Returns:
        Number of rows revoked (0 when the token matches nothing live)
    """
    if not raw_token:
        return revoke_all(db, user_id, commit=commit)

    record = find_matching_token(db, user_id, raw_token)
    if record is None:
        logger.info("No live refresh token matched for user %s; nothing revoked", user_id)
        return 0

    revoke_record(db, record, commit=commit)
    return 1


def sweep_expired(db: Session) -> int:
    """
    Hard-delete refresh tokens past their expiry, revoked or not

    Safe to run repeatedly; a second run with no new expirations deletes nothing.
    """
    count = (
        db.query(RefreshToken)
        .filter(RefreshToken.expires_at < now_utc())
        .delete(synchronize_session=False)
    )
    db.commit()
    logger.info("Cleaned up %d expired refresh tokens", count)
    return count
