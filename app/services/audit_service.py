"""
Audit logging service

Writing an audit entry is best-effort: a failure is logged and swallowed so
that it never blocks the operation being audited.
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.models.audit_log import AuditLog
from app.utils.datetime_utils import now_utc
from app.utils.json_serializer import sanitize_for_json

logger = logging.getLogger(__name__)


def log_audit(
    db: Session,
    actor_id: Optional[int],
    action: str,
    entity_type: str,
    entity_id: Optional[int] = None,
    meta: Optional[Dict[str, Any]] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> Optional[AuditLog]:
    """
    Create an audit log entry

    Args:
        db: Database session
        actor_id: ID of the user performing the action (None for anonymous)
        action: Action type (e.g., "CREATE", "UPDATE", "DELETE", "AUTH_LOGIN_SUCCESS")
        entity_type: Type of entity (e.g., "user", "role", "auth")
        entity_id: ID of the affected entity (optional)
        meta: Additional metadata as dictionary (optional)
        ip_address: Request IP (optional)
        user_agent: Request user agent (optional)

    Returns:
        Created AuditLog instance, or None if it could not be written
    """
    try:
        safe_meta = sanitize_for_json(meta) if meta is not None else None
        audit_log = AuditLog(
            actor_id=actor_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            meta_json=safe_meta,
            ip_address=ip_address,
            user_agent=user_agent,
            created_at=now_utc(),
        )
        db.add(audit_log)
        db.commit()
        db.refresh(audit_log)
    except Exception as e:
        db.rollback()
        logger.warning("Failed to write audit log %s on %s:%s: %s", action, entity_type, entity_id, e)
        return None

    logger.debug("Audit log created: %s on %s:%s", action, entity_type, entity_id)
    return audit_log


def get_entity_history(db: Session, entity_type: str, entity_id: int) -> List[AuditLog]:
    """All audit entries for one entity, newest first"""
    return (
        db.query(AuditLog)
        .filter(AuditLog.entity_type == entity_type, AuditLog.entity_id == entity_id)
        .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .all()
    )


def get_user_activity(db: Session, user_id: int, limit: int = 50) -> List[AuditLog]:
    """Most recent actions performed by a user"""
    return (
        db.query(AuditLog)
        .filter(AuditLog.actor_id == user_id)
        .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .limit(limit)
        .all()
    )
