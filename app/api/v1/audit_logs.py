"""
Audit log endpoints
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.deps import get_db, require_permission
from app.core.errors import ValidationFailedError
from app.models.role import Action, Resource
from app.models.user import User
from app.schemas.audit import AuditLogOut
from app.services.audit_service import get_entity_history, get_user_activity

router = APIRouter()


@router.get("", response_model=List[AuditLogOut])
async def list_audit_logs_endpoint(
    entity_type: Optional[str] = Query(None, description="Entity type, together with entity_id"),
    entity_id: Optional[int] = Query(None),
    actor_id: Optional[int] = Query(None, description="Recent activity of one user"),
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Resource.AUDIT_LOG, Action.READ)),
):
    """
    Entity history (entity_type + entity_id) or user activity (actor_id)
    """
    if entity_type and entity_id is not None:
        return get_entity_history(db, entity_type, entity_id)[:limit]
    if actor_id is not None:
        return get_user_activity(db, actor_id, limit=limit)
    raise ValidationFailedError("Provide entity_type and entity_id, or actor_id")
