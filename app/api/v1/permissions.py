"""
Permission catalogue endpoints
"""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.deps import get_db, require_permission
from app.models.role import Action, Resource
from app.models.user import User
from app.schemas.role import PermissionCreate, PermissionOut
from app.services import permission_service
from app.services.audit_service import log_audit

router = APIRouter()


@router.get("", response_model=List[PermissionOut])
async def list_permissions_endpoint(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Resource.PERMISSION, Action.READ)),
):
    """List the permission catalogue (requires permission:read)"""
    return permission_service.get_all_permissions(db)


@router.post("", response_model=PermissionOut, status_code=201)
async def create_permission_endpoint(
    data: PermissionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Resource.PERMISSION, Action.CREATE)),
):
    """Add a (resource, action) pair to the catalogue (requires permission:create)"""
    permission = permission_service.create_permission(
        db, data.resource.value, data.action.value, name=data.name, description=data.description
    )
    log_audit(
        db=db,
        actor_id=current_user.id,
        action="CREATE",
        entity_type="permission",
        entity_id=permission.id,
        meta={"slug": permission.slug},
    )
    return permission
