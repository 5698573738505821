"""
Role management endpoints
"""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.deps import get_db, require_permission
from app.models.role import Action, Resource
from app.models.user import User
from app.schemas.common import MessageResponse
from app.schemas.role import PermissionOut, RoleCreate, RoleDetailOut, RoleOut, RolePermissionAssign, RoleUpdate
from app.services import role_service

router = APIRouter()


def _detail(role) -> dict:
    data = RoleOut.model_validate(role).model_dump()
    data["permissions"] = [PermissionOut.model_validate(rp.permission) for rp in role.permissions]
    return data


@router.post("", response_model=RoleDetailOut, status_code=201)
async def create_role_endpoint(
    role_data: RoleCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Resource.ROLE, Action.CREATE)),
):
    """
    Create a new role (requires role:create).
    """
    role = role_service.create_role(db, role_data, current_user.id)
    return _detail(role_service.get_role_with_permissions(db, role.id))


@router.get("", response_model=List[RoleOut])
async def list_roles_endpoint(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Resource.ROLE, Action.READ)),
):
    """
    List roles (requires role:read).
    """
    return role_service.list_roles(db)


@router.get("/{role_id}", response_model=RoleDetailOut)
async def get_role_endpoint(
    role_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Resource.ROLE, Action.READ)),
):
    """
    Get a role with its permissions (requires role:read).
    """
    return _detail(role_service.get_role_with_permissions(db, role_id))


@router.patch("/{role_id}", response_model=RoleOut)
async def update_role_endpoint(
    role_id: int,
    role_data: RoleUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Resource.ROLE, Action.UPDATE)),
):
    """
    Update a role (requires role:update).
    """
    return role_service.update_role(db, role_id, role_data, current_user.id)


@router.delete("/{role_id}", response_model=MessageResponse)
async def delete_role_endpoint(
    role_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Resource.ROLE, Action.DELETE)),
):
    """
    Delete a custom role (requires role:delete). System roles are protected.
    """
    role_service.delete_role(db, role_id, current_user.id)
    return {"message": "Role deleted"}


@router.post("/{role_id}/permissions", response_model=RoleDetailOut)
async def grant_permission_endpoint(
    role_id: int,
    assignment: RolePermissionAssign,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Resource.ROLE, Action.MANAGE)),
):
    """
    Grant a permission to a role (requires role:manage).
    """
    return _detail(role_service.grant_permission(db, role_id, assignment.permission_id, current_user.id))


@router.delete("/{role_id}/permissions/{permission_id}", response_model=RoleDetailOut)
async def revoke_permission_endpoint(
    role_id: int,
    permission_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Resource.ROLE, Action.MANAGE)),
):
    """
    Remove a permission from a role (requires role:manage).
    """
    return _detail(role_service.revoke_permission(db, role_id, permission_id, current_user.id))
