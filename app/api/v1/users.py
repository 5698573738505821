"""
User management endpoints
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from app.core.deps import get_current_user, get_db, require_ownership_or_permission, require_permission
from app.core.errors import ForbiddenError
from app.models.role import Action, Resource
from app.models.user import User
from app.schemas.common import MessageResponse, Page
from app.schemas.user import ADMIN_ONLY_USER_FIELDS, UserCreate, UserOut, UserPermissionsOut, UserUpdate
from app.services import permission_service, user_service
from app.services.auth_service import get_principal
from app.utils.pagination import get_page_params, page_meta

router = APIRouter()


def _client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


@router.get("", response_model=Page[UserOut])
async def list_users_endpoint(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    sort_by: Optional[str] = Query(None),
    sort_order: Optional[str] = Query(None, pattern="^(asc|desc)$"),
    search: Optional[str] = Query(None, max_length=100),
    role_id: Optional[int] = Query(None),
    department_id: Optional[int] = Query(None),
    is_active: Optional[bool] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Resource.USER, Action.READ)),
):
    """List users (requires user:read)"""
    params = get_page_params(page, limit, sort_by, sort_order)
    users, total = user_service.list_users(
        db, params, search=search, role_id=role_id, department_id=department_id, is_active=is_active
    )
    return {"data": users, "meta": page_meta(total, params)}


@router.post("", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user_endpoint(
    user_data: UserCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Resource.USER, Action.CREATE)),
):
    """Create a user (requires user:create; assigning a role also requires role:manage)"""
    if user_data.role_id is not None:
        permission_service.require_or_fail(db, current_user.id, Resource.ROLE, Action.MANAGE)
    return user_service.create_user(db, user_data, current_user.id, ip_address=_client_ip(request))


@router.get("/me/permissions", response_model=UserPermissionsOut)
async def my_permissions_endpoint(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Effective permissions of the authenticated user"""
    grant = permission_service.get_user_grant(db, current_user.id)
    return {
        "user_id": current_user.id,
        "role": current_user.role,
        "unrestricted": isinstance(grant, permission_service.UnrestrictedGrant),
        "permissions": sorted(f"{r}:{a}" for r, a in grant.as_set()),
    }


@router.get("/{user_id}", response_model=UserOut)
async def get_user_endpoint(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_ownership_or_permission(Resource.USER, Action.READ)),
):
    """Get a user (self, or requires user:read)"""
    return get_principal(db, user_id)


@router.patch("/{user_id}", response_model=UserOut)
def update_user_endpoint(
    user_id: int,
    user_data: UserUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_ownership_or_permission(Resource.USER, Action.UPDATE)),
):
    """
    Update a user (self, or requires user:update)

    Changing role, active flag or employee code always requires user:update.
    Changing role additionally requires role:manage.
    """
    touched = user_data.model_dump(exclude_unset=True)
    if any(field in touched for field in ADMIN_ONLY_USER_FIELDS):
        permission_service.require_or_fail(db, current_user.id, Resource.USER, Action.UPDATE)
    if "role_id" in touched:
        permission_service.require_or_fail(db, current_user.id, Resource.ROLE, Action.MANAGE)
    return user_service.update_user(db, user_id, user_data, current_user.id, ip_address=_client_ip(request))


@router.delete("/{user_id}", response_model=MessageResponse)
def delete_user_endpoint(
    user_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Resource.USER, Action.DELETE)),
):
    """Delete a user (requires user:delete)"""
    if user_id == current_user.id:
        raise ForbiddenError("You cannot delete your own account")
    user_service.delete_user(db, user_id, current_user.id, ip_address=_client_ip(request))
    return {"message": "User deleted"}
