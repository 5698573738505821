"""
Leave endpoints
"""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from app.core.deps import get_current_user, get_db, require_permission
from app.models.leave import LeaveStatus, LeaveType
from app.models.role import Action, Resource
from app.models.user import User
from app.schemas.common import Page
from app.schemas.leave import LeaveCreate, LeaveOut, LeaveRejectRequest
from app.services import leave_service, permission_service
from app.utils.pagination import get_page_params, page_meta

router = APIRouter()


def _client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


@router.post("", response_model=LeaveOut, status_code=status.HTTP_201_CREATED)
async def create_leave_endpoint(
    leave_data: LeaveCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Resource.LEAVE, Action.CREATE)),
):
    """
    Request leave for yourself (requires leave:create)

    The request starts PENDING; days counts calendar days from start_date to
    end_date inclusive.
    """
    return leave_service.create_leave_request(db, current_user.id, leave_data, ip_address=_client_ip(request))


@router.get("", response_model=Page[LeaveOut])
async def list_leaves_endpoint(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    sort_by: Optional[str] = Query(None),
    sort_order: Optional[str] = Query(None, pattern="^(asc|desc)$"),
    leave_status: Optional[LeaveStatus] = Query(None, alias="status"),
    leave_type: Optional[LeaveType] = Query(None, alias="type"),
    start_date: Optional[date] = Query(None, description="Leaves starting on or after this date"),
    end_date: Optional[date] = Query(None, description="Leaves ending on or before this date"),
    user_id: Optional[int] = Query(None, description="Requester filter (leave:read holders only)"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """List leave requests: everyone's with leave:read, otherwise only your own"""
    params = get_page_params(page, limit, sort_by, sort_order)
    leaves, total = leave_service.list_leaves(
        db,
        current_user.id,
        params,
        status=leave_status,
        leave_type=leave_type,
        start_date=start_date,
        end_date=end_date,
        user_id=user_id,
    )
    return {"data": leaves, "meta": page_meta(total, params)}


@router.get("/{leave_id}", response_model=LeaveOut)
async def get_leave_endpoint(
    leave_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Get a leave request (your own, or requires leave:read)"""
    leave = leave_service.get_leave(db, leave_id)
    if leave.user_id != current_user.id:
        permission_service.require_or_fail(db, current_user.id, Resource.LEAVE, Action.READ)
    return leave


@router.post("/{leave_id}/approve", response_model=LeaveOut)
async def approve_leave_endpoint(
    leave_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Resource.LEAVE, Action.APPROVE)),
):
    """Approve a PENDING leave request (requires leave:approve)"""
    return leave_service.approve_leave(db, leave_id, current_user.id, ip_address=_client_ip(request))


@router.post("/{leave_id}/reject", response_model=LeaveOut)
async def reject_leave_endpoint(
    leave_id: int,
    reject_data: LeaveRejectRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Resource.LEAVE, Action.REJECT)),
):
    """Reject a PENDING leave request with a reason (requires leave:reject)"""
    return leave_service.reject_leave(
        db, leave_id, current_user.id, reject_data.reason, ip_address=_client_ip(request)
    )
