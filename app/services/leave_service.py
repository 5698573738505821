"""
Leave service - business logic for leave requests
"""
import logging
from datetime import date
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session, joinedload

from app.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationFailedError
from app.core.validation import validate_date_range
from app.models.leave import Leave, LeaveStatus, LeaveType
from app.models.role import Action, Resource
from app.schemas.leave import LeaveCreate
from app.services import permission_service
from app.services.audit_service import log_audit
from app.utils.datetime_utils import now_utc
from app.utils.pagination import PageParams

logger = logging.getLogger(__name__)

ALREADY_PROCESSED = "Leave request has already been processed"

SORTABLE_FIELDS = {
    "created_at": Leave.created_at,
    "start_date": Leave.start_date,
    "end_date": Leave.end_date,
    "status": Leave.status,
}


def calculate_leave_days(start_date: date, end_date: date) -> int:
    """Calendar days from start_date to end_date, both inclusive"""
    if start_date > end_date:
        return 0
    return (end_date - start_date).days + 1


def create_leave_request(
    db: Session,
    user_id: int,
    leave_data: LeaveCreate,
    ip_address: Optional[str] = None,
) -> Leave:
    """
    Create a PENDING leave request for user_id

    Raises:
        ValidationFailedError: end_date before start_date
    """
    dates = validate_date_range(leave_data.start_date, leave_data.end_date)
    if not dates.ok:
        raise ValidationFailedError("Validation failed", errors=dates.errors)
    start_date, end_date = dates.value

    leave = Leave(
        user_id=user_id,
        leave_type=leave_data.leave_type,
        start_date=start_date,
        end_date=end_date,
        days=calculate_leave_days(start_date, end_date),
        reason=leave_data.reason,
        status=LeaveStatus.PENDING,
    )
    db.add(leave)
    db.commit()
    db.refresh(leave)

    logger.info("Leave request created: id=%s user_id=%s days=%s", leave.id, user_id, leave.days)
    log_audit(
        db=db,
        actor_id=user_id,
        action="CREATE",
        entity_type="leave",
        entity_id=leave.id,
        meta={
            "leave_type": leave.leave_type.value,
            "start_date": start_date.isoformat(),
            "end_date": end_date.isoformat(),
            "days": leave.days,
        },
        ip_address=ip_address,
    )
    return leave


def list_leaves(
    db: Session,
    current_user_id: int,
    params: PageParams,
    status: Optional[LeaveStatus] = None,
    leave_type: Optional[LeaveType] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    user_id: Optional[int] = None,
) -> Tuple[List[Leave], int]:
    """
    List leave requests

    Callers holding leave:read see everyone's requests and may filter by
    user_id; everyone else only ever sees their own.

    Returns:
        (leaves on the requested page, total matching leaves)
    """
    query = db.query(Leave)

    if permission_service.check(db, current_user_id, Resource.LEAVE, Action.READ):
        if user_id is not None:
            query = query.filter(Leave.user_id == user_id)
    else:
        query = query.filter(Leave.user_id == current_user_id)

    if status is not None:
        query = query.filter(Leave.status == status)
    if leave_type is not None:
        query = query.filter(Leave.leave_type == leave_type)
    if start_date is not None:
        query = query.filter(Leave.start_date >= start_date)
    if end_date is not None:
        query = query.filter(Leave.end_date <= end_date)

    total = query.count()

    sort_column = SORTABLE_FIELDS.get(params.sort_by, Leave.created_at)
    order = sort_column.asc() if params.sort_order == "asc" else sort_column.desc()
    leaves = (
        query.options(joinedload(Leave.user))
        .order_by(order, Leave.id.desc())
        .offset(params.offset)
        .limit(params.limit)
        .all()
    )
    return leaves, total


def get_leave(db: Session, leave_id: int) -> Leave:
    """
    Raises:
        NotFoundError: no such leave request
    """
    leave = db.query(Leave).options(joinedload(Leave.user)).filter(Leave.id == leave_id).first()
    if leave is None:
        raise NotFoundError(f"Leave request with id {leave_id} not found")
    return leave


def _pending_for_decision(db: Session, leave_id: int, approver_id: int) -> Leave:
    leave = get_leave(db, leave_id)
    if leave.status != LeaveStatus.PENDING:
        raise ConflictError(ALREADY_PROCESSED)
    if leave.user_id == approver_id:
        raise ForbiddenError("You cannot decide on your own leave request")
    return leave


def approve_leave(
    db: Session,
    leave_id: int,
    approver_id: int,
    ip_address: Optional[str] = None,
) -> Leave:
    """
    Approve a PENDING leave request

    Raises:
        NotFoundError: no such leave request
        ConflictError: request is no longer PENDING
        ForbiddenError: approver owns the request
    """
    leave = _pending_for_decision(db, leave_id, approver_id)

    leave.status = LeaveStatus.APPROVED
    leave.approved_by_id = approver_id
    leave.approved_at = now_utc()
    db.commit()
    db.refresh(leave)

    logger.info("leave status transition: leave_id=%s before=PENDING after=APPROVED", leave.id)
    log_audit(
        db=db,
        actor_id=approver_id,
        action="APPROVE",
        entity_type="leave",
        entity_id=leave.id,
        meta={"user_id": leave.user_id, "leave_type": leave.leave_type.value, "days": leave.days},
        ip_address=ip_address,
    )
    return leave


def reject_leave(
    db: Session,
    leave_id: int,
    approver_id: int,
    reason: str,
    ip_address: Optional[str] = None,
) -> Leave:
    """
    Reject a PENDING leave request, recording the reason

    Raises:
        NotFoundError: no such leave request
        ConflictError: request is no longer PENDING
        ForbiddenError: approver owns the request
    """
    leave = _pending_for_decision(db, leave_id, approver_id)

    leave.status = LeaveStatus.REJECTED
    leave.rejected_by_id = approver_id
    leave.rejected_at = now_utc()
    leave.rejection_reason = reason
    db.commit()
    db.refresh(leave)

    logger.info("leave status transition: leave_id=%s before=PENDING after=REJECTED", leave.id)
    log_audit(
        db=db,
        actor_id=approver_id,
        action="REJECT",
        entity_type="leave",
        entity_id=leave.id,
        meta={"user_id": leave.user_id, "leave_type": leave.leave_type.value, "reason": reason},
        ip_address=ip_address,
    )
    return leave
