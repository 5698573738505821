"""
Leave schemas
"""
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from app.models.leave import LeaveStatus, LeaveType
from app.schemas.common import serialize_datetime


class LeaveCreate(BaseModel):
    """Leave request for the authenticated user"""
    leave_type: LeaveType = Field(..., description="Leave type")
    start_date: date = Field(..., description="First day of leave (YYYY-MM-DD)")
    end_date: date = Field(..., description="Last day of leave, inclusive (YYYY-MM-DD)")
    reason: Optional[str] = Field(None, max_length=1000, description="Reason for leave")


class LeaveRejectRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=1000, description="Why the request was rejected")


class LeaveRequester(BaseModel):
    id: int
    email: str
    first_name: str
    last_name: str

    model_config = ConfigDict(from_attributes=True)


class LeaveOut(BaseModel):
    id: int
    user_id: int
    user: Optional[LeaveRequester] = None
    leave_type: LeaveType
    start_date: date
    end_date: date
    days: int
    reason: Optional[str] = None
    status: LeaveStatus
    approved_by_id: Optional[int] = None
    approved_at: Optional[datetime] = None
    rejected_by_id: Optional[int] = None
    rejected_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("approved_at", "rejected_at", "created_at", when_used="always")
    @classmethod
    def _ser_datetime(cls, dt):
        return serialize_datetime(dt)
