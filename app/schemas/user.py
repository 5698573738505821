"""
User schemas
"""
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_serializer

from app.schemas.common import serialize_datetime
from app.schemas.department import DepartmentRef
from app.schemas.role import RoleRef


class UserOut(BaseModel):
    """User output schema. Never carries the password hash."""
    id: int
    email: str
    first_name: str
    last_name: str
    phone: Optional[str] = None
    employee_code: Optional[str] = None
    joining_date: Optional[date] = None
    is_active: bool
    role: RoleRef
    department: Optional[DepartmentRef] = None
    last_login_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("last_login_at", "created_at", when_used="always")
    @classmethod
    def _ser_datetime(cls, dt):
        return serialize_datetime(dt)


class UserCreate(BaseModel):
    """Schema for an administrator creating a user"""
    email: EmailStr = Field(..., description="Login email (unique)")
    password: str = Field(..., min_length=1, description="Initial password")
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)
    employee_code: Optional[str] = Field(None, max_length=50, description="Employee code (unique)")
    joining_date: Optional[date] = None
    role_id: Optional[int] = Field(None, description="Role (defaults to employee)")
    department_id: Optional[int] = None
    is_active: bool = True


class UserUpdate(BaseModel):
    """
    Schema for updating a user

    role_id, is_active and employee_code are administrative fields: changing them requires
    user:update even on one's own record.
    """
    email: Optional[EmailStr] = None
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)
    employee_code: Optional[str] = Field(None, max_length=50)
    joining_date: Optional[date] = None
    role_id: Optional[int] = None
    department_id: Optional[int] = None
    is_active: Optional[bool] = None


ADMIN_ONLY_USER_FIELDS = ("role_id", "is_active", "employee_code")


class UserPermissionsOut(BaseModel):
    """Effective capabilities of a user as resource:action slugs"""
    user_id: int
    role: RoleRef
    unrestricted: bool
    permissions: List[str]
