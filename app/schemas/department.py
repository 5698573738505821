"""
Department schemas
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, field_serializer, ConfigDict

from app.schemas.common import serialize_datetime


class DepartmentCreate(BaseModel):
    """Schema for creating a department"""
    name: str = Field(..., min_length=1, max_length=100, description="Department name")
    code: str = Field(..., min_length=1, max_length=20, description="Short unique code (e.g. HR)")
    description: Optional[str] = Field(None, description="Free-text description")
    active: bool = Field(default=True, description="Department active status")


class DepartmentUpdate(BaseModel):
    """Schema for updating a department"""
    name: Optional[str] = Field(None, min_length=1, max_length=100, description="Department name")
    description: Optional[str] = Field(None, description="Free-text description")
    active: Optional[bool] = Field(None, description="Department active status")


class DepartmentRef(BaseModel):
    """Minimal department for user payloads"""
    id: int
    name: str
    code: str

    model_config = ConfigDict(from_attributes=True)


class DepartmentOut(BaseModel):
    """Schema for department output"""
    id: int
    name: str
    code: str
    description: Optional[str] = None
    active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("created_at", "updated_at", when_used="always")
    @classmethod
    def _ser_datetime(cls, dt):
        return serialize_datetime(dt)
