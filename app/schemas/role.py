"""
Role and permission schemas
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, ConfigDict, field_serializer

from app.models.role import Action, Resource
from app.schemas.common import serialize_datetime


class PermissionOut(BaseModel):
    """Permission output schema"""
    id: int
    name: str
    slug: str
    resource: str
    action: str
    description: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class PermissionCreate(BaseModel):
    """Schema for adding a permission to the catalogue"""
    resource: Resource = Field(..., description="Resource the permission applies to")
    action: Action = Field(..., description="Action allowed on the resource")
    name: Optional[str] = Field(None, max_length=100, description="Display name (defaults to 'Action resource')")
    description: Optional[str] = Field(None, description="Free-text description")


class RoleBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, description="Role name (e.g. HR Manager)")
    slug: str = Field(
        ...,
        min_length=1,
        max_length=100,
        pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$",
        description="Unique lowercase slug (e.g. hr-manager)",
    )
    description: Optional[str] = Field(None, description="Free-text description")


class RoleCreate(RoleBase):
    """Schema for creating a role"""
    permission_ids: List[int] = Field(default_factory=list, description="Permissions granted on creation")


class RoleUpdate(BaseModel):
    """Schema for updating a role"""
    name: Optional[str] = Field(None, min_length=1, max_length=100, description="Updated role name")
    description: Optional[str] = Field(None, description="Updated description")


class RoleOut(BaseModel):
    """Role output schema"""
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    is_system: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("created_at", "updated_at", when_used="always")
    @classmethod
    def _ser_datetime(cls, dt):
        return serialize_datetime(dt)


class RoleDetailOut(RoleOut):
    """Role with its granted permissions"""
    permissions: List[PermissionOut] = Field(default_factory=list)


class RoleRef(BaseModel):
    """Minimal role for user payloads"""
    id: int
    name: str
    slug: str

    model_config = ConfigDict(from_attributes=True)


class RolePermissionAssign(BaseModel):
    permission_id: int = Field(..., description="Permission to grant")
