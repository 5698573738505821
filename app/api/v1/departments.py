"""
Department management endpoints
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from app.core.deps import get_db, require_permission
from app.core.errors import NotFoundError
from app.models.role import Action, Resource
from app.models.user import User
from app.schemas.common import MessageResponse
from app.schemas.department import DepartmentCreate, DepartmentUpdate, DepartmentOut
from app.services.department_service import (
    create_department,
    delete_department,
    list_departments,
    get_department,
    update_department
)

router = APIRouter()


@router.post("", response_model=DepartmentOut, status_code=201)
async def create_department_endpoint(
    department_data: DepartmentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Resource.DEPARTMENT, Action.CREATE))
):
    """Create a new department (requires department:create)"""
    return create_department(db, department_data, current_user.id)


@router.get("", response_model=List[DepartmentOut])
async def list_departments_endpoint(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    active_only: Optional[bool] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Resource.DEPARTMENT, Action.READ))
):
    """List departments (requires department:read)"""
    return list_departments(db, skip=skip, limit=limit, active_only=active_only)


@router.get("/{department_id}", response_model=DepartmentOut)
async def get_department_endpoint(
    department_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Resource.DEPARTMENT, Action.READ))
):
    """Get a department by ID (requires department:read)"""
    department = get_department(db, department_id)
    if not department:
        raise NotFoundError(f"Department with id {department_id} not found")
    return department


@router.patch("/{department_id}", response_model=DepartmentOut)
async def update_department_endpoint(
    department_id: int,
    department_data: DepartmentUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Resource.DEPARTMENT, Action.UPDATE))
):
    """Update a department (requires department:update)"""
    return update_department(db, department_id, department_data, current_user.id)


@router.delete("/{department_id}", response_model=MessageResponse)
async def delete_department_endpoint(
    department_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Resource.DEPARTMENT, Action.DELETE))
):
    """Delete an empty department (requires department:delete)"""
    delete_department(db, department_id, current_user.id)
    return {"message": "Department deleted"}
