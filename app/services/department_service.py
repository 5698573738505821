"""
Department service - business logic for department management
"""
from sqlalchemy.orm import Session
from sqlalchemy import func
from typing import List, Optional
from app.core.errors import ConflictError, NotFoundError
from app.models.department import Department
from app.models.user import User
from app.schemas.department import DepartmentCreate, DepartmentUpdate
from app.services.audit_service import log_audit


def create_department(
    db: Session,
    department_data: DepartmentCreate,
    actor_id: int
) -> Department:
    """
    Create a new department

    Args:
        db: Database session
        department_data: Department creation data
        actor_id: ID of the user creating the department

    Returns:
        Created Department instance

    Raises:
        ConflictError: If department name or code already exists
    """
    code = department_data.code.strip().upper()
    existing = db.query(Department).filter(
        (func.lower(Department.name) == func.lower(department_data.name))
        | (Department.code == code)
    ).first()

    if existing:
        raise ConflictError(
            f"Department with name '{department_data.name}' or code '{code}' already exists"
        )

    department = Department(
        name=department_data.name,
        code=code,
        description=department_data.description,
        active=department_data.active
    )
    db.add(department)
    db.commit()
    db.refresh(department)

    log_audit(
        db=db,
        actor_id=actor_id,
        action="CREATE",
        entity_type="department",
        entity_id=department.id,
        meta={"name": department.name, "code": department.code, "active": department.active}
    )

    return department


def list_departments(
    db: Session,
    skip: int = 0,
    limit: int = 100,
    active_only: Optional[bool] = None
) -> List[Department]:
    """
    List departments with optional filtering

    Args:
        db: Database session
        skip: Number of records to skip
        limit: Maximum number of records to return
        active_only: If True, return only active departments

    Returns:
        List of Department instances
    """
    query = db.query(Department)

    if active_only is not None:
        query = query.filter(Department.active == active_only)

    return query.order_by(Department.name.asc()).offset(skip).limit(limit).all()


def get_department(db: Session, department_id: int) -> Optional[Department]:
    """Get a department by ID"""
    return db.query(Department).filter(Department.id == department_id).first()


def update_department(
    db: Session,
    department_id: int,
    department_data: DepartmentUpdate,
    actor_id: int
) -> Department:
    """
    Update a department

    Raises:
        NotFoundError: If department not found
        ConflictError: If the new name is taken
    """
    department = get_department(db, department_id)
    if not department:
        raise NotFoundError(f"Department with id {department_id} not found")

    if department_data.name is not None:
        existing = db.query(Department).filter(
            func.lower(Department.name) == func.lower(department_data.name),
            Department.id != department_id
        ).first()

        if existing:
            raise ConflictError(f"Department with name '{department_data.name}' already exists")
        department.name = department_data.name

    if department_data.description is not None:
        department.description = department_data.description

    if department_data.active is not None:
        department.active = department_data.active

    db.commit()
    db.refresh(department)

    log_audit(
        db=db,
        actor_id=actor_id,
        action="UPDATE",
        entity_type="department",
        entity_id=department.id,
        meta={
            "name": department.name,
            "active": department.active,
            "updated_fields": department_data.model_dump(exclude_unset=True)
        }
    )

    return department


def delete_department(db: Session, department_id: int, actor_id: int) -> None:
    """
    Delete a department that no user belongs to

    Raises:
        NotFoundError: If department not found
        ConflictError: If users are still assigned to it
    """
    department = get_department(db, department_id)
    if not department:
        raise NotFoundError(f"Department with id {department_id} not found")

    members = db.query(User).filter(User.department_id == department_id).count()
    if members:
        raise ConflictError(f"Department still has {members} member(s)")

    name = department.name
    db.delete(department)
    db.commit()

    log_audit(
        db=db,
        actor_id=actor_id,
        action="DELETE",
        entity_type="department",
        entity_id=department_id,
        meta={"name": name}
    )
