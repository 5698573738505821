"""
User service - business logic for user (employee) records
"""
import logging
from typing import Optional, Tuple, List

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from app.constants import DEFAULT_ROLE_SLUG
from app.core.errors import ConflictError, NotFoundError, ValidationFailedError
from app.core.security import hash_password
from app.core.validation import validate_password_strength
from app.models.department import Department
from app.models.role import Role
from app.models.user import User
from app.schemas.user import UserCreate, UserUpdate
from app.services.audit_service import log_audit
from app.services.auth_service import get_principal, normalize_email
from app.utils.pagination import PageParams

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = {
    "created_at": User.created_at,
    "email": User.email,
    "first_name": User.first_name,
    "last_name": User.last_name,
    "last_login_at": User.last_login_at,
}


def _ensure_role(db: Session, role_id: int) -> Role:
    role = db.query(Role).filter(Role.id == role_id).first()
    if role is None:
        raise NotFoundError(f"Role with id {role_id} not found")
    return role


def _ensure_department(db: Session, department_id: int) -> Department:
    department = db.query(Department).filter(Department.id == department_id).first()
    if department is None:
        raise NotFoundError(f"Department with id {department_id} not found")
    return department


def _ensure_unique(db: Session, email: Optional[str], employee_code: Optional[str], exclude_id: Optional[int] = None):
    if email:
        query = db.query(User).filter(User.email == email)
        if exclude_id is not None:
            query = query.filter(User.id != exclude_id)
        if query.first():
            raise ConflictError("User with this email already exists")
    if employee_code:
        query = db.query(User).filter(User.employee_code == employee_code)
        if exclude_id is not None:
            query = query.filter(User.id != exclude_id)
        if query.first():
            raise ConflictError("Employee code already exists")


def list_users(
    db: Session,
    params: PageParams,
    search: Optional[str] = None,
    role_id: Optional[int] = None,
    department_id: Optional[int] = None,
    is_active: Optional[bool] = None,
) -> Tuple[List[User], int]:
    """
    List users with optional search and filters

    Returns:
        (users on the requested page, total matching users)
    """
    query = db.query(User)

    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(
            User.email.ilike(pattern),
            User.first_name.ilike(pattern),
            User.last_name.ilike(pattern),
            User.employee_code.ilike(pattern),
        ))
    if role_id is not None:
        query = query.filter(User.role_id == role_id)
    if department_id is not None:
        query = query.filter(User.department_id == department_id)
    if is_active is not None:
        query = query.filter(User.is_active == is_active)

    total = query.count()

    sort_column = SORTABLE_FIELDS.get(params.sort_by, User.created_at)
    order = sort_column.asc() if params.sort_order == "asc" else sort_column.desc()
    users = (
        query.options(joinedload(User.role), joinedload(User.department))
        .order_by(order, User.id.asc())
        .offset(params.offset)
        .limit(params.limit)
        .all()
    )
    return users, total


def create_user(db: Session, data: UserCreate, actor_id: int, ip_address: Optional[str] = None) -> User:
    """
    Create a user on behalf of an administrator

    Raises:
        ValidationFailedError: password policy not met
        ConflictError: email or employee code already taken
        NotFoundError: role or department does not exist
    """
    password_check = validate_password_strength(data.password)
    if not password_check.ok:
        raise ValidationFailedError("Validation failed", errors=password_check.errors)

    email = normalize_email(data.email)
    _ensure_unique(db, email, data.employee_code)

    if data.role_id is not None:
        role = _ensure_role(db, data.role_id)
    else:
        role = db.query(Role).filter(Role.slug == DEFAULT_ROLE_SLUG).first()
        if role is None:
            raise RuntimeError("Default role not found. Please run database seeds.")
    if data.department_id is not None:
        _ensure_department(db, data.department_id)

    user = User(
        email=email,
        password_hash=hash_password(data.password),
        first_name=data.first_name,
        last_name=data.last_name,
        phone=data.phone,
        employee_code=data.employee_code,
        joining_date=data.joining_date,
        role_id=role.id,
        department_id=data.department_id,
        is_active=data.is_active,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    log_audit(
        db=db,
        actor_id=actor_id,
        action="CREATE",
        entity_type="user",
        entity_id=user.id,
        meta={"email": user.email, "role_id": user.role_id, "department_id": user.department_id},
        ip_address=ip_address,
    )
    return get_principal(db, user.id)


def update_user(
    db: Session,
    user_id: int,
    data: UserUpdate,
    actor_id: int,
    ip_address: Optional[str] = None,
) -> User:
    """
    Update profile and administrative fields of a user

    Raises:
        NotFoundError: user, role or department does not exist
        ConflictError: new email or employee code already taken
    """
    user = get_principal(db, user_id)
    update_dict = data.model_dump(exclude_unset=True)

    if "email" in update_dict and update_dict["email"] is not None:
        update_dict["email"] = normalize_email(update_dict["email"])
    _ensure_unique(db, update_dict.get("email"), update_dict.get("employee_code"), exclude_id=user_id)

    if update_dict.get("role_id") is not None:
        _ensure_role(db, update_dict["role_id"])
    if update_dict.get("department_id") is not None:
        _ensure_department(db, update_dict["department_id"])

    for field in ("email", "first_name", "last_name", "role_id", "is_active"):
        if field in update_dict and update_dict[field] is not None:
            setattr(user, field, update_dict[field])
    # Nullable fields may be cleared explicitly
    for field in ("phone", "employee_code", "joining_date", "department_id"):
        if field in update_dict:
            setattr(user, field, update_dict[field])

    db.commit()

    log_audit(
        db=db,
        actor_id=actor_id,
        action="UPDATE",
        entity_type="user",
        entity_id=user_id,
        meta=update_dict,
        ip_address=ip_address,
    )
    db.expire_all()
    return get_principal(db, user_id)


def delete_user(db: Session, user_id: int, actor_id: int, ip_address: Optional[str] = None) -> None:
    """
    Delete a user; their refresh tokens go with them

    Raises:
        NotFoundError: user does not exist
    """
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise NotFoundError("User not found")

    email = user.email
    db.delete(user)
    db.commit()

    log_audit(
        db=db,
        actor_id=actor_id if actor_id != user_id else None,
        action="DELETE",
        entity_type="user",
        entity_id=user_id,
        meta={"email": email},
        ip_address=ip_address,
    )
