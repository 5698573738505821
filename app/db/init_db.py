"""
Database initialization - seed reference data

Seeds the permission catalogue, the four system roles with their grants,
default departments and an initial super admin. Every step is idempotent,
so this is safe to run on each startup.
"""
import logging
from datetime import date
from typing import Dict, List

from sqlalchemy.orm import Session

from app.constants import (
    DEFAULT_DEPARTMENTS,
    ROLE_EMPLOYEE,
    ROLE_HR_MANAGER,
    ROLE_MANAGER,
    ROLE_SUPER_ADMIN,
    WORKFLOW_ACTIONS,
    WORKFLOW_RESOURCES,
)
from app.core.config import settings
from app.core.security import hash_password
from app.models.department import Department
from app.models.role import Action, Permission, Resource, Role, permission_slug
from app.models.user import User
from app.services.permission_service import grant_slugs_to_role

logger = logging.getLogger(__name__)


def _catalogue_slugs() -> List[str]:
    slugs = []
    for resource in Resource:
        for action in Action:
            if action.value in WORKFLOW_ACTIONS and resource.value not in WORKFLOW_RESOURCES:
                continue
            slugs.append(permission_slug(resource, action))
    return slugs


def _hr_manager_slugs(catalogue: List[str]) -> List[str]:
    resources = {"user", "department", "leave", "payroll", "job", "candidate", "application"}
    return [s for s in catalogue if s.split(":")[0] in resources]


MANAGER_SLUGS = ["user:read", "department:read", "leave:read", "leave:approve", "leave:reject"]
EMPLOYEE_SLUGS = ["leave:create", "notification:read", "file:create", "file:read"]

SYSTEM_ROLES = (
    (ROLE_SUPER_ADMIN, "Super Admin", "Full system access"),
    (ROLE_HR_MANAGER, "HR Manager", "HR management access"),
    (ROLE_MANAGER, "Manager", "Department manager access"),
    (ROLE_EMPLOYEE, "Employee", "Basic employee access"),
)


def seed_permissions(db: Session) -> List[str]:
    """Insert missing catalogue permissions; returns every catalogue slug"""
    catalogue = _catalogue_slugs()
    existing = {p.slug for p in db.query(Permission.slug).all()}
    created = 0
    for slug in catalogue:
        if slug in existing:
            continue
        resource, action = slug.split(":")
        db.add(Permission(
            name=f"{action.capitalize()} {resource}",
            slug=slug,
            resource=resource,
            action=action,
            description=f"Permission to {action} {resource}",
        ))
        created += 1
    db.flush()
    if created:
        logger.info("Created %d permissions", created)
    return catalogue


def seed_roles(db: Session, catalogue: List[str]) -> Dict[str, Role]:
    """Insert missing system roles and attach their default grants"""
    grants = {
        # Unrestricted anyway; explicit rows keep the role readable in listings
        ROLE_SUPER_ADMIN: catalogue,
        ROLE_HR_MANAGER: _hr_manager_slugs(catalogue),
        ROLE_MANAGER: MANAGER_SLUGS,
        ROLE_EMPLOYEE: EMPLOYEE_SLUGS,
    }
    roles = {}
    for slug, name, description in SYSTEM_ROLES:
        role = db.query(Role).filter(Role.slug == slug).first()
        if role is None:
            role = Role(name=name, slug=slug, description=description, is_system=True)
            db.add(role)
            db.flush()
            logger.info("Created role: %s", slug)
            # Grants only on first creation so later edits by admins are kept
            grant_slugs_to_role(db, role, grants[slug])
        roles[slug] = role
    return roles


def seed_departments(db: Session) -> Dict[str, Department]:
    departments = {}
    for code, name, description in DEFAULT_DEPARTMENTS:
        department = db.query(Department).filter(Department.code == code).first()
        if department is None:
            department = Department(name=name, code=code, description=description, active=True)
            db.add(department)
            db.flush()
            logger.info("Created department: %s", name)
        departments[code] = department
    return departments


def seed_initial_admin(db: Session, super_admin_role: Role, department: Department) -> None:
    """Create the initial super admin unless some super admin already exists"""
    admin_exists = db.query(User).filter(User.role_id == super_admin_role.id).first()
    if admin_exists:
        logger.info("Super admin already exists, skipping initial admin bootstrap")
        return

    email = settings.INITIAL_ADMIN_EMAIL.strip().lower()
    if db.query(User).filter(User.email == email).first():
        logger.warning("INITIAL_ADMIN_EMAIL %s belongs to a non-admin user; not promoting it", email)
        return

    db.add(User(
        email=email,
        password_hash=hash_password(settings.INITIAL_ADMIN_PASSWORD),
        first_name="Super",
        last_name="Admin",
        employee_code="EMP001",
        joining_date=date.today(),
        is_active=True,
        role_id=super_admin_role.id,
        department_id=department.id,
    ))
    logger.info("Initial super admin created: %s", email)
    logger.info("Password: [set via INITIAL_ADMIN_PASSWORD environment variable]")


def init_db(db: Session, create_admin: bool = True) -> None:
    """
    Seed reference data in one transaction
    """
    try:
        catalogue = seed_permissions(db)
        roles = seed_roles(db, catalogue)
        departments = seed_departments(db)
        if create_admin:
            seed_initial_admin(db, roles[ROLE_SUPER_ADMIN], departments["IT"])
        db.commit()
    except Exception:
        db.rollback()
        raise
