"""
Role service - business logic for role management
"""
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from app.core.errors import ConflictError, NotFoundError
from app.models.role import Role, RolePermission
from app.models.user import User
from app.schemas.role import RoleCreate, RoleUpdate
from app.services import permission_service
from app.services.audit_service import log_audit


def create_role(
    db: Session,
    role_data: RoleCreate,
    actor_id: int,
) -> Role:
    """
    Create a new (non-system) role.

    Name and slug are treated as case-insensitive unique.
    """
    existing = (
        db.query(Role)
        .filter(
            (func.lower(Role.name) == func.lower(role_data.name))
            | (Role.slug == role_data.slug.lower())
        )
        .first()
    )
    if existing:
        raise ConflictError(f"Role with name '{role_data.name}' or slug '{role_data.slug}' already exists")

    for permission_id in role_data.permission_ids:
        if permission_service.get_permission(db, permission_id) is None:
            raise NotFoundError(f"Permission with id {permission_id} not found")

    role = Role(
        name=role_data.name,
        slug=role_data.slug.lower(),
        description=role_data.description,
        is_system=False,
    )
    db.add(role)
    db.flush()
    for permission_id in set(role_data.permission_ids):
        db.add(RolePermission(role_id=role.id, permission_id=permission_id))
    db.commit()
    db.refresh(role)

    log_audit(
        db=db,
        actor_id=actor_id,
        action="CREATE",
        entity_type="role",
        entity_id=role.id,
        meta={"name": role.name, "slug": role.slug, "permission_ids": sorted(set(role_data.permission_ids))},
    )

    return role


def list_roles(db: Session) -> List[Role]:
    """
    List all roles ordered by name.
    """
    return db.query(Role).order_by(Role.name.asc()).all()


def get_role(db: Session, role_id: int) -> Optional[Role]:
    """Get a role by ID."""
    return db.query(Role).filter(Role.id == role_id).first()


def get_role_with_permissions(db: Session, role_id: int) -> Role:
    role = (
        db.query(Role)
        .options(selectinload(Role.permissions).joinedload(RolePermission.permission))
        .filter(Role.id == role_id)
        .first()
    )
    if not role:
        raise NotFoundError(f"Role with id {role_id} not found")
    return role


def update_role(
    db: Session,
    role_id: int,
    role_data: RoleUpdate,
    actor_id: int,
) -> Role:
    """
    Update a role's name or description. Slugs are immutable.
    """
    role = get_role(db, role_id)
    if not role:
        raise NotFoundError(f"Role with id {role_id} not found")

    update_dict = role_data.model_dump(exclude_unset=True)

    # Enforce unique name if being updated
    if "name" in update_dict and update_dict["name"] is not None:
        new_name = update_dict["name"]
        existing = (
            db.query(Role)
            .filter(
                func.lower(Role.name) == func.lower(new_name),
                Role.id != role_id,
            )
            .first()
        )
        if existing:
            raise ConflictError(f"Role with name '{new_name}' already exists")
        role.name = new_name

    if "description" in update_dict:
        role.description = update_dict["description"]

    db.commit()
    db.refresh(role)

    log_audit(
        db=db,
        actor_id=actor_id,
        action="UPDATE",
        entity_type="role",
        entity_id=role.id,
        meta=update_dict,
    )

    return role


def delete_role(db: Session, role_id: int, actor_id: int) -> None:
    """
    Delete a custom role

    Raises:
        NotFoundError: role does not exist
        ConflictError: role is a system role or still assigned to users
    """
    role = get_role(db, role_id)
    if not role:
        raise NotFoundError(f"Role with id {role_id} not found")
    if role.is_system:
        raise ConflictError("System roles cannot be deleted")

    assigned = db.query(User).filter(User.role_id == role_id).count()
    if assigned:
        raise ConflictError(f"Role is still assigned to {assigned} user(s)")

    slug = role.slug
    db.delete(role)
    db.commit()

    log_audit(db=db, actor_id=actor_id, action="DELETE", entity_type="role", entity_id=role_id, meta={"slug": slug})


def grant_permission(db: Session, role_id: int, permission_id: int, actor_id: int) -> Role:
    permission_service.assign_permission_to_role(db, role_id, permission_id)
    log_audit(
        db=db,
        actor_id=actor_id,
        action="GRANT_PERMISSION",
        entity_type="role",
        entity_id=role_id,
        meta={"permission_id": permission_id},
    )
    db.expire_all()
    return get_role_with_permissions(db, role_id)


def revoke_permission(db: Session, role_id: int, permission_id: int, actor_id: int) -> Role:
    permission_service.remove_permission_from_role(db, role_id, permission_id)
    log_audit(
        db=db,
        actor_id=actor_id,
        action="REVOKE_PERMISSION",
        entity_type="role",
        entity_id=role_id,
        meta={"permission_id": permission_id},
    )
    db.expire_all()
    return get_role_with_permissions(db, role_id)
