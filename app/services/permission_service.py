"""
Permission resolver and permission catalogue management

A user's effective capabilities come from the single role assigned to them.
Roles are turned into a RoleGrant once, when loaded:

- RegularGrant: the explicit (resource, action) pairs joined to the role
- UnrestrictedGrant: every capability, including pairs with no seeded row

so checks never compare role slugs themselves.
"""
import itertools
import logging
from dataclasses import dataclass
from typing import FrozenSet, Iterable, List, Optional, Set, Tuple, Union

from sqlalchemy.orm import Session, joinedload, selectinload

from app.constants import UNRESTRICTED_ROLE_SLUGS
from app.core.errors import ConflictError, ForbiddenError, NotFoundError
from app.models.role import Action, Permission, Resource, Role, RolePermission, capability_value, permission_slug
from app.models.user import User

logger = logging.getLogger(__name__)

Capability = Tuple[str, str]

ALL_CAPABILITIES: FrozenSet[Capability] = frozenset(
    (resource.value, action.value) for resource, action in itertools.product(Resource, Action)
)


@dataclass(frozen=True)
class RegularGrant:
    capabilities: FrozenSet[Capability]

    def allows(self, resource: str, action: str) -> bool:
        return (resource, action) in self.capabilities

    def as_set(self) -> Set[Capability]:
        return set(self.capabilities)


@dataclass(frozen=True)
class UnrestrictedGrant:
    def allows(self, resource: str, action: str) -> bool:
        return True

    def as_set(self) -> Set[Capability]:
        return set(ALL_CAPABILITIES)


RoleGrant = Union[RegularGrant, UnrestrictedGrant]

NO_GRANT = RegularGrant(frozenset())


def load_role_grant(role: Optional[Role]) -> RoleGrant:
    """Build the grant for a loaded role (with its permissions relationship)"""
    if role is None:
        return NO_GRANT
    if role.slug in UNRESTRICTED_ROLE_SLUGS:
        return UnrestrictedGrant()
    return RegularGrant(frozenset(
        (rp.permission.resource, rp.permission.action) for rp in role.permissions
    ))


def _load_user_with_role(db: Session, user_id: int) -> Optional[User]:
    return (
        db.query(User)
        .options(
            joinedload(User.role)
            .selectinload(Role.permissions)
            .joinedload(RolePermission.permission)
        )
        .filter(User.id == user_id)
        .first()
    )


def get_user_grant(db: Session, user_id: int) -> RoleGrant:
    """Grant of the user's current role; an unknown user has no grant"""
    user = _load_user_with_role(db, user_id)
    if user is None:
        return NO_GRANT
    return load_role_grant(user.role)


def resolve(db: Session, user_id: int) -> Set[Capability]:
    """Effective (resource, action) set of a user"""
    return get_user_grant(db, user_id).as_set()


def check(db: Session, user_id: int, resource, action) -> bool:
    """True iff the user's role grants (resource, action)"""
    return get_user_grant(db, user_id).allows(capability_value(resource), capability_value(action))


def require_or_fail(db: Session, user_id: int, resource, action) -> None:
    """
    Raise ForbiddenError naming the denied pair when check() fails
    """
    if not check(db, user_id, resource, action):
        resource, action = capability_value(resource), capability_value(action)
        logger.warning("User %s attempted to %s %s without permission", user_id, action, resource)
        raise ForbiddenError(f"You don't have permission to {action} {resource}")


def check_ownership_or_permission(
    db: Session,
    user_id: int,
    resource,
    action,
    owner_id: Optional[int] = None,
) -> bool:
    """Owners may act on their own records; everyone else needs the permission"""
    if owner_id is not None and owner_id == user_id:
        return True
    return check(db, user_id, resource, action)


# ---------------------------------------------------------------------------
# Catalogue and role-permission assignment
# ---------------------------------------------------------------------------

def get_all_permissions(db: Session) -> List[Permission]:
    return db.query(Permission).order_by(Permission.resource.asc(), Permission.action.asc()).all()


def get_permission(db: Session, permission_id: int) -> Optional[Permission]:
    return db.query(Permission).filter(Permission.id == permission_id).first()


def create_permission(
    db: Session,
    resource: str,
    action: str,
    name: Optional[str] = None,
    description: Optional[str] = None,
) -> Permission:
    """
    Add a (resource, action) pair to the catalogue

    Raises:
        ConflictError: if the slug already exists
    """
    slug = permission_slug(resource, action)
    if db.query(Permission).filter(Permission.slug == slug).first():
        raise ConflictError(f"Permission '{slug}' already exists")

    permission = Permission(
        name=name or f"{action.capitalize()} {resource}",
        slug=slug,
        resource=resource,
        action=action,
        description=description or f"Permission to {action} {resource}",
    )
    db.add(permission)
    db.commit()
    db.refresh(permission)
    return permission


def assign_permission_to_role(db: Session, role_id: int, permission_id: int) -> RolePermission:
    """
    Grant a permission to a role; assigning an existing pair is a no-op

    Raises:
        NotFoundError: role or permission does not exist
    """
    if db.query(Role).filter(Role.id == role_id).first() is None:
        raise NotFoundError("Role not found")
    if get_permission(db, permission_id) is None:
        raise NotFoundError("Permission not found")

    existing = (
        db.query(RolePermission)
        .filter(RolePermission.role_id == role_id, RolePermission.permission_id == permission_id)
        .first()
    )
    if existing:
        return existing

    role_permission = RolePermission(role_id=role_id, permission_id=permission_id)
    db.add(role_permission)
    db.commit()
    db.refresh(role_permission)
    return role_permission


def remove_permission_from_role(db: Session, role_id: int, permission_id: int) -> None:
    """
    Raises:
        NotFoundError: the permission is not assigned to the role
    """
    role_permission = (
        db.query(RolePermission)
        .filter(RolePermission.role_id == role_id, RolePermission.permission_id == permission_id)
        .first()
    )
    if role_permission is None:
        raise NotFoundError("Permission not assigned to this role")
    db.delete(role_permission)
    db.commit()


def grant_slugs_to_role(db: Session, role: Role, slugs: Iterable[str]) -> int:
    """Attach catalogue permissions by slug; returns how many were newly attached"""
    slugs = list(slugs)
    if not slugs:
        return 0
    permissions = db.query(Permission).filter(Permission.slug.in_(slugs)).all()
    existing = {
        rp.permission_id
        for rp in db.query(RolePermission).filter(RolePermission.role_id == role.id).all()
    }
    added = 0
    for permission in permissions:
        if permission.id not in existing:
            db.add(RolePermission(role_id=role.id, permission_id=permission.id))
            added += 1
    db.flush()
    return added
