"""
Dependencies and guards for FastAPI endpoints

get_current_user turns a bearer access token into a loaded, active user.
The require_* factories compose it with the permission resolver:

    @router.get("/payroll")
    def list_payroll(user: User = Depends(require_permission(Resource.PAYROLL, Action.READ))):
        ...
"""
import logging
from typing import Callable, Generator, Iterable, Optional, Tuple

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.errors import ForbiddenError, NotFoundError, UnauthorizedError
from app.core.security import InvalidTokenError, decode_access_token, subject_id
from app.db.session import SessionLocal
from app.models.role import capability_value
from app.models.user import User
from app.services import permission_service
from app.services.auth_service import get_principal

logger = logging.getLogger(__name__)

# auto_error=False so a missing header is reported as 401 by our own handler
security = HTTPBearer(auto_error=False)


def get_db() -> Generator:
    """Dependency for getting database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _user_from_token(db: Session, token: str) -> User:
    try:
        payload = decode_access_token(token)
        user_id = subject_id(payload)
    except InvalidTokenError as e:
        logger.info("Access token rejected: %s", e)
        raise UnauthorizedError("Invalid or expired access token") from None

    try:
        user = get_principal(db, user_id)
    except NotFoundError:
        raise UnauthorizedError("Invalid authentication credentials") from None

    if not user.is_active:
        raise UnauthorizedError("Invalid authentication credentials")
    return user


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """
    Get current authenticated user from the bearer access token

    Raises:
        UnauthorizedError: no token, invalid/expired token, unknown or inactive user
    """
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("No token provided")

    user = _user_from_token(db, credentials.credentials)
    request.state.user_id = user.id
    return user


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """Like get_current_user but anonymous (None) instead of failing"""
    if credentials is None or not credentials.credentials:
        return None
    try:
        return _user_from_token(db, credentials.credentials)
    except UnauthorizedError:
        return None


def require_permission(resource, action) -> Callable[..., User]:
    """
    Dependency factory: the current user must hold (resource, action)

    Usage:
        @router.post("")
        def create_department(user: User = Depends(require_permission(Resource.DEPARTMENT, Action.CREATE))):
            ...
    """
    def permission_checker(
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db),
    ) -> User:
        permission_service.require_or_fail(db, current_user.id, resource, action)
        return current_user
    return permission_checker


def require_any_permission(pairs: Iterable[Tuple[object, object]]) -> Callable[..., User]:
    """Dependency factory: the current user must hold at least one of the pairs"""
    pairs = list(pairs)

    def any_permission_checker(
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db),
    ) -> User:
        grant = permission_service.get_user_grant(db, current_user.id)
        if any(grant.allows(capability_value(r), capability_value(a)) for r, a in pairs):
            return current_user
        logger.warning("User %s attempted action without any of the required permissions", current_user.id)
        raise ForbiddenError("You don't have permission to perform this action")
    return any_permission_checker


def require_role(*role_slugs: str) -> Callable[..., User]:
    """
    Dependency factory: the current user's role slug must be one of role_slugs
    """
    allowed = set(role_slugs)

    def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role.slug not in allowed:
            logger.warning(
                "User %s with role %s attempted to access resource requiring roles: %s",
                current_user.id, current_user.role.slug, ", ".join(sorted(allowed)),
            )
            raise ForbiddenError("You don't have the required role to access this resource")
        return current_user
    return role_checker


def require_ownership_or_permission(resource, action, owner_param: str = "user_id") -> Callable[..., User]:
    """
    Dependency factory: pass if the path parameter `owner_param` is the
    current user's id, otherwise require (resource, action)
    """
    def ownership_checker(
        request: Request,
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db),
    ) -> User:
        raw_owner = request.path_params.get(owner_param)
        try:
            owner_id = int(raw_owner) if raw_owner is not None else None
        except (TypeError, ValueError):
            owner_id = None

        if not permission_service.check_ownership_or_permission(db, current_user.id, resource, action, owner_id):
            logger.warning(
                "User %s attempted to %s %s without ownership or permission",
                current_user.id, capability_value(action), capability_value(resource),
            )
            raise ForbiddenError("You don't have permission to perform this action")
        return current_user
    return ownership_checker
