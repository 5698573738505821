"""
Authentication service - registration, login, token refresh, logout, password change

Session lifecycle of a user:

    Anonymous --login--> Authenticated (access token valid)
    Authenticated --access expires--> AccessExpired (refresh token still valid)
    AccessExpired --refresh--> Authenticated (old refresh token revoked)
    any --logout / password change / refresh expiry--> SessionEnded

Every login/refresh failure surfaces as the same UnauthorizedError so callers
cannot tell an unknown email from a wrong password; the real reason is only
logged.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from app.constants import DEFAULT_ROLE_SLUG
from app.core.config import settings
from app.core.errors import (
    ConflictError,
    InvalidCredentialError,
    NotFoundError,
    UnauthorizedError,
    ValidationFailedError,
)
from app.core.security import (
    InvalidTokenError,
    build_claims,
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
    hash_password,
    subject_id,
    verify_password,
)
from app.core.validation import validate_password_strength
from app.models.role import Role
from app.models.user import User
from app.schemas.auth import RegisterRequest
from app.services import token_ledger_service as ledger
from app.services.audit_service import log_audit
from app.utils.datetime_utils import now_utc

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"
INVALID_REFRESH_TOKEN = "Invalid or expired refresh token"

_DUMMY_HASH = hash_password("timing-equalizer-not-a-real-password")


@dataclass
class TokenPair:
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


@dataclass
class LoginResult:
    user: User
    tokens: TokenPair


def normalize_email(email: str) -> str:
    return email.strip().lower()


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == normalize_email(email)).first()


def get_principal(db: Session, user_id: int) -> User:
    """
    Load a user with role and department

    Raises:
        NotFoundError: if the user does not exist
    """
    user = (
        db.query(User)
        .options(joinedload(User.role), joinedload(User.department))
        .filter(User.id == user_id)
        .first()
    )
    if user is None:
        raise NotFoundError("User not found")
    return user


def _issue_token_pair(
    db: Session,
    user: User,
    user_agent: Optional[str],
    ip_address: Optional[str],
) -> TokenPair:
    claims = build_claims(user.id, user.email, user.role_id)
    access_token = create_access_token(claims)
    refresh_token = create_refresh_token(claims)
    ledger.issue_refresh_token(
        db,
        user.id,
        refresh_token,
        settings.REFRESH_TOKEN_EXPIRE_DAYS,
        user_agent=user_agent,
        ip_address=ip_address,
        commit=False,
    )
    return TokenPair(access_token=access_token, refresh_token=refresh_token)


def register(db: Session, data: RegisterRequest) -> User:
    """
    Self-register a user with the default (employee) role

    Raises:
        ValidationFailedError: password does not meet the policy
        ConflictError: email already registered
    """
    password_check = validate_password_strength(data.password)
    if not password_check.ok:
        raise ValidationFailedError("Validation failed", errors=password_check.errors)

    email = normalize_email(data.email)
    if get_user_by_email(db, email):
        raise ConflictError("User with this email already exists")

    default_role = db.query(Role).filter(Role.slug == DEFAULT_ROLE_SLUG).first()
    if default_role is None:
        # Seeds missing is a deployment fault, not a client error
        raise RuntimeError("Default role not found. Please run database seeds.")

    user = User(
        email=email,
        password_hash=hash_password(data.password),
        first_name=data.first_name,
        last_name=data.last_name,
        phone=data.phone,
        role_id=default_role.id,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info("New user registered: id=%s", user.id)
    log_audit(db, actor_id=user.id, action="AUTH_REGISTER", entity_type="user", entity_id=user.id)
    return user


def login(
    db: Session,
    email: str,
    password: str,
    user_agent: Optional[str] = None,
    ip_address: Optional[str] = None,
) -> LoginResult:
    """
    Verify credentials and open a session

    Raises:
        UnauthorizedError: unknown email, inactive account or wrong password
    """
    user = get_user_by_email(db, email)

    # Every failure path runs exactly one hash verification so response time
    # does not reveal which check failed
    reason = None
    if user is None:
        verify_password(password, _DUMMY_HASH)
        reason = "unknown email"
    elif not user.is_active:
        verify_password(password, user.password_hash)
        reason = "inactive account"
    elif not verify_password(password, user.password_hash):
        reason = "wrong password"

    if reason is not None:
        logger.warning("Login failed (%s) from %s", reason, ip_address or "unknown address")
        if user is not None:
            log_audit(
                db,
                actor_id=user.id,
                action="AUTH_LOGIN_FAILED",
                entity_type="auth",
                meta={"reason": reason},
                ip_address=ip_address,
                user_agent=user_agent,
            )
        raise UnauthorizedError(INVALID_CREDENTIALS)

    user.last_login_at = now_utc()
    tokens = _issue_token_pair(db, user, user_agent, ip_address)
    db.commit()
    db.refresh(user)

    logger.info("User logged in: id=%s", user.id)
    log_audit(
        db,
        actor_id=user.id,
        action="AUTH_LOGIN_SUCCESS",
        entity_type="auth",
        ip_address=ip_address,
        user_agent=user_agent,
    )
    return LoginResult(user=user, tokens=tokens)


def refresh(
    db: Session,
    raw_refresh_token: Optional[str],
    user_agent: Optional[str] = None,
    ip_address: Optional[str] = None,
) -> TokenPair:
    """
    Exchange a refresh token for a new access/refresh pair (rotation)

    The presented token is revoked; reusing it afterwards fails. With
    REFRESH_ROTATION_REVOKE_ALL every other live session of the user is
    revoked as well.

    Raises:
        UnauthorizedError: bad signature/expiry, token not live in the ledger,
            or user missing/inactive
    """
    if not raw_refresh_token:
        raise UnauthorizedError("Refresh token not provided")

    try:
        payload = decode_refresh_token(raw_refresh_token)
        user_id = subject_id(payload)
    except InvalidTokenError as e:
        logger.warning("Refresh rejected: %s", e)
        raise UnauthorizedError(INVALID_REFRESH_TOKEN) from None

    record = ledger.find_matching_token(db, user_id, raw_refresh_token)
    if record is None:
        # Signature is fine but the ledger does not know it: revoked, rotated or swept
        logger.warning("Refresh rejected for user %s: token not live in ledger (possible reuse)", user_id)
        raise UnauthorizedError(INVALID_REFRESH_TOKEN)

    user = db.query(User).filter(User.id == user_id).first()
    if user is None or not user.is_active:
        logger.warning("Refresh rejected for user %s: user missing or inactive", user_id)
        raise UnauthorizedError(INVALID_REFRESH_TOKEN)

    if settings.REFRESH_ROTATION_REVOKE_ALL:
        ledger.revoke_all(db, user.id, commit=False)
    else:
        ledger.revoke_record(db, record, commit=False)
    tokens = _issue_token_pair(db, user, user_agent, ip_address)
    db.commit()

    logger.info("Refresh token rotated for user %s", user.id)
    return tokens


def logout(db: Session, user_id: int, raw_refresh_token: Optional[str] = None) -> int:
    """
    End one session (token given) or every session (no token) of the user

    Returns:
        Number of refresh tokens revoked
    """
    count = ledger.revoke_one(db, user_id, raw_refresh_token)
    logger.info("User logged out: id=%s, all_sessions=%s", user_id, not raw_refresh_token)
    log_audit(
        db,
        actor_id=user_id,
        action="AUTH_LOGOUT",
        entity_type="auth",
        meta={"all_sessions": not raw_refresh_token, "revoked": count},
    )
    return count


def change_password(db: Session, user_id: int, current_password: str, new_password: str) -> None:
    """
    Replace the user's password and end every session

    Raises:
        NotFoundError: user does not exist
        InvalidCredentialError: current password does not verify (sessions untouched)
        ValidationFailedError: new password does not meet the policy
    """
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise NotFoundError("User not found")

    if not verify_password(current_password, user.password_hash):
        logger.warning("Password change rejected for user %s: wrong current password", user_id)
        raise InvalidCredentialError("Current password is incorrect")

    password_check = validate_password_strength(new_password, field_name="new_password")
    if not password_check.ok:
        raise ValidationFailedError("Validation failed", errors=password_check.errors)

    user.password_hash = hash_password(new_password)
    user.password_changed_at = now_utc()
    db.commit()

    logout(db, user_id)
    logger.info("Password changed for user: %s", user_id)

