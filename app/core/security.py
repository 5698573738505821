"""
Security primitives: password/token hashing and the signed token codec
"""
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError
from jose import JWTError, jwt

from app.core.config import settings

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"

_hasher = PasswordHasher()


class InvalidTokenError(Exception):
    """Raised when a token fails signature, format, type or expiry checks"""


def hash_password(password: str) -> str:
    """Hash a password (or any secret) with argon2id and a per-call random salt"""
    return _hasher.hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """
    Verify a secret against a stored hash

    argon2 hashes are the default; bcrypt hashes from older rows still verify.
    Never raises: an unknown or corrupt hash simply fails to verify.
    """
    if not hashed_password:
        return False

    if hashed_password.startswith("$argon2"):
        try:
            return _hasher.verify(hashed_password, plain_password)
        except VerifyMismatchError:
            return False
        except (VerificationError, InvalidHashError) as e:
            logger.error("argon2 verification error: %s", e)
            return False

    if hashed_password.startswith("$2"):
        try:
            return bcrypt.checkpw(
                plain_password.encode("utf-8")[:72],
                hashed_password.encode("utf-8"),
            )
        except ValueError as e:
            logger.error("bcrypt verification error: %s", e)
            return False

    logger.error("Unrecognised password hash scheme")
    return False


def hash_token(raw_token: str) -> str:
    """One-way salted hash for a refresh token. Same scheme as passwords."""
    return hash_password(raw_token)


def verify_token_hash(raw_token: str, token_hash: str) -> bool:
    return verify_password(raw_token, token_hash)


# ---------------------------------------------------------------------------
# Token codec
# ---------------------------------------------------------------------------

def issue_token(
    claims: Dict[str, Any],
    ttl: timedelta,
    secret: Optional[str],
    token_type: Optional[str] = None,
) -> str:
    """
    Sign a compact JWT carrying `claims` that expires after `ttl`

    Args:
        claims: identity claims (sub, email, role_id)
        ttl: lifetime of the token
        secret: signing secret for this token class
        token_type: optional "access" / "refresh" marker checked on verify

    Raises:
        RuntimeError: if no secret is configured
    """
    if not secret:
        raise RuntimeError("Token signing secret is not configured")

    now = datetime.now(timezone.utc)
    to_encode = dict(claims)
    to_encode.update({
        "iat": now,
        "exp": now + ttl,
        # Two tokens minted in the same second for the same user must still differ
        "jti": uuid.uuid4().hex,
    })
    if token_type:
        to_encode["type"] = token_type

    return jwt.encode(to_encode, secret, algorithm=settings.JWT_ALGORITHM)


def verify_token(token: str, secret: Optional[str], token_type: Optional[str] = None) -> Dict[str, Any]:
    """
    Verify signature and expiry of a token and return its claims

    Raises:
        InvalidTokenError: bad signature, malformed token, wrong type or expired
    """
    if not secret:
        raise RuntimeError("Token signing secret is not configured")
    if not token:
        raise InvalidTokenError("Token is empty")

    try:
        payload = jwt.decode(token, secret, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as e:
        raise InvalidTokenError(str(e)) from e

    if token_type and payload.get("type") != token_type:
        raise InvalidTokenError(f"Expected a {token_type} token")
    if payload.get("sub") is None:
        raise InvalidTokenError("Token has no subject")
    return payload


def build_claims(user_id: int, email: str, role_id: Optional[int]) -> Dict[str, Any]:
    # RFC 7519 requires the sub claim to be a string
    return {"sub": str(user_id), "email": email, "role_id": role_id}


def create_access_token(data: Dict[str, Any], expires_minutes: Optional[int] = None) -> str:
    """Create a short-lived access token"""
    if expires_minutes is None:
        expires_minutes = settings.ACCESS_TOKEN_EXPIRE_MINUTES
    return issue_token(
        data,
        timedelta(minutes=expires_minutes),
        settings.JWT_ACCESS_SECRET,
        token_type=ACCESS_TOKEN_TYPE,
    )


def create_refresh_token(data: Dict[str, Any], expires_days: Optional[int] = None) -> str:
    """Create a long-lived refresh token"""
    if expires_days is None:
        expires_days = settings.REFRESH_TOKEN_EXPIRE_DAYS
    return issue_token(
        data,
        timedelta(days=expires_days),
        settings.JWT_REFRESH_SECRET,
        token_type=REFRESH_TOKEN_TYPE,
    )


def decode_access_token(token: str) -> Dict[str, Any]:
    return verify_token(token, settings.JWT_ACCESS_SECRET, token_type=ACCESS_TOKEN_TYPE)


def decode_refresh_token(token: str) -> Dict[str, Any]:
    return verify_token(token, settings.JWT_REFRESH_SECRET, token_type=REFRESH_TOKEN_TYPE)


def subject_id(payload: Dict[str, Any]) -> int:
    """Principal id carried in a verified payload"""
    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError) as e:
        raise InvalidTokenError("Token subject is not a valid id") from e
