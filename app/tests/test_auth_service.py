"""
Tests for the authentication service
"""
import pytest
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import (
    ConflictError,
    InvalidCredentialError,
    NotFoundError,
    UnauthorizedError,
    ValidationFailedError,
)
from app.core.security import decode_access_token, verify_password
from app.models.audit_log import AuditLog
from app.models.refresh_token import RefreshToken
from app.models.user import User
from app.schemas.auth import RegisterRequest
from app.services import auth_service
from app.tests.utils import DEFAULT_PASSWORD


def _register(db: Session, email="new.hire@example.com", password="Str0ng!Pass"):
    data = RegisterRequest(email=email, password=password, first_name="New", last_name="Hire")
    return auth_service.register(db, data)


def test_register_then_login_succeeds(db, seeded):
    user = _register(db)

    result = auth_service.login(db, "new.hire@example.com", "Str0ng!Pass")

    assert result.user.id == user.id
    assert result.tokens.access_token
    assert result.tokens.refresh_token
    assert decode_access_token(result.tokens.access_token)["sub"] == str(user.id)


def test_register_assigns_employee_role_and_hashes_password(db, seeded):
    user = _register(db)

    assert user.role_id == seeded["employee"].id
    assert user.password_hash != "Str0ng!Pass"
    assert verify_password("Str0ng!Pass", user.password_hash)


def test_register_normalizes_email_and_rejects_duplicates(db, seeded):
    user = _register(db, email="Mixed.Case@Example.com")
    assert user.email == "mixed.case@example.com"

    with pytest.raises(ConflictError):
        _register(db, email="mixed.case@example.com")


def test_register_rejects_weak_password(db, seeded):
    with pytest.raises(ValidationFailedError) as exc_info:
        _register(db, password="weak")

    assert exc_info.value.errors
    assert db.query(User).count() == 0


def test_login_failures_are_indistinguishable(db, make_user):
    make_user(email="active@example.com")
    make_user(email="inactive@example.com", is_active=False)

    messages = set()
    for email, password in (
        ("active@example.com", "Wr0ng!Pass"),
        ("nobody@example.com", DEFAULT_PASSWORD),
        ("inactive@example.com", DEFAULT_PASSWORD),
    ):
        with pytest.raises(UnauthorizedError) as exc_info:
            auth_service.login(db, email, password)
        messages.add((exc_info.value.kind, exc_info.value.message))

    assert messages == {("unauthorized", auth_service.INVALID_CREDENTIALS)}


@pytest.mark.parametrize(
    "email,password",
    [
        ("active@example.com", "Wr0ng!Pass"),
        ("nobody@example.com", DEFAULT_PASSWORD),
        ("inactive@example.com", DEFAULT_PASSWORD),
    ],
)
def test_every_login_failure_verifies_one_hash(db, make_user, monkeypatch, email, password):
    make_user(email="active@example.com")
    inactive = make_user(email="inactive@example.com", is_active=False)
    calls = []

    def counting_verify(plain, hashed):
        calls.append(hashed)
        return verify_password(plain, hashed)

    monkeypatch.setattr(auth_service, "verify_password", counting_verify)

    with pytest.raises(UnauthorizedError):
        auth_service.login(db, email, password)

    assert len(calls) == 1
    if email == inactive.email:
        assert calls == [inactive.password_hash]


def test_login_stamps_last_login_and_stores_hashed_refresh_token(db, make_user):
    user = make_user(email="someone@example.com")
    assert user.last_login_at is None

    result = auth_service.login(db, "someone@example.com", DEFAULT_PASSWORD, user_agent="pytest", ip_address="10.0.0.1")

    db.refresh(user)
    assert user.last_login_at is not None
    rows = db.query(RefreshToken).filter(RefreshToken.user_id == user.id).all()
    assert len(rows) == 1
    assert rows[0].token_hash != result.tokens.refresh_token
    assert rows[0].user_agent == "pytest"
    assert rows[0].ip_address == "10.0.0.1"


def test_failed_login_is_audited(db, make_user):
    user = make_user(email="someone@example.com")

    with pytest.raises(UnauthorizedError):
        auth_service.login(db, "someone@example.com", "Wr0ng!Pass")

    entry = db.query(AuditLog).filter(AuditLog.action == "AUTH_LOGIN_FAILED").one()
    assert entry.actor_id == user.id
    assert entry.meta_json == {"reason": "wrong password"}


def test_refresh_rotates_and_rejects_replay(db, make_user):
    make_user(email="someone@example.com")
    first = auth_service.login(db, "someone@example.com", DEFAULT_PASSWORD).tokens

    second = auth_service.refresh(db, first.refresh_token)
    assert second.refresh_token != first.refresh_token
    assert second.access_token != first.access_token

    with pytest.raises(UnauthorizedError):
        auth_service.refresh(db, first.refresh_token)

    # The rotated token is still usable
    auth_service.refresh(db, second.refresh_token)


def test_refresh_keeps_other_sessions_by_default(db, make_user):
    make_user(email="someone@example.com")
    laptop = auth_service.login(db, "someone@example.com", DEFAULT_PASSWORD).tokens
    phone = auth_service.login(db, "someone@example.com", DEFAULT_PASSWORD).tokens

    auth_service.refresh(db, laptop.refresh_token)

    auth_service.refresh(db, phone.refresh_token)


def test_refresh_can_revoke_all_sessions(db, make_user, monkeypatch):
    monkeypatch.setattr(settings, "REFRESH_ROTATION_REVOKE_ALL", True)
    make_user(email="someone@example.com")
    laptop = auth_service.login(db, "someone@example.com", DEFAULT_PASSWORD).tokens
    phone = auth_service.login(db, "someone@example.com", DEFAULT_PASSWORD).tokens

    auth_service.refresh(db, laptop.refresh_token)

    with pytest.raises(UnauthorizedError):
        auth_service.refresh(db, phone.refresh_token)


@pytest.mark.parametrize("token", [None, "", "not-a-jwt"])
def test_refresh_rejects_missing_or_malformed_token(db, seeded, token):
    with pytest.raises(UnauthorizedError):
        auth_service.refresh(db, token)


def test_refresh_rejects_access_token(db, make_user):
    make_user(email="someone@example.com")
    tokens = auth_service.login(db, "someone@example.com", DEFAULT_PASSWORD).tokens

    with pytest.raises(UnauthorizedError):
        auth_service.refresh(db, tokens.access_token)


def test_refresh_rejects_deactivated_user(db, make_user):
    user = make_user(email="someone@example.com")
    tokens = auth_service.login(db, "someone@example.com", DEFAULT_PASSWORD).tokens
    user.is_active = False
    db.commit()

    with pytest.raises(UnauthorizedError):
        auth_service.refresh(db, tokens.refresh_token)


def test_logout_without_token_ends_every_session(db, make_user):
    user = make_user(email="someone@example.com")
    sessions = [auth_service.login(db, "someone@example.com", DEFAULT_PASSWORD).tokens for _ in range(3)]

    assert auth_service.logout(db, user.id) == 3

    for tokens in sessions:
        with pytest.raises(UnauthorizedError):
            auth_service.refresh(db, tokens.refresh_token)


def test_logout_with_token_ends_only_that_session(db, make_user):
    user = make_user(email="someone@example.com")
    laptop = auth_service.login(db, "someone@example.com", DEFAULT_PASSWORD).tokens
    phone = auth_service.login(db, "someone@example.com", DEFAULT_PASSWORD).tokens

    assert auth_service.logout(db, user.id, laptop.refresh_token) == 1

    with pytest.raises(UnauthorizedError):
        auth_service.refresh(db, laptop.refresh_token)
    auth_service.refresh(db, phone.refresh_token)


def test_change_password_with_wrong_current_keeps_sessions(db, make_user):
    user = make_user(email="someone@example.com")
    tokens = auth_service.login(db, "someone@example.com", DEFAULT_PASSWORD).tokens

    with pytest.raises(InvalidCredentialError):
        auth_service.change_password(db, user.id, "Wr0ng!Pass", "N3w!Password")

    auth_service.refresh(db, tokens.refresh_token)


def test_change_password_revokes_every_session(db, make_user):
    user = make_user(email="someone@example.com")
    first = auth_service.login(db, "someone@example.com", DEFAULT_PASSWORD).tokens
    second = auth_service.login(db, "someone@example.com", DEFAULT_PASSWORD).tokens

    auth_service.change_password(db, user.id, DEFAULT_PASSWORD, "N3w!Password")

    for tokens in (first, second):
        with pytest.raises(UnauthorizedError):
            auth_service.refresh(db, tokens.refresh_token)

    db.refresh(user)
    assert user.password_changed_at is not None
    auth_service.login(db, "someone@example.com", "N3w!Password")
    with pytest.raises(UnauthorizedError):
        auth_service.login(db, "someone@example.com", DEFAULT_PASSWORD)


def test_change_password_enforces_policy(db, make_user):
    user = make_user(email="someone@example.com")

    with pytest.raises(ValidationFailedError):
        auth_service.change_password(db, user.id, DEFAULT_PASSWORD, "short")


def test_get_principal_unknown_user(db, seeded):
    with pytest.raises(NotFoundError):
        auth_service.get_principal(db, 9999)
