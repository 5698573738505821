"""
Tests for password hashing and the token codec
"""
from datetime import timedelta

import bcrypt
import pytest

from app.core.config import settings
from app.core.security import (
    InvalidTokenError,
    build_claims,
    create_access_token,
    create_refresh_token,
    decode_access_token,
    decode_refresh_token,
    hash_password,
    issue_token,
    verify_password,
    verify_token,
)


def test_hash_is_salted_and_verifies():
    first, second = hash_password("Passw0rd!"), hash_password("Passw0rd!")

    assert first != second
    assert verify_password("Passw0rd!", first)
    assert not verify_password("passw0rd!", first)


def test_legacy_bcrypt_hash_verifies():
    legacy = bcrypt.hashpw(b"Passw0rd!", bcrypt.gensalt()).decode("utf-8")

    assert verify_password("Passw0rd!", legacy)
    assert not verify_password("wrong", legacy)


@pytest.mark.parametrize("stored", [None, "", "plaintext", "$argon2id$garbage"])
def test_unusable_hashes_never_verify(stored):
    assert verify_password("Passw0rd!", stored) is False


def test_access_token_claims():
    token = create_access_token(build_claims(7, "a@example.com", 3))

    payload = decode_access_token(token)
    assert payload["sub"] == "7"
    assert payload["email"] == "a@example.com"
    assert payload["role_id"] == 3
    assert payload["type"] == "access"
    assert payload["jti"]


def test_tokens_minted_together_differ():
    claims = build_claims(7, "a@example.com", 3)

    assert create_refresh_token(claims) != create_refresh_token(claims)


def test_access_and_refresh_secrets_are_not_interchangeable():
    claims = build_claims(7, "a@example.com", 3)

    with pytest.raises(InvalidTokenError):
        decode_refresh_token(create_access_token(claims))
    with pytest.raises(InvalidTokenError):
        decode_access_token(create_refresh_token(claims))


def test_expired_token_is_rejected():
    token = issue_token({"sub": "7"}, timedelta(seconds=-5), settings.JWT_ACCESS_SECRET)

    with pytest.raises(InvalidTokenError):
        verify_token(token, settings.JWT_ACCESS_SECRET)


def test_missing_secret_is_a_configuration_error():
    with pytest.raises(RuntimeError):
        issue_token({"sub": "7"}, timedelta(minutes=1), "")
