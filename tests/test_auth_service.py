from __future__ import annotations

import pytest

from household_api.core.errors import (
    ConflictError,
    ForbiddenError,
    InvalidCredentialError,
    InvalidInputError,
    NotFoundError,
    RateLimitedError,
)
from household_api.repositories.user_repository import UserRepository
from household_api.services import auth_service as auth_module
from household_api.services.auth_service import AuthService, InvalidCodeError
from household_api.services.token_service import TokenService
from household_api.services.verification_service import VerificationCodeService


@pytest.fixture
def sent(monkeypatch):
    outbox = []

    def fake_send(to_email, code, purpose, expires_in):
        outbox.append({"to": to_email, "code": code, "purpose": purpose, "expires_in": expires_in})
        return True

    monkeypatch.setattr(auth_module, "send_verification_code", fake_send)
    return outbox


@pytest.fixture
def auth(store):
    return AuthService(codes=VerificationCodeService(store), tokens=TokenService(store))


REGISTRATION = {
    "username": "alice",
    "name": "Alice",
    "email": "alice@example.com",
    "password": "secret1",
    "password_confirmation": "secret1",
}


def test_register_assigns_default_role(auth):
    user = auth.register(REGISTRATION)
    assert user.id
    assert user.password_hash.startswith("argon2$")
    assert auth.permissions_of(UserRepository().get_user(user.id))["roles"] == ["user"]
    assert auth.check_username("alice") is False
    assert auth.check_username("carol") is True


def test_register_rejects_duplicates_and_bad_input(auth):
    auth.register(REGISTRATION)
    with pytest.raises(ConflictError):
        auth.register(REGISTRATION)
    with pytest.raises(InvalidInputError) as exc:
        auth.register({**REGISTRATION, "username": "bob", "password_confirmation": "other1"})
    assert "password_confirmation" in exc.value.errors
    with pytest.raises(InvalidInputError) as exc:
        auth.register({**REGISTRATION, "username": "b!", "phone": "123"})
    assert set(exc.value.errors) >= {"username", "phone"}


def test_login_with_password(auth):
    auth.register(REGISTRATION)
    result = auth.login({"username": "alice", "password": "secret1"})
    assert result.to_dict()["user"]["username"] == "alice"
    user, claims = auth.authenticate(result.token.token)
    assert user.username == "alice"
    assert claims["sub"] == str(user.id)

    with pytest.raises(InvalidCredentialError):
        auth.login({"username": "alice", "password": "wrong-1"})
    with pytest.raises(InvalidCredentialError):
        auth.login({"username": "nobody", "password": "secret1"})


def test_disabled_account_cannot_login(auth):
    user = auth.register(REGISTRATION)
    UserRepository().set_user_status(user.id, 0)
    with pytest.raises(ForbiddenError):
        auth.login({"username": "alice", "password": "secret1"})


def test_email_code_login_flow(auth, sent):
    auth.register(REGISTRATION)
    dispatch = auth.send_email_code({"username": "alice", "email": "alice@example.com", "type": "login"}, "127.0.0.1")
    assert dispatch.expires_in == 300
    assert dispatch.email_sent is True
    code = sent[0]["code"]

    with pytest.raises(RateLimitedError) as exc:
        auth.send_email_code({"username": "alice", "email": "alice@example.com"})
    assert 0 < exc.value.retry_after <= 60

    result = auth.email_login({"username": "alice", "email": "alice@example.com", "code": code})
    assert result.user.username == "alice"
    with pytest.raises(InvalidCodeError):
        auth.email_login({"username": "alice", "email": "alice@example.com", "code": code})


def test_send_code_requires_matching_user(auth, sent):
    auth.register(REGISTRATION)
    with pytest.raises(InvalidInputError) as exc:
        auth.send_email_code({"username": "alice", "email": "other@example.com"})
    assert "user" in exc.value.errors
    assert sent == []


def test_email_login_for_unknown_pair(auth, store):
    codes = VerificationCodeService(store)
    issued = codes.generate("ghost", "ghost@example.com", "login")
    with pytest.raises(NotFoundError):
        auth.email_login({"username": "ghost", "email": "ghost@example.com", "code": issued.code})


def test_reset_password_with_code(auth, sent):
    auth.register(REGISTRATION)
    auth.send_email_code({"username": "alice", "email": "alice@example.com", "type": "reset_password"})
    code = sent[0]["code"]
    assert sent[0]["purpose"] == "reset_password"

    with pytest.raises(InvalidCodeError):
        auth.email_login({"username": "alice", "email": "alice@example.com", "code": code})

    auth.reset_password(
        {
            "username": "alice",
            "email": "alice@example.com",
            "code": code,
            "password": "newpass1",
            "password_confirmation": "newpass1",
        }
    )
    assert auth.login({"username": "alice", "password": "newpass1"}).user.username == "alice"
    with pytest.raises(InvalidCredentialError):
        auth.login({"username": "alice", "password": "secret1"})


def test_logout_and_refresh(auth):
    auth.register(REGISTRATION)
    first = auth.login({"username": "alice", "password": "secret1"})
    refreshed = auth.refresh(first.token.token)
    with pytest.raises(InvalidCredentialError):
        auth.authenticate(first.token.token)

    _, claims = auth.authenticate(refreshed.token.token)
    auth.logout(claims)
    with pytest.raises(InvalidCredentialError):
        auth.authenticate(refreshed.token.token)


def test_assign_role_grants_permissions(auth):
    user = auth.register(REGISTRATION)
    result = auth.assign_role(user.id, "admin")
    assert "admin" in result["roles"]
    assert "manage-services" in result["permissions"]
    with pytest.raises(NotFoundError):
        auth.assign_role(user.id, "wizard")
    with pytest.raises(NotFoundError):
        auth.assign_role(999, "admin")
