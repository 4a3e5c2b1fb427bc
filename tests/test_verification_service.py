from __future__ import annotations

import json

import pytest

from household_api.services.verification_service import (
    VerificationCodeService,
    code_key,
    generate_code,
    limit_key,
)


@pytest.fixture
def codes(store):
    return VerificationCodeService(store)


def test_generated_codes_are_six_digits():
    for _ in range(50):
        code = generate_code()
        assert len(code) == 6
        assert code.isdigit()


def test_alice_login_code_flow(codes):
    issued = codes.generate("alice", "bob@x.com", "login")
    assert len(issued.code) == 6 and issued.code.isdigit()
    assert issued.expires_in == 300
    assert codes.time_to_live("alice", "bob@x.com", "login") == 300

    assert codes.can_send_new("alice", "bob@x.com", "login") is False

    wrong = "000000" if issued.code != "000000" else "111111"
    assert codes.verify("alice", "bob@x.com", wrong, "login") is False
    assert codes.time_to_live("alice", "bob@x.com", "login") is not None

    assert codes.verify("alice", "bob@x.com", issued.code, "login") is True
    assert codes.verify("alice", "bob@x.com", issued.code, "login") is False


def test_throttle_lapses_before_code(codes, clock):
    issued = codes.generate("alice", "a@x.com")
    assert codes.send_limit_time_to_live("alice", "a@x.com") == 60

    clock.advance(60)
    assert codes.can_send_new("alice", "a@x.com") is True
    assert codes.send_limit_time_to_live("alice", "a@x.com") is None
    assert codes.time_to_live("alice", "a@x.com") == 240
    assert codes.verify("alice", "a@x.com", issued.code) is True


def test_code_expires_after_ttl(codes, clock):
    issued = codes.generate("alice", "a@x.com")
    clock.advance(300)
    assert codes.time_to_live("alice", "a@x.com") is None
    assert codes.verify("alice", "a@x.com", issued.code) is False


def test_new_code_replaces_previous(codes, clock):
    first = codes.generate("alice", "a@x.com")
    clock.advance(61)
    second = codes.generate("alice", "a@x.com")
    if first.code != second.code:
        assert codes.verify("alice", "a@x.com", first.code) is False
    assert codes.verify("alice", "a@x.com", second.code) is True


def test_purposes_are_independent(codes):
    login = codes.generate("alice", "a@x.com", "login")
    assert codes.can_send_new("alice", "a@x.com", "reset_password") is True
    assert codes.verify("alice", "a@x.com", login.code, "reset_password") is False
    assert codes.verify("alice", "a@x.com", login.code, "login") is True


def test_record_keeps_metadata(codes, store):
    codes.generate("alice", "a@x.com", "login", source_address="10.0.0.1")
    record = json.loads(store.get(code_key("alice", "a@x.com", "login")))
    assert record["username"] == "alice"
    assert record["purpose"] == "login"
    assert record["source_address"] == "10.0.0.1"
    assert store.exists(limit_key("alice", "a@x.com", "login"))


def test_unreadable_record_is_discarded(codes, store):
    store.set_with_expiry(code_key("alice", "a@x.com", "login"), "not-json", 300)
    assert codes.verify("alice", "a@x.com", "123456") is False
    assert store.get(code_key("alice", "a@x.com", "login")) is None


def test_clear_removes_code_and_throttle(codes):
    codes.generate("alice", "a@x.com")
    assert codes.clear("alice", "a@x.com") is True
    assert codes.time_to_live("alice", "a@x.com") is None
    assert codes.can_send_new("alice", "a@x.com") is True
    assert codes.clear("alice", "a@x.com") is False


def test_custom_lifetimes(store):
    codes = VerificationCodeService(store, code_ttl=120, send_limit=30)
    issued = codes.generate("alice", "a@x.com")
    assert issued.expires_in == 120
    assert codes.send_limit_time_to_live("alice", "a@x.com") == 30


@pytest.mark.parametrize("options", [{"code_ttl": 0}, {"send_limit": 0}, {"code_ttl": -5}])
def test_non_positive_lifetimes_rejected(store, options):
    with pytest.raises(ValueError):
        VerificationCodeService(store, **options)
