"""
tests/test_bearer_tokens.py -- Unit tests for auth/tokens.py (BearerTokenService).

Covers:
  - issue -> verify returns the same Identity
  - verify past exp -> TokenExpired (clock injected, no sleeping)
  - tampered payload or signature, wrong key, garbage -> SignatureInvalid
  - missing claims -> SignatureInvalid
  - claims carry sub as a string plus email/name/iat/exp
"""

from __future__ import annotations

import string
from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from auth.models import Identity
from auth.tokens import BearerTokenService
from core.errors import SignatureInvalid, TokenExpired

KEY = "k" * 48
OTHER_KEY = "o" * 48
_BASE64URL = string.ascii_letters + string.digits + "-_"


class FakeClock:
    def __init__(self) -> None:
        self.now = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def service(clock) -> BearerTokenService:
    return BearerTokenService(KEY, expire_seconds=3600, now=clock)


@pytest.fixture
def identity() -> Identity:
    return Identity(user_id=42, email="token@example.com", display_name="Tok")


def test_round_trip(service, identity):
    token = service.issue(identity)
    assert service.verify(token.value) == identity
    assert token.user_id == 42
    assert token.expires_at - token.issued_at == timedelta(hours=1)


def test_claims(service, identity, clock):
    token = service.issue(identity)
    claims = jwt.get_unverified_claims(token.value)
    assert claims["sub"] == "42"
    assert claims["email"] == "token@example.com"
    assert claims["name"] == "Tok"
    assert claims["exp"] - claims["iat"] == 3600


def test_valid_until_exp_then_expired(service, identity, clock):
    token = service.issue(identity)
    clock.now += timedelta(seconds=3600)
    assert service.verify(token.value) == identity
    clock.now += timedelta(seconds=1)
    with pytest.raises(TokenExpired):
        service.verify(token.value)


def test_tampered_payload_rejected(service, identity):
    header, _payload, signature = service.issue(identity).value.split(".")
    forged = jwt.encode({"sub": "1", "email": "x@example.com", "iat": 0, "exp": 9999999999}, KEY, algorithm="HS256")
    forged_payload = forged.split(".")[1]
    with pytest.raises(SignatureInvalid):
        service.verify(f"{header}.{forged_payload}.{signature}")


def test_any_single_character_change_rejected(service, identity):
    value = service.issue(identity).value
    for i, original in enumerate(value):
        replacement = "A" if original != "A" else "B"
        altered = value[:i] + replacement + value[i + 1 :]
        with pytest.raises(SignatureInvalid):
            service.verify(altered)


def test_every_alternative_last_character_rejected(service, identity):
    value = service.issue(identity).value
    for replacement in _BASE64URL:
        if replacement == value[-1]:
            continue
        with pytest.raises(SignatureInvalid):
            service.verify(value[:-1] + replacement)


def test_token_from_other_key_rejected(identity, clock):
    other = BearerTokenService(OTHER_KEY, now=clock)
    token = other.issue(identity)
    with pytest.raises(SignatureInvalid):
        BearerTokenService(KEY, now=clock).verify(token.value)


@pytest.mark.parametrize("value", ["", "garbage", "a.b.c"])
def test_garbage_rejected(service, value):
    with pytest.raises(SignatureInvalid):
        service.verify(value)


def test_missing_claims_rejected(service):
    value = jwt.encode({"sub": "1", "exp": 9999999999}, KEY, algorithm="HS256")
    with pytest.raises(SignatureInvalid):
        service.verify(value)


def test_non_numeric_subject_rejected(service):
    value = jwt.encode({"sub": "abc", "email": "x@example.com", "iat": 0, "exp": 9999999999}, KEY, algorithm="HS256")
    with pytest.raises(SignatureInvalid):
        service.verify(value)
