"""Unit tests for auth/tokens.py -- TokenService.

Covers:
- round trip: parse(issue(id).value) == id before expiry
- expiry: issued at T, parsed at T + 24h + 1s -> ExpiredToken (injected clock)
- tamper sensitivity: every single-character substitution is rejected
- wrong secret, pinned algorithm, alg=none -> InvalidSignature
- undecodable structure and bad claims -> MalformedToken
"""

from __future__ import annotations

import base64
import json
import string
from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from auth.errors import ExpiredToken, InvalidSignature, MalformedToken, TokenError
from auth.tokens import TokenService

TEST_SECRET = "unit-test-secret-key-at-least-32-characters"
T0 = datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)
BASE64URL_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits + "-_"


class FakeClock:
    """Settable clock so issue() and parse() can run at chosen instants."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(T0)


@pytest.fixture
def service(clock: FakeClock) -> TokenService:
    return TokenService(secret_key=TEST_SECRET, clock=clock)


def _b64(data: dict) -> str:
    return base64.urlsafe_b64encode(json.dumps(data).encode()).rstrip(b"=").decode()


# ---------------------------------------------------------------------------
# Issue / round trip
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("user_id", [1, 7, 42, 10**12])
def test_round_trip(service: TokenService, user_id: int) -> None:
    token = service.issue(user_id)
    assert token.user_id == user_id
    assert service.parse(token.value) == user_id


def test_issue_sets_24_hour_expiry(service: TokenService) -> None:
    token = service.issue(7)
    assert token.expires_at == T0 + timedelta(hours=24)
    claims = jwt.get_unverified_claims(token.value)
    assert claims == {"sub": "7", "exp": int((T0 + timedelta(hours=24)).timestamp())}


def test_issue_uses_hs256(service: TokenService) -> None:
    assert jwt.get_unverified_header(service.issue(7).value)["alg"] == "HS256"


def test_empty_secret_rejected() -> None:
    with pytest.raises(ValueError):
        TokenService(secret_key="")


# ---------------------------------------------------------------------------
# Expiry
# ---------------------------------------------------------------------------


def test_valid_just_before_expiry(service: TokenService, clock: FakeClock) -> None:
    token = service.issue(7)
    clock.now = T0 + timedelta(hours=24) - timedelta(seconds=1)
    assert service.parse(token.value) == 7


def test_expired_after_24_hours(service: TokenService, clock: FakeClock) -> None:
    token = service.issue(7)
    clock.now = T0 + timedelta(hours=24, seconds=1)
    with pytest.raises(ExpiredToken):
        service.parse(token.value)


def test_custom_ttl(clock: FakeClock) -> None:
    service = TokenService(secret_key=TEST_SECRET, ttl=timedelta(minutes=5), clock=clock)
    token = service.issue(3)
    clock.now = T0 + timedelta(minutes=6)
    with pytest.raises(ExpiredToken):
        service.parse(token.value)


def test_expired_forgery_reports_signature_not_expiry(clock: FakeClock) -> None:
    """Expiry is only meaningful once the signature verifies."""
    forger = TokenService(secret_key="another-secret-key-that-is-long-enough!", clock=clock)
    token = forger.issue(7)
    service = TokenService(secret_key=TEST_SECRET, clock=clock)
    clock.now = T0 + timedelta(days=3)
    with pytest.raises(InvalidSignature):
        service.parse(token.value)


# ---------------------------------------------------------------------------
# Tamper sensitivity
# ---------------------------------------------------------------------------


def test_every_single_character_substitution_is_rejected(service: TokenService) -> None:
    value = service.issue(7).value
    for i, ch in enumerate(value):
        for replacement in BASE64URL_ALPHABET.replace(ch, ""):
            tampered = value[:i] + replacement + value[i + 1 :]
            with pytest.raises((InvalidSignature, MalformedToken)):
                service.parse(tampered)


def test_non_canonical_final_signature_character_is_malformed(service: TokenService) -> None:
    value = service.issue(7).value
    signature = value.rsplit(".", 1)[1]
    # An HS256 MAC is 32 bytes, so the final character carries 2 unused bits.
    assert len(signature) == 43
    last = BASE64URL_ALPHABET.index(signature[-1])
    for offset in (1, 2, 3):
        sibling = BASE64URL_ALPHABET[(last & ~3) | ((last + offset) & 3)]
        with pytest.raises(MalformedToken):
            service.parse(value[:-1] + sibling)


def test_swapped_subject_fails_signature(service: TokenService) -> None:
    header, _payload, signature = service.issue(7).value.split(".")
    forged_payload = _b64({"sub": "99", "exp": int((T0 + timedelta(hours=24)).timestamp())})
    with pytest.raises(InvalidSignature):
        service.parse(f"{header}.{forged_payload}.{signature}")


def test_extended_expiry_fails_signature(service: TokenService) -> None:
    header, _payload, signature = service.issue(7).value.split(".")
    forged_payload = _b64({"sub": "7", "exp": int((T0 + timedelta(days=365)).timestamp())})
    with pytest.raises(InvalidSignature):
        service.parse(f"{header}.{forged_payload}.{signature}")


def test_wrong_secret_fails_signature(clock: FakeClock) -> None:
    other = TokenService(secret_key="a-completely-different-signing-secret!!", clock=clock)
    service = TokenService(secret_key=TEST_SECRET, clock=clock)
    with pytest.raises(InvalidSignature):
        service.parse(other.issue(7).value)


def test_other_algorithm_rejected_even_with_right_secret(service: TokenService) -> None:
    exp = int((T0 + timedelta(hours=1)).timestamp())
    token = jwt.encode({"sub": "7", "exp": exp}, TEST_SECRET, algorithm="HS512")
    with pytest.raises(InvalidSignature):
        service.parse(token)


def test_alg_none_rejected(service: TokenService) -> None:
    exp = int((T0 + timedelta(hours=1)).timestamp())
    token = f"{_b64({'alg': 'none', 'typ': 'JWT'})}.{_b64({'sub': '7', 'exp': exp})}."
    with pytest.raises(TokenError):
        service.parse(token)


# ---------------------------------------------------------------------------
# Malformed input
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("value", ["", "abc", "a.b", "a.b.c", "not-a-jwt-at-all", "....", "%%%.%%%.%%%"])
def test_undecodable_token_is_malformed(service: TokenService, value: str) -> None:
    with pytest.raises(MalformedToken):
        service.parse(value)


def test_non_json_payload_is_malformed(service: TokenService) -> None:
    header, _payload, signature = service.issue(7).value.split(".")
    garbage = base64.urlsafe_b64encode(b"not json").rstrip(b"=").decode()
    with pytest.raises(MalformedToken):
        service.parse(f"{header}.{garbage}.{signature}")


@pytest.mark.parametrize(
    "claims",
    [
        {"exp": int((T0 + timedelta(hours=1)).timestamp())},  # no sub
        {"sub": "alice", "exp": int((T0 + timedelta(hours=1)).timestamp())},  # non-numeric sub
        {"sub": 7, "exp": int((T0 + timedelta(hours=1)).timestamp())},  # sub not a string
        {"sub": "7"},  # no exp
        {"sub": "7", "exp": "tomorrow"},  # exp not a number
    ],
)
def test_signed_but_bad_claims_are_malformed(service: TokenService, claims: dict) -> None:
    token = jwt.encode(claims, TEST_SECRET, algorithm="HS256")
    with pytest.raises(MalformedToken):
        service.parse(token)
