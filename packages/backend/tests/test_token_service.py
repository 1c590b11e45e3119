"""TokenService tests — issue, verify, refresh.

Learn: all tests run against a FakeClock so expiry boundaries are exact.
Pattern: test_<operation>_<scenario>
"""

import pytest

from conftest import FakeClock
from sentrycircle.auth.codec import HmacTokenCodec, PyJWTTokenCodec
from sentrycircle.auth.jwt import (
    InvalidSignature,
    InvalidTokenFormat,
    TokenError,
    TokenExpired,
    TokenService,
)
from sentrycircle.config import Settings

SECRET = "service-secret-0123456789abcdef012345678"
IDENTITY = {"userId": "u1", "email": "a@b.com", "role": "guardian"}
T = 1_700_000_000


@pytest.fixture()
def clock():
    return FakeClock(T)


@pytest.fixture(params=[HmacTokenCodec, PyJWTTokenCodec], ids=["hmac", "pyjwt"])
def svc(request, clock):
    return TokenService(codec=request.param(SECRET), clock=clock)


# ═══════════════════════════════════════════════════════════
# Issue + Verify
# ═══════════════════════════════════════════════════════════


def test_issue_then_verify_returns_claims(svc):
    token = svc.issue(IDENTITY, 3600)
    claims = svc.verify(token)

    assert claims.to_payload() == {**IDENTITY, "iat": T, "exp": T + 3600}
    assert claims.user_id == "u1"
    assert claims.issued_at == T
    assert claims.expires_at == T + 3600


def test_issue_preserves_extra_claims(svc):
    token = svc.issue({**IDENTITY, "deviceId": "d1"}, 60)
    assert svc.verify(token).to_payload()["deviceId"] == "d1"


@pytest.mark.parametrize(
    "extra", [{"aud": "dashboard"}, {"sub": 42}, {"iss": 5}, {"jti": 7}], ids=["aud", "sub", "iss", "jti"]
)
def test_issue_preserves_registered_claims(svc, extra):
    token = svc.issue({**IDENTITY, **extra}, 3600)
    payload = svc.verify(token).to_payload()
    assert {k: payload[k] for k in extra} == extra


@pytest.mark.parametrize("ttl", [0, -5])
def test_issue_rejects_non_positive_ttl(svc, ttl):
    with pytest.raises(ValueError, match="positive"):
        svc.issue(IDENTITY, ttl)


def test_issue_default_ttl_is_seven_days(svc):
    claims = svc.verify(svc.issue(IDENTITY))
    assert claims.expires_at - claims.issued_at == 7 * 24 * 60 * 60


def test_issue_overrides_caller_supplied_times(svc):
    token = svc.issue({**IDENTITY, "iat": 1, "exp": 2}, 100)
    claims = svc.verify(token)
    assert (claims.issued_at, claims.expires_at) == (T, T + 100)


@pytest.mark.parametrize("missing", ["userId", "email", "role"])
def test_issue_requires_identity_claims(svc, missing):
    claims = {k: v for k, v in IDENTITY.items() if k != missing}
    with pytest.raises(ValueError, match=missing):
        svc.issue(claims)


def test_ttl_must_be_positive():
    with pytest.raises(ValueError):
        TokenService(codec=HmacTokenCodec(SECRET), ttl_seconds=0)


def test_verify_does_not_touch_the_token(svc):
    token = svc.issue(IDENTITY, 3600)
    assert svc.verify(token) == svc.verify(token)


# ═══════════════════════════════════════════════════════════
# Expiry
# ═══════════════════════════════════════════════════════════


def test_verify_one_second_before_expiry(svc, clock):
    token = svc.issue(IDENTITY, 3600)
    clock.now = T + 3599
    assert svc.verify(token).user_id == "u1"


def test_verify_at_exact_expiry_is_expired(svc, clock):
    token = svc.issue(IDENTITY, 3600)
    clock.now = T + 3600
    with pytest.raises(TokenExpired):
        svc.verify(token)


def test_verify_after_expiry(svc, clock):
    token = svc.issue(IDENTITY, 3600)
    clock.now = T + 10 * 3600
    with pytest.raises(TokenExpired):
        svc.verify(token)


# ═══════════════════════════════════════════════════════════
# Tampering
# ═══════════════════════════════════════════════════════════


def test_verify_with_different_secret(clock):
    issuer = TokenService(codec=HmacTokenCodec(SECRET), clock=clock)
    verifier = TokenService(codec=HmacTokenCodec(SECRET + "-rotated"), clock=clock)
    with pytest.raises(InvalidSignature):
        verifier.verify(issuer.issue(IDENTITY, 3600))


def test_verify_payload_swap(svc):
    """Re-signing isn't possible without the secret: splice a forged payload in."""
    token = svc.issue(IDENTITY, 3600)
    forged = svc.issue({**IDENTITY, "userId": "attacker"}, 3600)
    header, _, signature = token.split(".")
    spliced = f"{header}.{forged.split('.')[1]}.{signature}"
    with pytest.raises(InvalidSignature):
        svc.verify(spliced)


@pytest.mark.parametrize("segment", [0, 1, 2], ids=["header", "payload", "signature"])
def test_any_single_character_change_fails(svc, segment):
    """Every one-character substitution in a segment is rejected."""
    token = svc.issue(IDENTITY, 3600)
    parts = token.split(".")
    allowed = {
        0: (InvalidTokenFormat, InvalidSignature),
        # A mutated exp can land in the past, and expiry is checked first
        1: (InvalidTokenFormat, InvalidSignature, TokenExpired),
        2: (InvalidTokenFormat, InvalidSignature),
    }[segment]

    original = parts[segment]
    for i, ch in enumerate(original):
        replacement = "A" if ch != "A" else "B"
        mutated = list(parts)
        mutated[segment] = original[:i] + replacement + original[i + 1:]
        with pytest.raises(TokenError) as exc:
            svc.verify(".".join(mutated))
        assert isinstance(exc.value, allowed), (i, type(exc.value).__name__)


def test_verify_rejects_token_missing_identity(clock):
    codec = HmacTokenCodec(SECRET)
    svc = TokenService(codec=codec, clock=clock)
    token = codec.encode({"email": "a@b.com", "iat": T, "exp": T + 60})
    with pytest.raises(InvalidTokenFormat):
        svc.verify(token)


@pytest.mark.parametrize("garbage", ["", "abc", "a.b.c", "Bearer x.y.z"])
def test_verify_garbage(svc, garbage):
    with pytest.raises(InvalidTokenFormat):
        svc.verify(garbage)


# ═══════════════════════════════════════════════════════════
# Refresh
# ═══════════════════════════════════════════════════════════


def test_refresh_issues_fresh_window(svc, clock):
    token = svc.issue({**IDENTITY, "deviceId": "d1"}, 3600)
    clock.now = T + 1800

    refreshed = svc.refresh(token)
    claims = svc.verify(refreshed)

    assert claims.identity() == IDENTITY
    assert claims.issued_at == T + 1800
    assert claims.expires_at == T + 1800 + svc.ttl_seconds
    # Only the identity claims carry over
    assert "deviceId" not in claims.to_payload()


def test_refresh_expired_token_fails_like_verify(svc, clock):
    token = svc.issue(IDENTITY, 3600)
    clock.now = T + 3600
    with pytest.raises(TokenExpired):
        svc.refresh(token)


def test_refresh_bad_signature_fails_like_verify(clock):
    issuer = TokenService(codec=HmacTokenCodec("another-secret-0123456789abcdef01234"), clock=clock)
    svc = TokenService(codec=HmacTokenCodec(SECRET), clock=clock)
    with pytest.raises(InvalidSignature):
        svc.refresh(issuer.issue(IDENTITY, 3600))


def test_refresh_malformed_token(svc):
    with pytest.raises(InvalidTokenFormat):
        svc.refresh("not-a-token")


# ═══════════════════════════════════════════════════════════
# Configuration
# ═══════════════════════════════════════════════════════════


def test_from_settings_uses_configured_codec_and_ttl():
    config = Settings(jwt_secret=SECRET, token_codec="pyjwt", token_ttl_seconds=120)
    svc = TokenService.from_settings(config)
    assert isinstance(svc.codec, PyJWTTokenCodec)
    assert svc.ttl_seconds == 120


def test_settings_refuse_default_secret_in_production():
    with pytest.raises(ValueError, match="JWT_SECRET"):
        Settings(environment="production")
