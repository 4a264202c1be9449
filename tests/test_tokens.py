"""Unit tests for auth/tokens.py -- token issue, verify, expiry, rotation, header parsing."""

from __future__ import annotations

import pytest
from jose import jwt

from auth.errors import InvalidToken
from auth.tokens import TokenService
from tests.conftest import TEST_SECRET, TOKEN_TTL_SECONDS, FakeClock


def test_round_trip_preserves_identity(tokens: TokenService) -> None:
    claims = tokens.verify(tokens.issue("user-abc", "alice_01"))
    assert claims.user_id == "user-abc"
    assert claims.username == "alice_01"


def test_expiry_is_issue_time_plus_ttl(tokens: TokenService, clock: FakeClock) -> None:
    claims = tokens.verify(tokens.issue("user-abc", "alice_01"))
    assert claims.issued_at == clock.now
    assert claims.expires_at == clock.now + TOKEN_TTL_SECONDS


def test_fractional_issue_time_keeps_full_ttl() -> None:
    clock = FakeClock(start=1_700_000_000.9)
    tokens = TokenService(secret_key=TEST_SECRET, ttl_seconds=60, clock=clock)
    token = tokens.issue("user-abc", "alice_01")

    clock.advance(59.5)
    assert tokens.verify(token).username == "alice_01"

    clock.advance(0.6)
    with pytest.raises(InvalidToken):
        tokens.verify(token)


def test_valid_just_before_expiry(tokens: TokenService, clock: FakeClock) -> None:
    token = tokens.issue("user-abc", "alice_01")
    clock.advance(TOKEN_TTL_SECONDS - 0.5)
    assert tokens.verify(token).user_id == "user-abc"


def test_invalid_just_after_expiry(tokens: TokenService, clock: FakeClock) -> None:
    token = tokens.issue("user-abc", "alice_01")
    clock.advance(TOKEN_TTL_SECONDS + 0.5)
    with pytest.raises(InvalidToken):
        tokens.verify(token)


@pytest.mark.parametrize("garbage", ["", "abc", "a.b.c", "not.a.jwt.at.all"])
def test_malformed_token_is_invalid(tokens: TokenService, garbage: str) -> None:
    with pytest.raises(InvalidToken):
        tokens.verify(garbage)


def test_wrong_signature_is_invalid(tokens: TokenService, clock: FakeClock) -> None:
    other = TokenService(secret_key="x" * 40, ttl_seconds=60, clock=clock)
    with pytest.raises(InvalidToken):
        tokens.verify(other.issue("user-abc", "alice_01"))


def test_tampered_payload_is_invalid(tokens: TokenService) -> None:
    header, payload, signature = tokens.issue("user-abc", "alice_01").split(".")
    forged = jwt.encode({"sub": "mallory", "user_id": "user-evil", "iat": 0, "exp": 9999999999}, "guess")
    _, forged_payload, _ = forged.split(".")
    with pytest.raises(InvalidToken):
        tokens.verify(f"{header}.{forged_payload}.{signature}")


def test_missing_claims_are_invalid(tokens: TokenService, clock: FakeClock) -> None:
    token = jwt.encode({"sub": "alice_01", "exp": int(clock.now) + 60}, TEST_SECRET, algorithm="HS256")
    with pytest.raises(InvalidToken):
        tokens.verify(token)


def test_previous_secret_keys_still_verify(clock: FakeClock) -> None:
    old_key = "old-secret-" + "o" * 30
    before = TokenService(secret_key=old_key, ttl_seconds=60, clock=clock)
    after = TokenService(secret_key=TEST_SECRET, ttl_seconds=60, previous_secret_keys=[old_key], clock=clock)

    token = before.issue("user-abc", "alice_01")
    assert after.verify(token).username == "alice_01"

    # New tokens are signed with the current key only.
    with pytest.raises(InvalidToken):
        before.verify(after.issue("user-abc", "alice_01"))


def test_constructor_rejects_bad_config() -> None:
    with pytest.raises(ValueError):
        TokenService(secret_key="", ttl_seconds=60)
    with pytest.raises(ValueError):
        TokenService(secret_key=TEST_SECRET, ttl_seconds=0)


class TestExtractBearer:
    def test_well_formed_header(self) -> None:
        assert TokenService.extract_bearer("Bearer abc.def.ghi") == "abc.def.ghi"

    @pytest.mark.parametrize(
        "header",
        [
            None,
            "",
            "Bearer",
            "Bearer ",
            "bearer abc",
            "Basic abc",
            "Bearer abc extra",
            "Bearer  abc",
            "abc",
        ],
    )
    def test_any_other_shape_yields_none(self, header: str | None) -> None:
        assert TokenService.extract_bearer(header) is None
