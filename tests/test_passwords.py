"""Unit tests for auth/passwords.py -- bcrypt hashing and verification."""

from __future__ import annotations

import pytest

from auth.passwords import PasswordHasher


def test_verify_accepts_the_original_password(hasher: PasswordHasher) -> None:
    digest = hasher.hash("Str0ng!Passw0rd")
    assert hasher.verify("Str0ng!Passw0rd", digest) is True


def test_verify_rejects_a_wrong_password(hasher: PasswordHasher) -> None:
    digest = hasher.hash("Str0ng!Passw0rd")
    assert hasher.verify("Str0ng!Passw0rd?", digest) is False
    assert hasher.verify("str0ng!passw0rd", digest) is False


def test_hashes_are_salted(hasher: PasswordHasher) -> None:
    assert hasher.hash("Str0ng!Passw0rd") != hasher.hash("Str0ng!Passw0rd")


def test_digest_never_contains_plaintext(hasher: PasswordHasher) -> None:
    digest = hasher.hash("Str0ng!Passw0rd")
    assert "Str0ng!Passw0rd" not in digest
    assert digest.startswith("$2b$04$")


def test_long_passwords_differ_beyond_72_bytes(hasher: PasswordHasher) -> None:
    """bcrypt alone ignores bytes past 72; the SHA-256 pre-hash must not."""
    base = "Aa1!" + "x" * 90
    digest = hasher.hash(base + "A")
    assert hasher.verify(base + "A", digest) is True
    assert hasher.verify(base + "B", digest) is False


def test_non_ascii_password_round_trips(hasher: PasswordHasher) -> None:
    digest = hasher.hash("Pässwörd-1234!Ω")
    assert hasher.verify("Pässwörd-1234!Ω", digest) is True


def test_malformed_digest_is_a_mismatch(hasher: PasswordHasher) -> None:
    assert hasher.verify("Str0ng!Passw0rd", "not-a-bcrypt-hash") is False


def test_dummy_verify_returns_nothing(hasher: PasswordHasher) -> None:
    assert hasher.dummy_verify("anything") is None


@pytest.mark.parametrize("rounds", [3, 32])
def test_rounds_out_of_range_rejected(rounds: int) -> None:
    with pytest.raises(ValueError):
        PasswordHasher(rounds=rounds)
