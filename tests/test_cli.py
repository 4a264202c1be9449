"""
tests/test_cli.py -- Tests for the operator command line in main.py.

Password prompts are replaced by patching getpass.getpass; output is read
back with capsys. main() is driven through sys.argv and always exits via
SystemExit carrying the subcommand's return code.
"""

from __future__ import annotations

import argparse
import string

import pytest

import main
from auth.passwords import PasswordHasher
from tests.conftest import VALID_PASSWORD


def _answer_prompts(monkeypatch, *answers: str) -> None:
    replies = iter(answers)
    monkeypatch.setattr(main.getpass, "getpass", lambda prompt="": next(replies))


def _run(monkeypatch, *argv: str) -> int:
    monkeypatch.setattr(main.sys, "argv", ["main.py", *argv])
    with pytest.raises(SystemExit) as exc_info:
        main.main()
    return exc_info.value.code


class TestCheckPassword:
    def test_strong_password_passes(self, monkeypatch, capsys) -> None:
        _answer_prompts(monkeypatch, VALID_PASSWORD)
        assert main.cmd_check_password(argparse.Namespace(username=None)) == 0
        assert "OK" in capsys.readouterr().out

    def test_weak_password_lists_every_violation(self, monkeypatch, capsys) -> None:
        _answer_prompts(monkeypatch, "short")
        assert main.cmd_check_password(argparse.Namespace(username=None)) == 1
        out = capsys.readouterr().out
        assert "Password must be at least 12 characters long" in out
        assert "Password must contain at least one uppercase letter" in out

    def test_username_is_checked_when_given(self, monkeypatch, capsys) -> None:
        _answer_prompts(monkeypatch, VALID_PASSWORD)
        assert main.cmd_check_password(argparse.Namespace(username="a!")) == 1
        out = capsys.readouterr().out
        assert "Username must be at least 3 characters long" in out
        assert "Username can only contain letters, numbers, and underscores" in out

    def test_through_argv(self, monkeypatch, capsys) -> None:
        _answer_prompts(monkeypatch, "password")
        assert _run(monkeypatch, "check-password", "--username", "alice_01") == 1
        assert "Password is too common" in capsys.readouterr().out


class TestHashPassword:
    def test_prints_verifiable_hash(self, monkeypatch, capsys) -> None:
        _answer_prompts(monkeypatch, VALID_PASSWORD, VALID_PASSWORD)
        assert _run(monkeypatch, "hash-password") == 0
        digest = capsys.readouterr().out.strip()
        assert digest.startswith("$2")
        assert PasswordHasher(rounds=4).verify(VALID_PASSWORD, digest) is True

    def test_mismatched_confirmation_exits(self, monkeypatch, capsys) -> None:
        _answer_prompts(monkeypatch, VALID_PASSWORD, "Other!Passw0rd1")
        assert _run(monkeypatch, "hash-password") == 1
        assert "do not match" in capsys.readouterr().out

    def test_weak_password_is_not_hashed(self, monkeypatch, capsys) -> None:
        _answer_prompts(monkeypatch, "weak", "weak")
        assert _run(monkeypatch, "hash-password") == 1
        out = capsys.readouterr().out
        assert "[!]" in out
        assert "$2" not in out


def test_generate_secret_is_64_hex_chars(monkeypatch, capsys) -> None:
    assert _run(monkeypatch, "generate-secret") == 0
    secret = capsys.readouterr().out.strip()
    assert len(secret) == 64
    assert set(secret) <= set(string.hexdigits.lower())


def test_generate_secret_differs_each_run(monkeypatch, capsys) -> None:
    _run(monkeypatch, "generate-secret")
    _run(monkeypatch, "generate-secret")
    first, second = capsys.readouterr().out.split()
    assert first != second


def test_serve_passes_options_to_uvicorn(monkeypatch) -> None:
    import uvicorn

    calls = []
    monkeypatch.setattr(uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))
    assert _run(monkeypatch, "serve", "--host", "0.0.0.0", "--port", "9000") == 0
    assert calls == [("asgi:app", {"host": "0.0.0.0", "port": 9000, "reload": False})]


def test_missing_subcommand_is_usage_error(monkeypatch) -> None:
    assert _run(monkeypatch) == 2
