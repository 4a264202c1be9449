#!/usr/bin/env python3
"""
AuthGate -- operator command line.

Usage:
  python main.py serve [--host 127.0.0.1] [--port 8080] [--reload]
  python main.py check-password [--username alice_01]
  python main.py hash-password
  python main.py generate-secret

Environment variables:
  APP_ENV       development (default), test, or production. Selects the
                configuration profile; see core/config.py.
  SECRET_KEY    Token signing key, at least 32 characters. Required when
                APP_ENV=production. `generate-secret` prints a suitable one.
"""

import argparse
import getpass
import secrets
import sys

from auth.validation import validate_credentials, validate_password
from core.config import get_settings


def _read_password(confirm: bool = False) -> str:
    password = getpass.getpass("Password: ")
    if confirm and getpass.getpass("Repeat password: ") != password:
        print("  [!] Passwords do not match.")
        sys.exit(1)
    return password


def cmd_check_password(args: argparse.Namespace) -> int:
    """Print every rule the password (and optional username) breaks."""
    password = _read_password()
    if args.username is not None:
        errors = validate_credentials(args.username, password)
    else:
        errors = validate_password(password)
    if not errors:
        print("  OK -- meets every rule.")
        return 0
    for error in errors:
        print(f"  [!] {error}")
    return 1


def cmd_hash_password(args: argparse.Namespace) -> int:
    """Print a bcrypt hash at the configured cost, for seeding a store by hand."""
    from auth.passwords import PasswordHasher

    password = _read_password(confirm=True)
    errors = validate_password(password)
    if errors:
        for error in errors:
            print(f"  [!] {error}")
        return 1
    hasher = PasswordHasher(rounds=get_settings().bcrypt_rounds)
    print(hasher.hash(password))
    return 0


def cmd_generate_secret(args: argparse.Namespace) -> int:
    """Print a 256-bit random hex string suitable for SECRET_KEY."""
    print(secrets.token_hex(32))
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("asgi:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(
        description="AuthGate -- credential authentication service.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API under uvicorn.")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8080)
    serve.add_argument("--reload", action="store_true", help="Reload on code changes (development only).")
    serve.set_defaults(func=cmd_serve)

    check = sub.add_parser("check-password", help="Check a password against the acceptance rules.")
    check.add_argument("--username", help="Also validate this username.")
    check.set_defaults(func=cmd_check_password)

    hash_cmd = sub.add_parser("hash-password", help="Print a bcrypt hash at the configured cost.")
    hash_cmd.set_defaults(func=cmd_hash_password)

    secret = sub.add_parser("generate-secret", help="Print a new random SECRET_KEY.")
    secret.set_defaults(func=cmd_generate_secret)

    args = parser.parse_args()
    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
