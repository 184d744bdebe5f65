#!/usr/bin/env python3
"""
Credential service -- command-line front end.

Registers accounts and performs password logins against the configured
account store without starting the HTTP server. Useful for seeding the first
accounts and for checking that a deployment can issue tokens.

Usage:
  python main.py register alice
  python main.py login alice
  printf 'correcthorse' | python main.py register alice --password-stdin
  python main.py login alice --password-stdin < pw.txt

Environment variables (read through core.config.Settings):
  SECRET_KEY     Token signing key, at least 32 characters. Required unless DEBUG=true.
  DATABASE_URL   SQLAlchemy URL of the account store (default sqlite:///./credentials.db).

Exit codes:
  0  success
  1  registration rejected or login denied
  2  configuration or infrastructure failure
"""

import argparse
import getpass
import logging
import sys
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from auth.errors import AuthenticationDenied, InvalidCredentialsInput, SystemFailure, UsernameTaken
from auth.service import CredentialService, build_credential_service
from auth.store import AccountStore
from auth.tokens import SigningConfig, TokenIssuer
from core.config import get_settings

logger = logging.getLogger("credentials.cli")

EXIT_OK = 0
EXIT_REJECTED = 1
EXIT_FAILURE = 2


def _read_password(from_stdin: bool, confirm: bool) -> Optional[str]:
    """Read a password from stdin (first line) or an interactive prompt.

    Returns None when an interactive confirmation does not match.
    """
    if from_stdin:
        return sys.stdin.readline().rstrip("\r\n")
    password = getpass.getpass("Password: ")
    if confirm and getpass.getpass("Repeat password: ") != password:
        print("  [!] Passwords do not match.", file=sys.stderr)
        return None
    return password


def cmd_register(service: CredentialService, username: str, password: str) -> int:
    try:
        service.register_user(username, password)
    except (InvalidCredentialsInput, UsernameTaken) as exc:
        print(f"  [!] {exc.message}", file=sys.stderr)
        return EXIT_REJECTED
    except SystemFailure as exc:
        print(f"  [!] {exc.message}", file=sys.stderr)
        return EXIT_FAILURE
    print(f"Registered '{username}'.")
    return EXIT_OK


def cmd_login(service: CredentialService, username: str, password: str) -> int:
    try:
        token = service.load_user(username, password)
    except AuthenticationDenied as exc:
        print(f"  [!] {exc.message}", file=sys.stderr)
        return EXIT_REJECTED
    except SystemFailure as exc:
        print(f"  [!] {exc.message}", file=sys.stderr)
        return EXIT_FAILURE
    print(token)
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="credentials",
        description="Register accounts and issue session tokens.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py register alice
  python main.py login alice
  printf 'correcthorse' | python main.py login alice --password-stdin
        """,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log flow details to stderr")
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    for name, help_text in (
        ("register", "Create a new account with the default role"),
        ("login", "Check a password and print a signed session token"),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("username", help="Account username (exact match, case-sensitive)")
        cmd.add_argument(
            "--password-stdin",
            action="store_true",
            help="Read the password from the first line of stdin instead of prompting",
        )
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return EXIT_FAILURE

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    try:
        settings = get_settings()
    except ValueError as exc:
        print(f"  [!] Configuration error: {exc}", file=sys.stderr)
        return EXIT_FAILURE

    password = _read_password(args.password_stdin, confirm=args.command == "register")
    if password is None:
        return EXIT_REJECTED

    try:
        store = AccountStore(settings.database_url)
    except SQLAlchemyError as exc:
        print(f"  [!] Account store unavailable: {exc}", file=sys.stderr)
        return EXIT_FAILURE

    try:
        service = build_credential_service(
            store,
            TokenIssuer(SigningConfig.from_settings(settings)),
            default_role=settings.default_role,
            rounds=settings.bcrypt_rounds,
            precheck=settings.registration_precheck,
        )
        if args.command == "register":
            return cmd_register(service, args.username, password)
        return cmd_login(service, args.username, password)
    finally:
        store.close()


if __name__ == "__main__":
    sys.exit(main())
