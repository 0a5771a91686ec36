#!/usr/bin/env python3
"""
AuthGate -- token-based authentication and authorization API.

Usage:
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 3000
  python main.py serve --reload
  python main.py create-user "Alice Admin" alice@example.com --role admin
  python main.py purge-revoked
  python main.py sessions alice@example.com --revoke

Environment variables (see core/config.py for the full list):
  ACCESS_TOKEN_SECRET   Signing key for access tokens (>= 32 chars; required unless DEBUG=true).
  REFRESH_TOKEN_SECRET  Signing key for refresh tokens (>= 32 chars, must differ from the access key).
  DATABASE_URL          SQLAlchemy URL. Defaults to sqlite:///authgate.db next to this file.
  DEBUG                 true to auto-generate missing secrets for local development.
"""

import argparse
import getpass
import sys

from auth.errors import AuthGateError
from auth.models import Role
from core.config import get_settings


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("asgi:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def _create_user(args: argparse.Namespace) -> int:
    """Register a user from the terminal. The password is prompted, never passed as an argument."""
    from auth.credentials import register_user
    from auth.store import UserStore

    password = getpass.getpass("Password: ")
    if password != getpass.getpass("Confirm password: "):
        print("  [!] Passwords do not match.")
        return 1

    settings = get_settings()
    store = UserStore(settings.database_url, timeout=settings.store_timeout_seconds)
    try:
        user_id = register_user(store, args.name, args.email, password, args.role)
    except AuthGateError as e:
        print(f"  [!] {e.message}")
        return 1
    finally:
        store.close()
    print(f"  Created {args.role} user {args.email} (id {user_id}).")
    return 0


def _sessions(args: argparse.Namespace) -> int:
    """Show how many refresh sessions a user holds; --revoke ends all of them."""
    from auth.ledger import RefreshTokenLedger
    from auth.store import TokenStore, UserStore

    settings = get_settings()
    users = UserStore(settings.database_url, timeout=settings.store_timeout_seconds)
    tokens = TokenStore(settings.database_url, timeout=settings.store_timeout_seconds)
    try:
        user = users.get_by_email(args.email.strip())
        if user is None:
            print(f"  [!] No user with email {args.email}.")
            return 1
        ledger = RefreshTokenLedger(tokens)
        if args.revoke:
            removed = ledger.revoke_all(user.id)
            print(f"  Ended {removed} refresh session(s) for {user.email}.")
        else:
            print(f"  {user.email} has {ledger.count_active(user.id)} active refresh session(s).")
    finally:
        tokens.close()
        users.close()
    return 0


def _purge_revoked(args: argparse.Namespace) -> int:
    """Delete revocation records whose access token has expired on its own."""
    from auth.ledger import RevocationLedger
    from auth.store import TokenStore

    settings = get_settings()
    store = TokenStore(settings.database_url, timeout=settings.store_timeout_seconds)
    try:
        removed = RevocationLedger(store).purge_expired()
    finally:
        store.close()
    print(f"  Purged {removed} expired revocation record(s).")
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="authgate",
        description="Token-based authentication and authorization API.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py serve --port 3000
  python main.py create-user "Alice Admin" alice@example.com --role admin
  python main.py sessions alice@example.com
  python main.py purge-revoked
        """,
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    serve = sub.add_parser("serve", help="Run the HTTP API with uvicorn")
    serve.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    serve.add_argument("--port", type=int, default=3000, help="Bind port (default: 3000)")
    serve.add_argument("--reload", action="store_true", help="Reload on code changes (development only)")
    serve.set_defaults(func=_serve)

    create = sub.add_parser("create-user", help="Register a user; the password is prompted")
    create.add_argument("name", help="Display name")
    create.add_argument("email", help="Login email (must be unique)")
    create.add_argument(
        "--role",
        choices=[r.value for r in Role],
        default=Role.member.value,
        help="Role to grant (default: member)",
    )
    create.set_defaults(func=_create_user)

    sessions = sub.add_parser("sessions", help="Show or end the refresh sessions of a user")
    sessions.add_argument("email", help="Login email of the user")
    sessions.add_argument("--revoke", action="store_true", help="End every refresh session of the user")
    sessions.set_defaults(func=_sessions)

    purge = sub.add_parser("purge-revoked", help="Delete expired access-token revocation records")
    purge.set_defaults(func=_purge_revoked)

    args = parser.parse_args()
    if not args.command:
        parser.print_help()
        return
    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
