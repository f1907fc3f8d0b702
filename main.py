#!/usr/bin/env python3
"""
Acquisitions -- user registration, authentication, and account management API.

Usage:
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 8000
  python main.py serve --reload
  python main.py create-user --name "Admin" --email admin@example.com --password s3cret! --role admin

Environment variables (see core/config.py for the full list):
  DATABASE_URL  SQLAlchemy URL. Default: sqlite:///./acquisitions.db
  SECRET_KEY    JWT signing key, at least 32 characters. Required unless DEBUG=true.
  DEBUG         true to auto-generate SECRET_KEY for local development.
"""

import argparse
import getpass
import sys

from users.errors import AccountError
from users.models import ROLES


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("asgi:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def _create_user(args: argparse.Namespace) -> int:
    """Register a user directly against the configured database.

    This is how the first admin account is bootstrapped: the HTTP register
    route is public, so anyone reaching it could otherwise be first.
    """
    from auth.hashing import MAX_PASSWORD_BYTES, password_too_long
    from auth.service import AuthService
    from core.config import get_settings
    from users.store import UserStore

    password = args.password or getpass.getpass("Password: ")
    if not 6 <= len(password) <= 72:
        print("  [!] Password must be between 6 and 72 characters.")
        return 1
    if password_too_long(password):
        print(f"  [!] Password must be at most {MAX_PASSWORD_BYTES} bytes when UTF-8 encoded.")
        return 1

    store = UserStore(get_settings().database_url)
    try:
        first_account = not store.has_users()
        user = AuthService(store).register(args.name, args.email.strip().lower(), password, role=args.role)
    except AccountError as e:
        print(f"  [!] Could not create user: {e.message}")
        return 1
    finally:
        store.close()

    print(f"  Created {user.role} {user.email} (id={user.id})")
    if first_account and user.role != "admin":
        print("  [!] This is the first account and it is not an admin. Create one with --role admin.")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Acquisitions -- user account API",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API with uvicorn")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--reload", action="store_true", help="Reload on code changes (development only)")
    serve.set_defaults(func=_serve)

    create = sub.add_parser("create-user", help="Create a user account (e.g. the first admin)")
    create.add_argument("--name", required=True)
    create.add_argument("--email", required=True)
    create.add_argument("--password", help="Prompted for when omitted")
    create.add_argument("--role", choices=ROLES, default="user")
    create.set_defaults(func=_create_user)

    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
