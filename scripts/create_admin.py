#!/usr/bin/env python3
"""
Create a user account and grant it a role (default: super-admin).

Usage:
  python scripts/create_admin.py --username admin --name "Site Admin" --email admin@example.com [--password secret1] [--role admin] [--permission view-finances]
"""
from __future__ import annotations

import argparse
import secrets

from household_api.core.errors import AppError
from household_api.core.logging_config import configure_logging
from household_api.core.security import hash_password
from household_api.db.create_tables import create_all
from household_api.db.seed import PERMISSIONS, seed_roles_and_permissions
from household_api.repositories.user_repository import UserRepository, direct_permission_names, role_names


def main() -> None:
    ap = argparse.ArgumentParser(description="Create an administrator account")
    ap.add_argument("--username", required=True, help="Login name (3-20 chars)")
    ap.add_argument("--name", required=True, help="Display name")
    ap.add_argument("--email", help="Contact e-mail, used for code login")
    ap.add_argument("--password", help="Password (default: random 12 chars, printed once)")
    ap.add_argument("--role", default="super-admin", help="Role to grant (default: super-admin)")
    ap.add_argument(
        "--permission",
        action="append",
        default=[],
        help="Extra permission granted directly to the user (repeatable)",
    )
    args = ap.parse_args()

    username = (args.username or "").strip()
    if not 3 <= len(username) <= 20:
        raise SystemExit("Username must have 3 to 20 characters")
    password = args.password or secrets.token_urlsafe(9)
    if not 6 <= len(password) <= 20:
        raise SystemExit("Password must have 6 to 20 characters")
    unknown = sorted(set(args.permission) - set(PERMISSIONS))
    if unknown:
        raise SystemExit(f"Unknown permission(s): {', '.join(unknown)}")

    configure_logging()
    create_all()
    seed_roles_and_permissions()
    repo = UserRepository()
    try:
        user = repo.create_user(username, args.name.strip(), hash_password(password), email=args.email)
        user = repo.assign_role(user.id, args.role)
        for permission in args.permission:
            repo.grant_permission(user.id, permission)
        user = repo.get_user(user.id)
    except AppError as exc:
        raise SystemExit(f"Failed: {exc.message}") from exc

    print("OK: user created")
    print(f"  ID: {user.id}")
    print(f"  Username: {user.username}")
    print(f"  Roles: {', '.join(role_names(user))}")
    if args.permission:
        print(f"  Direct permissions: {', '.join(direct_permission_names(user))}")
    if not args.password:
        print(f"  Password: {password}")


if __name__ == "__main__":
    main()
