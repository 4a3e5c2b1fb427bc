#!/usr/bin/env python3
"""
Create the schema (if missing) and seed the default roles and permissions.

Usage:
  python scripts/seed_roles.py
"""
from __future__ import annotations

import argparse

from sqlalchemy.exc import SQLAlchemyError

from household_api.core.logging_config import configure_logging
from household_api.db.create_tables import create_all
from household_api.db.seed import PERMISSIONS, ROLE_PERMISSIONS, seed_roles_and_permissions


def main() -> None:
    ap = argparse.ArgumentParser(description="Seed roles and permissions")
    ap.add_argument("--skip-create", action="store_true", help="Do not create missing tables first")
    args = ap.parse_args()

    configure_logging()
    try:
        if not args.skip_create:
            create_all()
        seed_roles_and_permissions()
    except SQLAlchemyError as exc:
        raise SystemExit(f"Seeding failed: {exc}") from exc

    print("OK: roles and permissions seeded")
    print(f"  Permissions: {len(PERMISSIONS)}")
    print(f"  Roles: {', '.join(ROLE_PERMISSIONS)}")


if __name__ == "__main__":
    main()
