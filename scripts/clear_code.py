#!/usr/bin/env python3
"""
Remove a pending verification code and its send throttle for a user.

Usage:
  python scripts/clear_code.py --username alice --email alice@example.com [--purpose reset_password]
"""
from __future__ import annotations

import argparse

from household_api.core.errors import UnavailableError
from household_api.core.logging_config import configure_logging
from household_api.schemas.auth import CodePurpose
from household_api.services.verification_service import VerificationCodeService


def main() -> None:
    ap = argparse.ArgumentParser(description="Clear a verification code")
    ap.add_argument("--username", required=True)
    ap.add_argument("--email", required=True)
    ap.add_argument("--purpose", default=CodePurpose.LOGIN.value, choices=[p.value for p in CodePurpose])
    args = ap.parse_args()

    configure_logging()
    service = VerificationCodeService()
    try:
        ttl = service.time_to_live(args.username, args.email, args.purpose)
        removed = service.clear(args.username, args.email, args.purpose)
    except UnavailableError as exc:
        raise SystemExit(f"Failed: {exc.message}") from exc

    if removed:
        print("OK: verification code cleared")
        if ttl:
            print(f"  It had {ttl} seconds left")
    else:
        print("Nothing to clear")


if __name__ == "__main__":
    main()
