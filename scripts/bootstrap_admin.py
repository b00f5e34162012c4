#!/usr/bin/env python3
from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))

from salessync.core.config import BOOTSTRAP_ALLOW, BOOTSTRAP_COMPANY_NAME, IS_DEV  # noqa: E402
from salessync.core.database import SessionLocal  # noqa: E402
from salessync.services.bootstrap import upsert_super_admin  # noqa: E402


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create or refresh the platform super admin.")
    parser.add_argument("--email", required=True, help="Super admin email")
    parser.add_argument("--password", help="Super admin password (required on first creation)")
    parser.add_argument("--company", default=BOOTSTRAP_COMPANY_NAME, help="Platform company name")
    parser.add_argument("--first-name", default="Platform", help="First name")
    parser.add_argument("--last-name", default="Admin", help="Last name")
    parser.add_argument(
        "--force",
        action="store_true",
        help="Run without BOOTSTRAP_ALLOW=1",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()

    if not BOOTSTRAP_ALLOW and not args.force:
        print("Bootstrap disabled. Set BOOTSTRAP_ALLOW=1 or pass --force.")
        return 1

    db = SessionLocal()
    try:
        user, created = upsert_super_admin(
            db,
            email=args.email,
            password=args.password,
            company_name=args.company,
            first_name=args.first_name,
            last_name=args.last_name,
        )
    except ValueError as exc:
        print(str(exc))
        return 1
    finally:
        db.close()

    action = "created" if created else "updated"
    print(f"Super admin {action}: company={user.company_id} email={user.email}")
    if IS_DEV:
        password_info = args.password if args.password else "<unchanged>"
        print(f"DEV summary -> Company: {user.company_id} | Email: {user.email} | Password: {password_info}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
