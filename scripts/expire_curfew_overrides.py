#!/usr/bin/env python3
"""Reset stored temporary curfew approvals whose morning deadline has passed.

Meant to be run from cron shortly after CURFEW_RESET_HOUR. Effective status
is already correct without it; this only tidies the stored field and appends
RESET entries to the history.
"""
from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT / "api"))

from rentalhub.core.config import settings  # noqa: E402
from rentalhub.core.curfew_workflow import Actor, expire_temporary_overrides  # noqa: E402
from rentalhub.core.database import SessionLocal  # noqa: E402
from rentalhub.core.roles import RoleCode  # noqa: E402
from rentalhub.core.time import to_naive_utc  # noqa: E402
from rentalhub.models import User  # noqa: E402

logger = logging.getLogger("expire_curfew_overrides")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--as-of",
        type=datetime.fromisoformat,
        default=None,
        help="Evaluate expiry at this ISO timestamp (UTC if no offset) instead of now",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    db = SessionLocal()
    try:
        admin = db.query(User).filter(
            User.role == RoleCode.ADMIN.value,
            User.is_active == True
        ).order_by(User.user_id.asc()).first()
        if admin is None:
            logger.error("No admin user found for system operations")
            return 1

        as_of = to_naive_utc(args.as_of) if args.as_of else None
        results = expire_temporary_overrides(db, Actor.from_user(admin), as_of=as_of)
        failed = [r for r in results if not r.success]
        for result in failed:
            logger.warning("Tenant %s not reset: %s", result.tenant_id, result.message)
        logger.info("Reset %d tenant(s), %d skipped", len(results) - len(failed), len(failed))
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
