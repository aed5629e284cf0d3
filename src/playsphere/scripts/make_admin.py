"""Grant or revoke the admin flag for a user."""
from __future__ import annotations

import argparse
import logging
import sys

from playsphere.core.logging import setup_logging
from playsphere.db.session import SessionLocal
from playsphere.services.errors import NotFoundError
from playsphere.services.storage import Storage

logger = logging.getLogger("playsphere.make_admin")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Grant admin access to a user")
    parser.add_argument("username")
    parser.add_argument("--revoke", action="store_true", help="Remove admin access instead")
    args = parser.parse_args(argv)

    setup_logging()
    with SessionLocal() as db:
        try:
            user = Storage(db).set_admin(args.username, is_admin=not args.revoke)
        except NotFoundError:
            logger.error("No user named %s", args.username)
            return 1
    logger.info("%s is_admin=%s", user.username, user.is_admin)
    return 0


if __name__ == "__main__":
    sys.exit(main())
