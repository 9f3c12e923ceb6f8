"""Create the first administrator account.

Usage: python scripts/create_admin.py --email admin@example.com --password secret
"""

from __future__ import annotations

import argparse
import importlib
import logging
import sys

from dotenv import load_dotenv

from hr_management.config import get_settings_module
from hr_management.database.bootstrap import ensure_admin_user

logger = logging.getLogger("create_admin")


def main(argv=None) -> int:
    load_dotenv(override=False)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    settings = importlib.import_module(get_settings_module())

    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--email", default=getattr(settings, "ADMIN_EMAIL", ""))
    parser.add_argument("--password", default=getattr(settings, "ADMIN_PASSWORD", ""))
    parser.add_argument("--name", default="Administrator")
    args = parser.parse_args(argv)

    if not args.email or len(args.password or "") < 6:
        logger.error("An email and a password of at least 6 characters are required")
        return 1

    created = ensure_admin_user(
        dict(settings.DB_CONFIG),
        email=args.email,
        password=args.password,
        full_name=args.name,
    )
    logger.info("Admin %s %s", args.email, "created" if created else "already present")
    return 0


if __name__ == "__main__":
    sys.exit(main())
