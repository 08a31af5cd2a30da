#!/usr/bin/env python3
"""Apply the user_connections schema with Logfire error tracking.

Usage:
    python scripts/run_migrations.py            # upgrade to head
    python scripts/run_migrations.py --sql      # print the SQL instead
"""

import argparse
import sys

import logfire
from alembic import command
from alembic.config import Config

from faragent.config import Settings
from faragent.util.observability import configure_logfire


def main() -> int:
    """Run migrations and log any errors to Logfire."""
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("revision", nargs="?", default="head")
    parser.add_argument(
        "--sql", action="store_true", help="Emit SQL instead of applying it"
    )
    args = parser.parse_args()

    settings = Settings()
    configure_logfire(settings)

    try:
        logfire.info(
            "Starting database migrations", revision=args.revision, offline=args.sql
        )
        command.upgrade(Config("alembic.ini"), args.revision, sql=args.sql)
        logfire.info("Database migrations completed successfully")
        return 0

    except Exception as e:
        logfire.error(
            "Database migration failed",
            error=str(e),
            error_type=type(e).__name__,
            _exc_info=sys.exc_info(),
        )
        # Re-raise so the deploy fails instead of serving a stale schema
        raise


if __name__ == "__main__":
    sys.exit(main())
