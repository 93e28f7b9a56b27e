"""
Delete expired rows from ``anonymous_tokens``.

Run periodically, e.g. from cron:
    python -m candor.scripts.purge_tokens
    python -m candor.scripts.purge_tokens --dry-run

Issues keep their own permanent tracking token; only the expiring token rows go.
"""

from __future__ import annotations

import argparse

from loguru import logger

from candor.core.config import get_settings
from candor.core.logging import setup_logging
from candor.services.db import db_session, init_db
from candor.services.tokens import AnonymousTokenService


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Purge expired anonymous tracking tokens")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report how many tokens would be deleted without deleting them",
    )
    args = parser.parse_args(argv)

    settings = get_settings()
    setup_logging(settings.log_level, settings.log_serialize)
    init_db()

    with db_session() as session:
        tokens = AnonymousTokenService(session=session)
        if args.dry_run:
            logger.info("[DRY RUN] Would purge {count} expired tokens", count=tokens.count_expired())
            return 0
        tokens.purge_expired()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
