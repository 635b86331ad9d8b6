#!/usr/bin/env python3
"""
Rewrite legacy single-file quotes to the files list.

Usage:
    python scripts/migrate_quote_files.py            # migrate
    python scripts/migrate_quote_files.py --dry-run  # report only
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from app.core.config import settings
from app.core.database import close_persistence_client, create_persistence_client
from app.features.database.legacy_quotes import migrate_legacy_quote_files
from app.shared.correlation import CorrelationContext
from app.shared.logging_config import setup_logging

logger = logging.getLogger("RenoDesk.Scripts.MigrateQuoteFiles")


async def main(dry_run: bool) -> int:
    client = await create_persistence_client(settings)
    try:
        report = await migrate_legacy_quote_files(client, dry_run=dry_run)
    finally:
        await close_persistence_client(client)

    print(f"Migrated: {report.migrated}, skipped: {report.skipped}")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Migrate legacy quote file columns to the files list")
    parser.add_argument("--dry-run", action="store_true", help="Report what would change without writing")
    args = parser.parse_args()

    setup_logging(f"{settings.SERVICE_NAME}-migration")
    with CorrelationContext("migrate-quote-files"):
        try:
            sys.exit(asyncio.run(main(args.dry_run)))
        except Exception as e:
            logger.exception(f"Migration failed: {e}")
            sys.exit(1)
