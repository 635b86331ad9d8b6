"""
Legacy quote file migration.

Quotes written before multi-file support stored one attachment in the
file_url/file_name columns. migrate_legacy_quote_files rewrites those rows to
the files list and clears the legacy columns. Rows that already have a files
list (even an empty one) and rows with no legacy URL are skipped.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from app.shared.dates import utc_now_iso

logger = logging.getLogger("RenoDesk.Database.Migrations")

QUOTES_TABLE = "quotes"
PAGE_SIZE = 500


@dataclass
class MigrationReport:
    scanned: int = 0
    migrated: int = 0
    skipped: int = 0


def legacy_files(row: Dict[str, Any]) -> Optional[List[Dict[str, str]]]:
    """The files list a row should get, or None when it needs no migration."""
    if isinstance(row.get("files"), list):
        return None
    if not row.get("file_url"):
        return None
    return [{"file_url": row["file_url"], "file_name": row.get("file_name") or ""}]


async def migrate_legacy_quote_files(client, dry_run: bool = False, page_size: int = PAGE_SIZE) -> MigrationReport:
    """
    Scan every quote row and migrate legacy single-file rows.

    Backend errors propagate; the caller decides how to exit.
    """
    report = MigrationReport()
    start = 0

    while True:
        result = await (
            client.table(QUOTES_TABLE)
            .select("id, files, file_url, file_name")
            .order("id")
            .range(start, start + page_size - 1)
            .execute()
        )
        rows = result.data or []

        for row in rows:
            report.scanned += 1
            files = legacy_files(row)
            if files is None:
                report.skipped += 1
                continue

            if not dry_run:
                await (
                    client.table(QUOTES_TABLE)
                    .update({
                        "files": files,
                        "file_url": None,
                        "file_name": None,
                        "updated_at": utc_now_iso(),
                    })
                    .eq("id", row["id"])
                    .execute()
                )
            report.migrated += 1
            logger.info(f"{'Would migrate' if dry_run else 'Migrated'} quote {row['id']}")

        if len(rows) < page_size:
            break
        start += page_size

    logger.info(
        f"Migration finished{' (dry run)' if dry_run else ''}. "
        f"Migrated: {report.migrated}, skipped: {report.skipped}"
    )
    return report
