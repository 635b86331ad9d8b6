#!/usr/bin/env python3
"""
Delete quote attachment blobs whose save never committed.

Meant to run on a schedule. Intents younger than the grace period are left
alone so in-flight uploads are not touched.

Usage:
    python scripts/reconcile_attachments.py
    python scripts/reconcile_attachments.py --grace-minutes 240
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import httpx

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from app.core.config import settings
from app.core.database import close_persistence_client, create_persistence_client
from app.features.attachments import FileAttachmentService, QuoteAttachmentSaga
from app.features.database import DatabaseClient
from app.shared.correlation import CorrelationContext
from app.shared.logging_config import setup_logging

logger = logging.getLogger("RenoDesk.Scripts.ReconcileAttachments")


async def main(grace_minutes: int) -> int:
    client = await create_persistence_client(settings)
    try:
        async with httpx.AsyncClient(timeout=settings.UPLOAD_TIMEOUT_SECONDS) as http:
            db = DatabaseClient(client)
            saga = QuoteAttachmentSaga(db, FileAttachmentService(client, settings, http=http))
            report = await saga.reconcile_orphans(grace_minutes)
    finally:
        await close_persistence_client(client)

    print(
        f"Checked: {report.checked}, deleted: {report.deleted}, "
        f"kept: {report.kept}, errors: {len(report.errors)}"
    )
    return 1 if report.errors else 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Clean up orphaned quote attachments")
    parser.add_argument(
        "--grace-minutes",
        type=int,
        default=settings.ORPHAN_GRACE_MINUTES,
        help="Only consider intents untouched for this long",
    )
    args = parser.parse_args()

    setup_logging(f"{settings.SERVICE_NAME}-reconcile")
    with CorrelationContext("reconcile-attachments"):
        try:
            sys.exit(asyncio.run(main(args.grace_minutes)))
        except Exception as e:
            logger.exception(f"Reconciliation failed: {e}")
            sys.exit(1)
