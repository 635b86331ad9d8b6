"""
Quote attachment saga.

Saving a quote with new files touches two backends (storage and the quotes
table) with no shared transaction, so the save runs as explicit steps:

1. write an attachment intent per file (write-ahead, status pending)
2. upload the blob
3. commit the quote row referencing the uploaded files
4. drop the intents; delete replaced files best-effort

Failure handling:
- an upload fails: already uploaded blobs of this save are deleted, the quote
  row is left untouched, AttachmentError propagates
- the row write fails: uploaded blobs are deleted; blobs whose deletion also
  fails keep their pending intent for reconcile_orphans()
- deleting a replaced or removed file fails: logged, the save still succeeds
"""

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from app.core.tracing import get_tracer
from app.features.attachments.storage import (
    NEW_OWNER_ID,
    AttachmentFile,
    FileAttachmentService,
    UploadProgress,
)
from app.features.database.client import DatabaseClient
from app.features.database.models import AttachmentIntent, IntentStatus, Quote, QuoteFile
from app.shared.dates import utc_now
from app.shared.errors import (
    AttachmentError,
    AttachmentNotFoundError,
    RecordNotFoundError,
    RenoDeskError,
)

logger = logging.getLogger("RenoDesk.Attachments.Saga")
tracer = get_tracer("RenoDesk.Attachments.Saga")

FileProgressCallback = Callable[[str, UploadProgress], None]


@dataclass
class ReconcileReport:
    checked: int = 0
    deleted: int = 0
    kept: int = 0
    errors: List[str] = field(default_factory=list)


class QuoteAttachmentSaga:
    """Coordinates quote rows and their stored files."""

    def __init__(self, db: DatabaseClient, storage: FileAttachmentService):
        self.db = db
        self.storage = storage

    # ---------- internal steps ----------

    async def _upload_all(
        self,
        owner_id: str,
        files: Sequence[AttachmentFile],
        on_progress: Optional[FileProgressCallback],
    ) -> List[Tuple[AttachmentIntent, QuoteFile]]:
        """Steps 1-2 for every file; on failure undo this batch and re-raise."""
        uploaded: List[Tuple[AttachmentIntent, QuoteFile]] = []
        quote_id = None if owner_id == NEW_OWNER_ID else owner_id

        for attachment in files:
            path = self.storage.build_path(owner_id, attachment.name)
            try:
                intent = await self.db.attachment_intents.open(path, quote_id=quote_id)
            except RenoDeskError:
                await self._compensate(uploaded)
                raise

            progress = None
            if on_progress is not None:
                progress = lambda p, name=attachment.name: on_progress(name, p)

            try:
                with tracer.start_as_current_span("quote.attachment.upload") as span:
                    span.set_attribute("storage.path", path)
                    span.set_attribute("file.size", attachment.size)
                    stored = await self.storage.upload(attachment, owner_id, on_progress=progress, path=path)
            except Exception:
                # Includes errors raised by the caller's progress callback
                logger.error(f"Upload of {attachment.name} failed, aborting save of quote {owner_id}")
                await self._mark_failed(intent)
                await self._compensate(uploaded)
                raise

            uploaded.append((intent, stored))

        return uploaded

    async def _mark_failed(self, intent: AttachmentIntent) -> None:
        try:
            await self.db.attachment_intents.resolve(intent.id, IntentStatus.FAILED)
        except RenoDeskError as e:
            logger.warning(f"Could not mark intent {intent.id} failed: {e}")

    async def _compensate(self, uploaded: List[Tuple[AttachmentIntent, QuoteFile]]) -> None:
        """Delete blobs uploaded by an aborted save; leave intents for reconciliation on failure."""
        for intent, stored in uploaded:
            try:
                await self.storage.delete_path(intent.path)
                await self.db.attachment_intents.remove(intent.id)
            except RenoDeskError as e:
                logger.error(f"Compensation failed for {intent.path}, left for reconciliation: {e}")

    async def _commit(self, uploaded: List[Tuple[AttachmentIntent, QuoteFile]], quote_id: str) -> None:
        for intent, _ in uploaded:
            try:
                await self.db.attachment_intents.remove(intent.id)
            except RenoDeskError as e:
                # The reconciler re-checks the quote row before deleting anything
                logger.warning(f"Could not clear committed intent {intent.id} of quote {quote_id}: {e}")

    async def _discard_files(self, files: Sequence[QuoteFile], quote_id: str) -> None:
        for old in files:
            try:
                await self.storage.delete(old.file_url)
            except AttachmentError as e:
                logger.error(f"Error deleting old file {old.file_name} of quote {quote_id}: {e}")

    # ---------- public operations ----------

    async def create_quote(
        self,
        fields: Mapping[str, Any],
        files: Sequence[AttachmentFile] = (),
        on_progress: Optional[FileProgressCallback] = None,
    ) -> Quote:
        """Create a quote together with its initial files."""
        # Validate before anything is uploaded
        self.db.quotes.validate(fields)

        uploaded = await self._upload_all(NEW_OWNER_ID, files, on_progress)
        payload: Dict[str, Any] = dict(fields)
        payload["files"] = [
            *[QuoteFile.model_validate(f).model_dump() for f in payload.get("files") or []],
            *[stored.model_dump() for _, stored in uploaded],
        ]

        try:
            quote = await self.db.quotes.create(payload)
        except RenoDeskError:
            logger.error("Quote creation failed after upload, removing uploaded files")
            await self._compensate(uploaded)
            raise

        await self._commit(uploaded, quote.id)
        logger.info(f"Created quote {quote.id} with {len(uploaded)} file(s)")
        return quote

    async def save_quote(
        self,
        quote_id: str,
        fields: Optional[Mapping[str, Any]] = None,
        files: Sequence[AttachmentFile] = (),
        replace_files: bool = False,
        on_progress: Optional[FileProgressCallback] = None,
    ) -> Quote:
        """
        Update a quote and optionally attach new files.

        With replace_files the new files take the place of the current ones,
        and the previous blobs are deleted once the row no longer points at them.
        """
        fields = dict(fields or {})
        self.db.quotes.validate(fields, partial=True)

        current = await self.db.quotes.get(quote_id)
        if current is None:
            raise RecordNotFoundError("quote", "save", quote_id)

        uploaded = await self._upload_all(quote_id, files, on_progress)

        if uploaded or replace_files:
            kept = [] if replace_files else list(current.files)
            fields["files"] = [f.model_dump() for f in kept] + [stored.model_dump() for _, stored in uploaded]

        if fields:
            try:
                await self.db.quotes.update(quote_id, fields)
            except RenoDeskError:
                logger.error(f"Quote {quote_id} update failed after upload, removing uploaded files")
                await self._compensate(uploaded)
                raise

        await self._commit(uploaded, quote_id)
        if replace_files:
            await self._discard_files(current.files, quote_id)

        return await self.db.quotes.get(quote_id) or current

    async def remove_file(self, quote_id: str, file_url: str) -> Quote:
        """Detach one file from a quote, then delete its blob best-effort."""
        current = await self.db.quotes.get(quote_id)
        if current is None:
            raise RecordNotFoundError("quote", "remove_file", quote_id)

        remaining = [f for f in current.files if f.file_url != file_url]
        removed = [f for f in current.files if f.file_url == file_url]
        if not removed:
            return current

        await self.db.quotes.update(quote_id, {"files": [f.model_dump() for f in remaining]})
        await self._discard_files(removed, quote_id)
        return await self.db.quotes.get(quote_id) or current

    async def delete_quote(self, quote_id: str, purge_files: bool = True) -> None:
        """
        Delete a quote row, first deleting its files when purge_files is set.

        File deletion failures are logged and do not block the row delete.
        """
        current = await self.db.quotes.get(quote_id)
        if current is None:
            logger.warning(f"Quote {quote_id} already gone")
            return

        if purge_files:
            await self._discard_files(current.files, quote_id)

        await self.db.quotes.delete(quote_id)

    async def reconcile_orphans(self, grace_minutes: int) -> ReconcileReport:
        """
        Clean up blobs of saves that never committed.

        An intent older than the grace period is cleared without touching
        storage when some quote row references its blob; otherwise the blob
        is deleted. Intents whose blob could not be deleted stay for the next run.
        """
        report = ReconcileReport()
        cutoff = utc_now() - timedelta(minutes=grace_minutes)
        stale = await self.db.attachment_intents.list_stale(cutoff)

        for intent in stale:
            report.checked += 1
            url = self.storage.public_url(intent.path)

            if await self.db.quotes.find_by_file_url(url):
                await self.db.attachment_intents.remove(intent.id)
                report.kept += 1
                continue

            try:
                await self.storage.delete_path(intent.path)
            except AttachmentNotFoundError:
                logger.info(f"Orphan {intent.path} was never stored or is already gone")
            except AttachmentError as e:
                logger.warning(f"Orphan {intent.path} could not be deleted, keeping intent: {e}")
                report.errors.append(intent.path)
                continue
            else:
                report.deleted += 1

            await self.db.attachment_intents.remove(intent.id)

        logger.info(
            f"Reconciled {report.checked} intent(s): {report.deleted} deleted, "
            f"{report.kept} kept, {len(report.errors)} error(s)"
        )
        return report
