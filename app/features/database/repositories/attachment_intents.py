"""
Attachment Intents Repository - write-ahead log for quote file uploads.

An intent row is written before a blob is uploaded and resolved once the
quote row references it. Rows left pending or failed point at blobs that may
be orphaned; the reconciliation job reads them back from here.
"""

from datetime import datetime
from typing import List, Optional

from app.features.database.models import (
    AttachmentIntent,
    AttachmentIntentCreate,
    AttachmentIntentUpdate,
    IntentStatus,
)
from app.features.database.repositories.base import BaseRepository


class AttachmentIntentsRepository(BaseRepository[AttachmentIntent]):
    """Repository for attachment intent operations."""

    table = "attachment_intents"
    entity = "attachment_intent"
    record_model = AttachmentIntent
    create_model = AttachmentIntentCreate
    update_model = AttachmentIntentUpdate

    async def open(self, path: str, quote_id: Optional[str] = None) -> AttachmentIntent:
        """Record that a blob is about to be uploaded to path."""
        return await self.create({"path": path, "quote_id": quote_id})

    async def resolve(self, intent_id: str, status: IntentStatus, quote_id: Optional[str] = None) -> None:
        updates = {"status": status}
        if quote_id:
            updates["quote_id"] = quote_id
        await self.update(intent_id, updates)

    async def remove(self, intent_id: str) -> None:
        try:
            await self.client.table(self.table).delete().eq("id", intent_id).execute()
        except Exception as e:
            raise self._fail("remove", e, intent_id) from e

    async def list_stale(self, older_than: datetime) -> List[AttachmentIntent]:
        """Pending or failed intents last touched before older_than."""
        query = (
            self.query()
            .in_("status", [IntentStatus.PENDING.value, IntentStatus.FAILED.value])
            .lt("updated_at", older_than.isoformat())
            .order("updated_at", desc=False)
        )
        return await self.fetch(query, operation="list_stale")
