"""
Quotes Repository - supplier quotes attached to tasks.

Handles:
- Quote creation/update (files are stored as an ordered list of {file_url, file_name})
- Listing all quotes or those of one task/contact
- Hard delete of the row

Deleting a row never touches blob storage; file cleanup belongs to
QuoteAttachmentSaga.delete_quote.
"""

from typing import List, Optional

from app.features.database.models import Quote, QuoteCreate, QuoteUpdate
from app.features.database.repositories.base import BaseRepository


class QuotesRepository(BaseRepository[Quote]):
    """Repository for quote operations."""

    table = "quotes"
    entity = "quote"
    record_model = Quote
    create_model = QuoteCreate
    update_model = QuoteUpdate

    def list_query(self, task_id: Optional[str] = None, contact_id: Optional[str] = None):
        query = self.query()
        if task_id:
            query = query.eq("task_id", task_id)
        if contact_id:
            query = query.eq("contact_id", contact_id)
        return query

    async def list(self, task_id: Optional[str] = None, contact_id: Optional[str] = None) -> List[Quote]:
        """Get quotes, unordered, optionally narrowed to a task or contact."""
        return await self.fetch(self.list_query(task_id=task_id, contact_id=contact_id))

    async def list_by_task(self, task_id: str) -> List[Quote]:
        return await self.list(task_id=task_id)

    async def delete(self, quote_id: str) -> None:
        """Hard-delete a quote row. Attached files are left in storage."""
        try:
            result = await self.client.table(self.table).delete().eq("id", quote_id).execute()
        except Exception as e:
            raise self._fail("delete", e, quote_id) from e

        if result.data:
            self.logger.info(f"Deleted quote {quote_id}")
        else:
            self.logger.warning(f"Delete matched no quote with id {quote_id}")

    async def find_by_file_url(self, file_url: str) -> List[Quote]:
        """Quotes whose files list references file_url."""
        return await self.fetch(
            self.query().contains("files", [{"file_url": file_url}]),
            operation="find_by_file_url",
        )
