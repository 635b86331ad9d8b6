"""
Communications Repository - Contact communication log.

Handles:
- Logging emails, calls and meetings against a contact (optionally a task)
- Recent communications feed and per-contact history, newest first
- Kanban status moves (draft -> pending -> sent -> completed)
"""

from typing import List, Optional

from app.features.database.models import (
    Communication,
    CommunicationCreate,
    CommunicationStatus,
    CommunicationUpdate,
)
from app.features.database.repositories.base import BaseRepository


class CommunicationsRepository(BaseRepository[Communication]):
    """Repository for communication operations."""

    table = "communications"
    entity = "communication"
    record_model = Communication
    create_model = CommunicationCreate
    update_model = CommunicationUpdate

    def list_query(
        self,
        contact_id: Optional[str] = None,
        task_id: Optional[str] = None,
        limit: Optional[int] = None,
    ):
        query = self.query()
        if contact_id:
            query = query.eq("contact_id", contact_id)
        if task_id:
            query = query.eq("task_id", task_id)
        query = query.order("created_at", desc=True)
        if limit:
            query = query.limit(limit)
        return query

    async def list(
        self,
        contact_id: Optional[str] = None,
        task_id: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Communication]:
        """Get communications, most recent first."""
        return await self.fetch(self.list_query(contact_id=contact_id, task_id=task_id, limit=limit))

    async def get_recent(self, limit: int = 5) -> List[Communication]:
        return await self.list(limit=limit)

    async def get_for_contact(self, contact_id: str) -> List[Communication]:
        return await self.list(contact_id=contact_id)

    async def move(self, communication_id: str, status: str) -> None:
        """Move a communication to another kanban column."""
        await self.update(communication_id, {"status": CommunicationStatus(status).value})
