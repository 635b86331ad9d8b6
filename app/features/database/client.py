"""
Database Client - Unified Access to All Data Repositories

Provides organized access to data through domain-specific repositories.
This is a thin wrapper that delegates to focused repository classes; the
Supabase client itself is created once at startup and passed in.
"""

import logging

from app.features.database.repositories.attachment_intents import AttachmentIntentsRepository
from app.features.database.repositories.communications import CommunicationsRepository
from app.features.database.repositories.contacts import ContactsRepository
from app.features.database.repositories.expenses import ExpensesRepository
from app.features.database.repositories.quotes import QuotesRepository
from app.features.database.repositories.tasks import TasksRepository

logger = logging.getLogger("RenoDesk.Database")


class DatabaseClient:
    """
    Unified database client providing access to all repositories.

    Usage:
        supabase = await create_persistence_client()
        db = DatabaseClient(supabase)
        contact = await db.contacts.create({"name": "Atelier Dubois"})
        quotes = await db.quotes.list_by_task(task_id)
    """

    def __init__(self, client):
        """Initialize database client with all repositories."""
        self._client = client

        self.contacts = ContactsRepository(self._client)
        self.communications = CommunicationsRepository(self._client)
        self.tasks = TasksRepository(self._client)
        self.expenses = ExpensesRepository(self._client)
        self.quotes = QuotesRepository(self._client)
        self.attachment_intents = AttachmentIntentsRepository(self._client)

        logger.info("Database client initialized with all repositories")

    @property
    def client(self):
        """Direct access to Supabase client for advanced queries."""
        return self._client

    def table(self, name: str):
        """Direct table access for one-off queries."""
        return self._client.table(name)
