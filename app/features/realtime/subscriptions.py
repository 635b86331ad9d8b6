"""
Per-entity live query factories.

Each method opens a LiveQuery whose refresh runs the same list query the
repository exposes, so live results and one-shot lists share ordering and
filtering rules.
"""

from typing import Optional

from app.features.database.client import DatabaseClient
from app.features.database.models import Communication, Contact, Expense, Quote, Task
from app.features.realtime.live_query import ErrorCallback, LiveQuery, ResultCallback


class SubscriptionFactory:
    """Opens live queries on the shared Supabase client."""

    def __init__(self, db: DatabaseClient):
        self.db = db

    async def contacts(
        self,
        callback: ResultCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> LiveQuery[Contact]:
        repo = self.db.contacts
        return await LiveQuery(
            self.db.client, repo.table, repo.list, callback, on_error,
        ).start()

    async def tasks(
        self,
        callback: ResultCallback,
        on_error: Optional[ErrorCallback] = None,
        status: Optional[str] = None,
    ) -> LiveQuery[Task]:
        repo = self.db.tasks
        return await LiveQuery(
            self.db.client,
            repo.table,
            lambda: repo.list(status=status),
            callback,
            on_error,
            label=f"status={status}" if status else None,
        ).start()

    async def expenses(
        self,
        callback: ResultCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> LiveQuery[Expense]:
        repo = self.db.expenses
        return await LiveQuery(
            self.db.client, repo.table, repo.list, callback, on_error,
        ).start()

    async def communications(
        self,
        callback: ResultCallback,
        on_error: Optional[ErrorCallback] = None,
        contact_id: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> LiveQuery[Communication]:
        repo = self.db.communications
        return await LiveQuery(
            self.db.client,
            repo.table,
            lambda: repo.list(contact_id=contact_id, limit=limit),
            callback,
            on_error,
            label=f"contact_id={contact_id}" if contact_id else None,
        ).start()

    async def quotes(
        self,
        callback: ResultCallback,
        on_error: Optional[ErrorCallback] = None,
        task_id: Optional[str] = None,
    ) -> LiveQuery[Quote]:
        repo = self.db.quotes
        return await LiveQuery(
            self.db.client,
            repo.table,
            lambda: repo.list(task_id=task_id),
            callback,
            on_error,
            label=f"task_id={task_id}" if task_id else None,
        ).start()
