"""Database Repositories - Organized data access."""

from app.features.database.repositories.attachment_intents import AttachmentIntentsRepository
from app.features.database.repositories.base import BaseRepository
from app.features.database.repositories.communications import CommunicationsRepository
from app.features.database.repositories.contacts import ContactsRepository
from app.features.database.repositories.expenses import ExpensesRepository
from app.features.database.repositories.quotes import QuotesRepository
from app.features.database.repositories.tasks import TasksRepository

__all__ = [
    "AttachmentIntentsRepository",
    "BaseRepository",
    "CommunicationsRepository",
    "ContactsRepository",
    "ExpensesRepository",
    "QuotesRepository",
    "TasksRepository",
]
