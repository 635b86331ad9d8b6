"""
Database Feature Module - Organized Data Access Layer

Provides clean, organized access to the renovation desk tables.

Usage:
    from app.features.database import DatabaseClient

    db = DatabaseClient(supabase)

    # Contacts
    contacts = await db.contacts.list()

    # Tasks
    task = await db.tasks.create({"title": "Poser le carrelage"})

    # Quotes
    await db.quotes.delete(quote_id)
"""

from app.features.database.client import DatabaseClient

__all__ = [
    "DatabaseClient",
]
