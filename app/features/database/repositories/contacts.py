"""
Contacts Repository - Contact data access operations.

Handles all contact-related database operations including:
- Contact creation and updates
- Listing contacts alphabetically
- Name/email lookups used when logging a quick communication
"""

from typing import List, Optional

from app.features.database.models import Contact, ContactCreate, ContactUpdate
from app.features.database.repositories.base import BaseRepository


class ContactsRepository(BaseRepository[Contact]):
    """Repository for contact operations."""

    table = "contacts"
    entity = "contact"
    record_model = Contact
    create_model = ContactCreate
    update_model = ContactUpdate

    def list_query(self, limit: Optional[int] = None):
        query = self.query().order("name", desc=False)
        if limit:
            query = query.limit(limit)
        return query

    async def list(self, limit: Optional[int] = None) -> List[Contact]:
        """Get all contacts ordered by name ascending."""
        return await self.fetch(self.list_query(limit=limit))

    async def find_by_email(self, email: str) -> Optional[Contact]:
        """Find a contact by email address (case-insensitive)."""
        if not email:
            return None

        email_lower = email.lower().strip()
        matches = await self.fetch(
            self.query().ilike("email", email_lower).limit(1),
            operation="find_by_email",
        )
        return matches[0] if matches else None

    async def search(self, query: str, limit: int = 5) -> List[Contact]:
        """Search contacts by partial name match."""
        if not query or len(query) < 2:
            return []

        return await self.fetch(
            self.query().ilike("name", f"%{query}%").order("name").limit(limit),
            operation="search",
        )
