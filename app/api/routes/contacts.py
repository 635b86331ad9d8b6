import logging
from typing import List, Optional

from fastapi import APIRouter, Depends

from app.api.dependencies import get_db
from app.features.database import DatabaseClient
from app.features.database.models import Contact, ContactCreate, ContactUpdate
from app.shared.errors import RecordNotFoundError

router = APIRouter(tags=["Contacts"])
logger = logging.getLogger("RenoDesk.API.Contacts")


@router.post("/contacts", response_model=Contact, status_code=201)
async def create_contact(request: ContactCreate, db: DatabaseClient = Depends(get_db)):
    return await db.contacts.create(request)


@router.get("/contacts", response_model=List[Contact])
async def list_contacts(limit: Optional[int] = None, db: DatabaseClient = Depends(get_db)):
    """All contacts, alphabetical."""
    return await db.contacts.list(limit=limit)


@router.get("/contacts/search", response_model=List[Contact])
async def search_contacts(q: str, limit: int = 5, db: DatabaseClient = Depends(get_db)):
    """Search contacts by partial name match."""
    return await db.contacts.search(q.strip(), limit=limit)


@router.get("/contacts/{contact_id}", response_model=Contact)
async def get_contact(contact_id: str, db: DatabaseClient = Depends(get_db)):
    contact = await db.contacts.get(contact_id)
    if contact is None:
        raise RecordNotFoundError("contact", "get", contact_id)
    return contact


@router.patch("/contacts/{contact_id}", response_model=Contact)
async def update_contact(contact_id: str, request: ContactUpdate, db: DatabaseClient = Depends(get_db)):
    logger.info(f"Updating contact {contact_id}")
    await db.contacts.update(contact_id, request)
    return await get_contact(contact_id, db)
