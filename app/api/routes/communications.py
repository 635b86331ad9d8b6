import logging
from typing import List, Optional

from fastapi import APIRouter, Depends

from app.api.dependencies import get_db
from app.api.models import MoveCommunicationRequest
from app.features.database import DatabaseClient
from app.features.database.models import Communication, CommunicationCreate, CommunicationUpdate
from app.shared.errors import RecordNotFoundError

router = APIRouter(tags=["Communications"])
logger = logging.getLogger("RenoDesk.API.Communications")


async def _get_or_404(db: DatabaseClient, communication_id: str) -> Communication:
    communication = await db.communications.get(communication_id)
    if communication is None:
        raise RecordNotFoundError("communication", "get", communication_id)
    return communication


@router.post("/communications", response_model=Communication, status_code=201)
async def create_communication(request: CommunicationCreate, db: DatabaseClient = Depends(get_db)):
    return await db.communications.create(request)


@router.get("/communications", response_model=List[Communication])
async def list_communications(
    contact_id: Optional[str] = None,
    task_id: Optional[str] = None,
    limit: Optional[int] = None,
    db: DatabaseClient = Depends(get_db),
):
    """Communications, most recent first. Use limit for the recent feed."""
    return await db.communications.list(contact_id=contact_id, task_id=task_id, limit=limit)


@router.get("/communications/{communication_id}", response_model=Communication)
async def get_communication(communication_id: str, db: DatabaseClient = Depends(get_db)):
    return await _get_or_404(db, communication_id)


@router.patch("/communications/{communication_id}", response_model=Communication)
async def update_communication(
    communication_id: str,
    request: CommunicationUpdate,
    db: DatabaseClient = Depends(get_db),
):
    await db.communications.update(communication_id, request)
    return await _get_or_404(db, communication_id)


@router.post("/communications/{communication_id}/move", response_model=Communication)
async def move_communication(
    communication_id: str,
    request: MoveCommunicationRequest,
    db: DatabaseClient = Depends(get_db),
):
    """Move a communication to another kanban column."""
    logger.info(f"Moving communication {communication_id} to {request.status.value}")
    await db.communications.move(communication_id, request.status.value)
    return await _get_or_404(db, communication_id)
