"""
Quote endpoints.

Plain field edits and every change to a quote's files go through
QuoteAttachmentSaga, so a failed upload never leaves the row pointing at a
missing blob.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from app.api.dependencies import get_db, get_saga
from app.api.models import ReferenceHintResponse, StatusResponse
from app.features.attachments import AttachmentFile, QuoteAttachmentSaga, detect_reference
from app.features.database import DatabaseClient
from app.features.database.models import Quote, QuoteCreate, QuoteUpdate
from app.shared.errors import RecordNotFoundError

router = APIRouter(tags=["Quotes"])
logger = logging.getLogger("RenoDesk.API.Quotes")


async def _read_upload(upload: UploadFile) -> AttachmentFile:
    return AttachmentFile(
        name=upload.filename or "file",
        content_type=upload.content_type or "application/octet-stream",
        data=await upload.read(),
    )


@router.post("/quotes", response_model=Quote, status_code=201)
async def create_quote(request: QuoteCreate, saga: QuoteAttachmentSaga = Depends(get_saga)):
    return await saga.create_quote(request.model_dump(exclude_unset=True))


@router.get("/quotes", response_model=List[Quote])
async def list_quotes(
    task_id: Optional[str] = None,
    contact_id: Optional[str] = None,
    db: DatabaseClient = Depends(get_db),
):
    return await db.quotes.list(task_id=task_id, contact_id=contact_id)


@router.get("/quotes/reference-hint", response_model=ReferenceHintResponse)
async def reference_hint(file_name: str):
    """Suggest a quote reference from an attachment's file name."""
    return ReferenceHintResponse(file_name=file_name, reference=detect_reference(file_name))


@router.get("/quotes/{quote_id}", response_model=Quote)
async def get_quote(quote_id: str, db: DatabaseClient = Depends(get_db)):
    quote = await db.quotes.get(quote_id)
    if quote is None:
        raise RecordNotFoundError("quote", "get", quote_id)
    return quote


@router.patch("/quotes/{quote_id}", response_model=Quote)
async def update_quote(quote_id: str, request: QuoteUpdate, saga: QuoteAttachmentSaga = Depends(get_saga)):
    return await saga.save_quote(quote_id, request.model_dump(exclude_unset=True))


@router.post("/quotes/{quote_id}/files", response_model=Quote)
async def upload_quote_files(
    quote_id: str,
    files: List[UploadFile] = File(...),
    replace: bool = Form(False),
    saga: QuoteAttachmentSaga = Depends(get_saga),
):
    """
    Attach files to a quote.

    With replace=true the uploaded files take the place of the current ones
    and the previous blobs are deleted afterwards.
    """
    attachments = [await _read_upload(upload) for upload in files]
    logger.info(f"Uploading {len(attachments)} file(s) to quote {quote_id} (replace={replace})")
    return await saga.save_quote(quote_id, files=attachments, replace_files=replace)


@router.delete("/quotes/{quote_id}/files", response_model=Quote)
async def remove_quote_file(quote_id: str, file_url: str, saga: QuoteAttachmentSaga = Depends(get_saga)):
    return await saga.remove_file(quote_id, file_url)


@router.delete("/quotes/{quote_id}", response_model=StatusResponse)
async def delete_quote(
    quote_id: str,
    purge_files: bool = True,
    saga: QuoteAttachmentSaga = Depends(get_saga),
):
    """Delete a quote; its stored files are deleted too unless purge_files=false."""
    await saga.delete_quote(quote_id, purge_files=purge_files)
    return StatusResponse(status="deleted", id=quote_id)
