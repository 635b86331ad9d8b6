from fastapi import Request

from app.features.attachments import FileAttachmentService, QuoteAttachmentSaga
from app.features.database import DatabaseClient


def get_db(request: Request) -> DatabaseClient:
    """Repositories bound to the client created in the app lifespan."""
    return request.app.state.db


def get_storage(request: Request) -> FileAttachmentService:
    return request.app.state.storage


def get_saga(request: Request) -> QuoteAttachmentSaga:
    """Quote writes that involve stored files go through the saga."""
    return request.app.state.saga
