"""
Attachments Feature - quote files in Supabase Storage.

- storage: resumable uploads, URL <-> path mapping, deletes
- saga: quote saves that span storage and the quotes table
"""

from app.features.attachments.saga import QuoteAttachmentSaga, ReconcileReport
from app.features.attachments.storage import (
    AttachmentFile,
    FileAttachmentService,
    UploadProgress,
    detect_reference,
)

__all__ = [
    "AttachmentFile",
    "FileAttachmentService",
    "QuoteAttachmentSaga",
    "ReconcileReport",
    "UploadProgress",
    "detect_reference",
]
