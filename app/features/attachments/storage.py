"""
Quote attachment storage on Supabase Storage.

Uploads go through the resumable (TUS) endpoint in fixed-size chunks so a
caller can follow progress; deletes go through the storage SDK. Objects live
at quotes/<quote id>/<epoch ms>.<ext> inside the configured bucket and are
addressed by their public URL.
"""

import base64
import json
import logging
import re
import time
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Callable, Optional
from urllib.parse import quote, unquote, urljoin

import httpx

from app.core.config import Config, settings as default_settings
from app.core.logging_utils import log_storage_event
from app.features.database.models import QuoteFile
from app.shared.correlation import propagate_correlation_headers
from app.shared.errors import AttachmentError, AttachmentNotFoundError

logger = logging.getLogger("RenoDesk.Storage")

TUS_VERSION = "1.0.0"
NEW_OWNER_ID = "new"


@dataclass(frozen=True)
class AttachmentFile:
    """A file handed over by a caller: original name, MIME type and bytes."""
    name: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class UploadProgress:
    bytes_transferred: int
    total_bytes: int

    @property
    def percent(self) -> float:
        if self.total_bytes == 0:
            return 100.0
        return self.bytes_transferred / self.total_bytes * 100


ProgressCallback = Callable[[UploadProgress], None]


def detect_reference(file_name: str) -> Optional[str]:
    """First run of digits in a file name, used to prefill a quote reference."""
    match = re.search(r"\d+", file_name or "")
    return match.group(0) if match else None


def _encode_metadata(**pairs: str) -> str:
    return ",".join(
        f"{key} {base64.b64encode(value.encode('utf-8')).decode('ascii')}"
        for key, value in pairs.items()
    )


class FileAttachmentService:
    """Upload and delete quote attachments."""

    def __init__(
        self,
        client,
        settings: Config = default_settings,
        http: Optional[httpx.AsyncClient] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.client = client
        self.settings = settings
        self.bucket = settings.QUOTES_BUCKET
        self._http = http
        self._clock = clock
        self._last_ms = 0

    # ---------- paths ----------

    def build_path(self, owner_id: str, file_name: str) -> str:
        """
        Storage path for a new upload.

        An owner of "new" means the quote row does not exist yet, so a
        temp_<epoch ms> placeholder stands in for its id.
        """
        # Object names are upload times in ms and must stay unique within a batch
        now_ms = max(int(self._clock() * 1000), self._last_ms + 1)
        self._last_ms = now_ms
        owner = f"temp_{now_ms}" if owner_id == NEW_OWNER_ID else owner_id
        extension = PurePosixPath(file_name).suffix
        return f"quotes/{owner}/{now_ms}{extension}"

    def public_url(self, path: str) -> str:
        return self.settings.storage_public_prefix + quote(path)

    def path_from_url(self, file_url: str) -> str:
        """Object path of a public URL; raises AttachmentError for foreign URLs."""
        decoded = unquote(file_url)
        prefix = self.settings.storage_public_prefix
        if not decoded.startswith(prefix):
            raise AttachmentError(
                "File URL does not belong to the quotes bucket",
                details={"file_url": file_url},
            )
        path = decoded[len(prefix):].split("?", 1)[0]
        if not path:
            raise AttachmentError("File URL has no object path", details={"file_url": file_url})
        return path

    # ---------- upload ----------

    def _auth_headers(self) -> dict:
        return propagate_correlation_headers({
            "Authorization": f"Bearer {self.settings.SUPABASE_KEY}",
            "apikey": self.settings.SUPABASE_KEY or "",
            "Tus-Resumable": TUS_VERSION,
        })

    async def upload(
        self,
        file: AttachmentFile,
        owner_id: str,
        on_progress: Optional[ProgressCallback] = None,
        path: Optional[str] = None,
    ) -> QuoteFile:
        """
        Upload a quote attachment and return its public URL and display name.

        Args:
            file: The file to store
            owner_id: Quote id, or "new" for a quote not yet saved
            on_progress: Optional callback invoked after every chunk
            path: Precomputed object path (see build_path); derived when omitted

        Raises:
            AttachmentError: on any transport or protocol failure
        """
        object_path = path or self.build_path(owner_id, file.name)
        started = time.monotonic()

        try:
            if self._http is not None:
                await self._upload_resumable(self._http, file, object_path, owner_id, on_progress)
            else:
                async with httpx.AsyncClient(timeout=self.settings.UPLOAD_TIMEOUT_SECONDS) as http:
                    await self._upload_resumable(http, file, object_path, owner_id, on_progress)
        except AttachmentError:
            log_storage_event("upload", object_path, self.bucket, size_bytes=file.size, owner_id=owner_id, outcome="error")
            raise
        except httpx.HTTPError as e:
            logger.error(f"Upload error for {object_path}: {e}")
            log_storage_event("upload", object_path, self.bucket, size_bytes=file.size, owner_id=owner_id, outcome="error")
            raise AttachmentError("Failed to upload file", details={"path": object_path}) from e

        duration_ms = int((time.monotonic() - started) * 1000)
        log_storage_event("upload", object_path, self.bucket, size_bytes=file.size, duration_ms=duration_ms, owner_id=owner_id)
        logger.info(f"Uploaded {file.name} to {object_path}")
        return QuoteFile(file_url=self.public_url(object_path), file_name=file.name)

    async def _upload_resumable(
        self,
        http: httpx.AsyncClient,
        file: AttachmentFile,
        object_path: str,
        owner_id: str,
        on_progress: Optional[ProgressCallback],
    ) -> None:
        endpoint = self.settings.resumable_upload_endpoint
        headers = self._auth_headers()

        create = await http.post(
            endpoint,
            headers={
                **headers,
                "Upload-Length": str(file.size),
                "Upload-Metadata": _encode_metadata(
                    bucketName=self.bucket,
                    objectName=object_path,
                    contentType=file.content_type or "application/octet-stream",
                    cacheControl="3600",
                    metadata=json.dumps({"originalName": file.name, "quoteId": owner_id}),
                ),
                "x-upsert": "false",
            },
        )
        if create.status_code != 201 or "location" not in create.headers:
            raise AttachmentError(
                "Failed to upload file",
                details={"path": object_path, "status": create.status_code, "body": create.text[:200]},
            )
        upload_url = urljoin(endpoint, create.headers["location"])

        offset = 0
        chunk_size = self.settings.UPLOAD_CHUNK_SIZE
        while offset < file.size:
            chunk = file.data[offset:offset + chunk_size]
            response = await http.patch(
                upload_url,
                content=chunk,
                headers={
                    **headers,
                    "Upload-Offset": str(offset),
                    "Content-Type": "application/offset+octet-stream",
                },
            )
            if response.status_code != 204:
                raise AttachmentError(
                    "Failed to upload file",
                    details={"path": object_path, "offset": offset, "status": response.status_code},
                )
            try:
                offset = int(response.headers.get("upload-offset", offset + len(chunk)))
            except ValueError as e:
                raise AttachmentError(
                    "Failed to upload file",
                    details={"path": object_path, "offset": offset, "upload_offset": response.headers["upload-offset"]},
                ) from e
            if on_progress is not None:
                on_progress(UploadProgress(offset, file.size))
            logger.debug(f"Upload of {object_path} is {offset}/{file.size} bytes done")

    # ---------- delete ----------

    async def delete(self, file_url: str) -> None:
        """
        Delete the object behind a public URL.

        Empty URLs are ignored. Foreign URLs and missing objects raise
        AttachmentError; callers replacing a file decide whether to tolerate it.
        """
        if not file_url:
            return
        await self.delete_path(self.path_from_url(file_url))

    async def delete_path(self, path: str) -> None:
        try:
            removed = await self.client.storage.from_(self.bucket).remove([path])
        except Exception as e:
            logger.error(f"Error deleting file {path}: {e}")
            log_storage_event("delete", path, self.bucket, outcome="error")
            raise AttachmentError("Failed to delete file", details={"path": path}) from e

        if not removed:
            log_storage_event("delete", path, self.bucket, outcome="error")
            raise AttachmentNotFoundError("File not found in storage", details={"path": path})

        log_storage_event("delete", path, self.bucket)
        logger.info(f"Deleted file {path}")
