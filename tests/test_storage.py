import base64

import httpx
import pytest

from app.features.attachments import AttachmentFile, FileAttachmentService, detect_reference
from app.shared.errors import AttachmentError, AttachmentNotFoundError
from tests.conftest import PUBLIC_PREFIX


def _pdf(name: str = "devis 2024-017.pdf", size: int = 20) -> AttachmentFile:
    return AttachmentFile(name=name, content_type="application/pdf", data=bytes(range(size)))


# ---------- paths ----------

def test_build_path_uses_owner_and_upload_time(storage, clock):
    path = storage.build_path("quote-1", "Devis Final.PDF")

    assert path == f"quotes/quote-1/{int(clock.value * 1000)}.PDF"


def test_build_path_for_new_quote_uses_temp_folder(storage, clock):
    ms = int(clock.value * 1000)

    assert storage.build_path("new", "plan.png") == f"quotes/temp_{ms}/{ms}.png"


def test_build_path_without_extension(storage, clock):
    assert storage.build_path("q", "README") == f"quotes/q/{int(clock.value * 1000)}"


def test_paths_in_the_same_millisecond_stay_unique(storage):
    first = storage.build_path("q", "a.pdf")
    second = storage.build_path("q", "b.pdf")

    assert first != second


def test_path_from_url_strips_prefix_query_and_encoding(storage):
    url = PUBLIC_PREFIX + "quotes/q1/Devis%20final.pdf?token=abc"

    assert storage.path_from_url(url) == "quotes/q1/Devis final.pdf"


@pytest.mark.parametrize("url", ["https://elsewhere.example/file.pdf", PUBLIC_PREFIX])
def test_path_from_url_rejects_foreign_or_empty_paths(storage, url):
    with pytest.raises(AttachmentError):
        storage.path_from_url(url)


@pytest.mark.parametrize(
    "file_name, reference",
    [("Devis_4821_cuisine.pdf", "4821"), ("facture-12-v3.pdf", "12"), ("plan.pdf", None), ("", None)],
)
def test_detect_reference_takes_first_digit_run(file_name, reference):
    assert detect_reference(file_name) == reference


# ---------- upload ----------

async def test_upload_sends_chunks_and_reports_progress(storage, tus, supabase):
    progress = []

    stored = await storage.upload(_pdf(size=20), "quote-1", on_progress=progress.append)

    path = storage.path_from_url(stored.file_url)
    assert stored.file_name == "devis 2024-017.pdf"
    assert path.startswith("quotes/quote-1/")
    assert supabase.objects["quotes"][path] == bytes(range(20))
    # chunk size is 8 bytes in tests
    assert [len(r.content) for r in tus.patches] == [8, 8, 4]
    assert [(p.bytes_transferred, p.total_bytes) for p in progress] == [(8, 20), (16, 20), (20, 20)]
    assert progress[-1].percent == 100.0


async def test_upload_metadata_and_headers(storage, tus):
    await storage.upload(_pdf(), "quote-1")

    create = tus.requests[0]
    assert create.method == "POST"
    assert str(create.url) == "https://proj.supabase.co/storage/v1/upload/resumable"
    assert create.headers["Authorization"] == "Bearer service-role-key"
    assert create.headers["Tus-Resumable"] == "1.0.0"
    assert create.headers["Upload-Length"] == "20"
    meta = dict(item.split(" ") for item in create.headers["Upload-Metadata"].split(","))
    assert base64.b64decode(meta["bucketName"]) == b"quotes"
    assert base64.b64decode(meta["contentType"]) == b"application/pdf"
    assert b'"quoteId": "quote-1"' in base64.b64decode(meta["metadata"])
    assert all(r.headers["Content-Type"] == "application/offset+octet-stream" for r in tus.patches)


async def test_upload_rejected_by_server_raises(storage, tus, supabase):
    tus.reject_names.add("bad.pdf")

    with pytest.raises(AttachmentError, match="Failed to upload file"):
        await storage.upload(_pdf("bad.pdf"), "quote-1")


async def test_unreadable_upload_offset_raises(storage, tus, supabase):
    tus.bad_offset_names.add("odd.pdf")

    with pytest.raises(AttachmentError) as exc_info:
        await storage.upload(_pdf("odd.pdf"), "quote-1")

    assert exc_info.value.details["upload_offset"] == "n/a"

    assert supabase.objects.get("quotes", {}) == {}


async def test_upload_failing_mid_transfer_raises(storage, tus):
    tus.fail_patch_names.add("bad.pdf")

    with pytest.raises(AttachmentError):
        await storage.upload(_pdf("bad.pdf"), "quote-1")


async def test_transport_error_becomes_attachment_error(supabase, settings):
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(refuse)) as http:
        service = FileAttachmentService(supabase, settings, http=http)
        with pytest.raises(AttachmentError) as exc_info:
            await service.upload(_pdf(), "quote-1")

    assert isinstance(exc_info.value.__cause__, httpx.ConnectError)


async def test_empty_file_uploads_without_chunks(storage, tus, supabase):
    stored = await storage.upload(AttachmentFile("vide.txt", "text/plain", b""), "q")

    assert tus.patches == []
    assert stored.file_name == "vide.txt"


# ---------- delete ----------

async def test_delete_empty_url_is_a_no_op(storage, supabase):
    await storage.delete("")

    assert supabase.storage_calls == []


async def test_delete_removes_object(storage, supabase):
    stored = await storage.upload(_pdf(), "quote-1")

    await storage.delete(stored.file_url)

    assert supabase.objects["quotes"] == {}


async def test_delete_missing_object_raises(storage):
    with pytest.raises(AttachmentNotFoundError):
        await storage.delete(PUBLIC_PREFIX + "quotes/q/gone.pdf")


async def test_delete_backend_failure_raises(storage, supabase):
    supabase.storage_failing = True

    with pytest.raises(AttachmentError):
        await storage.delete(PUBLIC_PREFIX + "quotes/q/1.pdf")


async def test_delete_foreign_url_raises_without_calling_storage(storage, supabase):
    with pytest.raises(AttachmentError):
        await storage.delete("https://cdn.example.com/quotes/q/1.pdf")

    assert supabase.storage_calls == []
