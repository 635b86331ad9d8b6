import httpx
import pytest

from app.core.config import Config
from app.features.attachments import FileAttachmentService, QuoteAttachmentSaga
from app.features.database import DatabaseClient
from tests.fakes import FakeClock, FakeSupabase, FakeTusServer

SUPABASE_URL = "https://proj.supabase.co"
PUBLIC_PREFIX = f"{SUPABASE_URL}/storage/v1/object/public/quotes/"


@pytest.fixture
def settings() -> Config:
    config = Config()
    config.SUPABASE_URL = SUPABASE_URL
    config.SUPABASE_KEY = "service-role-key"
    config.QUOTES_BUCKET = "quotes"
    config.UPLOAD_CHUNK_SIZE = 8
    config.UPLOAD_TIMEOUT_SECONDS = 5.0
    config.ORPHAN_GRACE_MINUTES = 60
    return config


@pytest.fixture
def supabase() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def db(supabase) -> DatabaseClient:
    return DatabaseClient(supabase)


@pytest.fixture
def tus(supabase) -> FakeTusServer:
    return FakeTusServer(supabase)


@pytest.fixture
async def http(tus):
    async with httpx.AsyncClient(transport=httpx.MockTransport(tus)) as client:
        yield client


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def storage(supabase, settings, http, clock) -> FileAttachmentService:
    return FileAttachmentService(supabase, settings, http=http, clock=clock)


@pytest.fixture
def saga(db, storage) -> QuoteAttachmentSaga:
    return QuoteAttachmentSaga(db, storage)


@pytest.fixture
async def contact(db):
    return await db.contacts.create({"name": "Atelier Dubois", "email": "contact@dubois.fr"})


@pytest.fixture
async def task(db):
    return await db.tasks.create({"title": "Refaire la salle de bain"})


@pytest.fixture
def quote_fields(task, contact):
    return {
        "reference": "DEV-2024-017",
        "task_id": task.id,
        "contact_id": contact.id,
        "quote_date": "2024-05-02T00:00:00Z",
    }
