import httpx
import pytest
from fastapi.testclient import TestClient

from app.features.attachments import FileAttachmentService, QuoteAttachmentSaga
from app.features.database import DatabaseClient
from main import create_app
from tests.fakes import FakeClock


@pytest.fixture
def client(supabase, settings, tus):
    app = create_app(lifespan_handler=None)
    db = DatabaseClient(supabase)
    storage = FileAttachmentService(
        supabase,
        settings,
        http=httpx.AsyncClient(transport=httpx.MockTransport(tus)),
        clock=FakeClock(),
    )
    app.state.db = db
    app.state.storage = storage
    app.state.saga = QuoteAttachmentSaga(db, storage)
    return TestClient(app)


def _quote(client) -> dict:
    task = client.post("/api/v1/tasks", json={"title": "Cuisine"}).json()
    contact = client.post("/api/v1/contacts", json={"name": "Menuiserie Petit"}).json()
    response = client.post("/api/v1/quotes", json={
        "reference": "DEV-9",
        "task_id": task["id"],
        "contact_id": contact["id"],
        "quote_date": "2024-05-02T00:00:00Z",
    })
    assert response.status_code == 201
    return response.json()


def test_health(client):
    response = client.get("/api/v1/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_database_health_reports_unreachable(client, supabase):
    supabase.fail("contacts", "select")

    response = client.get("/api/v1/health/database")

    assert response.status_code == 503


def test_contact_crud(client):
    created = client.post("/api/v1/contacts", json={"name": "Maçonnerie Leroy", "phone": "0601020304"})
    assert created.status_code == 201
    contact_id = created.json()["id"]

    updated = client.patch(f"/api/v1/contacts/{contact_id}", json={"notes": "Disponible en juin"})

    assert updated.status_code == 200
    assert updated.json()["notes"] == "Disponible en juin"
    assert updated.json()["phone"] == "0601020304"
    assert [c["name"] for c in client.get("/api/v1/contacts").json()] == ["Maçonnerie Leroy"]


def test_validation_error_uses_standard_body(client):
    response = client.post("/api/v1/contacts", json={"name": "   "})

    assert response.status_code == 400
    body = response.json()["error"]
    assert body["code"] == "VALIDATION_ERROR"
    assert body["correlation_id"]


def test_missing_record_returns_404(client):
    response = client.get("/api/v1/tasks/nope", headers={"X-Correlation-ID": "req-42"})

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"
    assert response.json()["error"]["correlation_id"] == "req-42"
    assert response.headers["X-Correlation-ID"] == "req-42"


def test_update_missing_record_returns_404(client):
    response = client.patch("/api/v1/expenses/nope", json={"status": "settled"})

    assert response.status_code == 404


def test_backend_failure_returns_database_error(client, supabase):
    supabase.fail("tasks", "select")

    response = client.get("/api/v1/tasks")

    assert response.status_code == 500
    assert response.json()["error"]["code"] == "DATABASE_ERROR"
    assert response.json()["error"]["details"] == {"operation": "list"}


def test_task_progress_and_status_filter(client):
    task = client.post("/api/v1/tasks", json={"title": "Peinture"}).json()

    done = client.post(f"/api/v1/tasks/{task['id']}/progress", json={"completion_percentage": 100})

    assert done.json()["status"] == "done"
    assert [t["id"] for t in client.get("/api/v1/tasks", params={"status": "done"}).json()] == [task["id"]]
    assert client.get("/api/v1/tasks", params={"status": "todo"}).json() == []


def test_communication_move(client):
    created = client.post("/api/v1/communications", json={"contact_id": "c1", "type": "email", "subject": "Relance"}).json()

    moved = client.post(f"/api/v1/communications/{created['id']}/move", json={"status": "completed"})

    assert moved.json()["status"] == "completed"


def test_expense_totals(client):
    client.post("/api/v1/expenses", json={"amount": "100.50", "date": "2024-04-01T00:00:00Z", "category": "equipment"})
    client.post("/api/v1/expenses", json={"amount": "20", "date": "2024-04-02T00:00:00Z", "category": "food", "status": "settled"})

    totals = client.get("/api/v1/expenses/totals").json()["totals"]

    assert float(totals["pending"]) == 100.5
    assert float(totals["settled"]) == 20


def test_upload_files_to_quote(client, supabase):
    quote = _quote(client)

    response = client.post(
        f"/api/v1/quotes/{quote['id']}/files",
        files=[("files", ("devis.pdf", b"%PDF-1.4 content", "application/pdf"))],
    )

    assert response.status_code == 200
    files = response.json()["files"]
    assert [f["file_name"] for f in files] == ["devis.pdf"]
    assert files[0]["file_url"].startswith("https://proj.supabase.co/storage/v1/object/public/quotes/quotes/")
    assert len(supabase.objects["quotes"]) == 1


def test_failed_upload_returns_bad_gateway(client, tus):
    quote = _quote(client)
    tus.reject_names.add("devis.pdf")

    response = client.post(
        f"/api/v1/quotes/{quote['id']}/files",
        files=[("files", ("devis.pdf", b"data", "application/pdf"))],
    )

    assert response.status_code == 502
    assert response.json()["error"]["code"] == "EXTERNAL_SERVICE_ERROR"
    assert client.get(f"/api/v1/quotes/{quote['id']}").json()["files"] == []


def test_delete_quote_purges_files_by_default(client, supabase):
    quote = _quote(client)
    client.post(
        f"/api/v1/quotes/{quote['id']}/files",
        files=[("files", ("devis.pdf", b"data", "application/pdf"))],
    )

    response = client.delete(f"/api/v1/quotes/{quote['id']}")

    assert response.json() == {"status": "deleted", "id": quote["id"]}
    assert client.get(f"/api/v1/quotes/{quote['id']}").status_code == 404
    assert supabase.objects["quotes"] == {}


def test_reference_hint(client):
    response = client.get("/api/v1/quotes/reference-hint", params={"file_name": "Devis_0457.pdf"})

    assert response.json() == {"file_name": "Devis_0457.pdf", "reference": "0457"}
