from __future__ import annotations

import csv
import io
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from src.api.main import app
from src.db.memory import MemoryRegistrationStore
from src.db.stores import get_registration_store, get_visit_store
from src.errors import StoreError
from src.handlers.abuse import RateLimiter, get_rate_limiter
from tests.fixtures.clocks import FakeClock


def _payload(**overrides: object) -> dict[str, object]:
    payload: dict[str, object] = {
        "name": "Ada Obi",
        "email": "ADA@example.com",
        "whatsappContact": "+49 151 000000",
        "countryOfResidence": "Germany",
        "countryOfOrigin": "Nigeria",
        "groupType": "diaspora",
        "location": {"city": "Berlin", "areasOfInterest": ["Tech"]},
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def client(api_overrides: dict[str, object]) -> TestClient:
    return TestClient(app)


def test_create_registration_returns_public_record(client: TestClient) -> None:
    response = client.post(
        "/registrations",
        json=_payload(),
        headers={"x-forwarded-for": "203.0.113.7, 10.0.0.1", "user-agent": "browser/1.0"},
    )
    assert response.status_code == 201
    body = response.json()
    assert body["email"] == "ada@example.com"
    assert body["whatsappContact"] == "+49 151 000000"
    assert body["groupType"] == "diaspora"
    assert body["status"] == "pending"
    assert body["ipAddress"] == "203.0.113.7"
    assert body["userAgent"] == "browser/1.0"
    assert body["location"]["city"] == "Berlin"
    assert {"id", "createdAt", "updatedAt"} <= set(body)


def test_create_registration_reports_missing_fields(
    client: TestClient, registration_store: MemoryRegistrationStore
) -> None:
    response = client.post("/registrations", json={"name": "Ada"})
    assert response.status_code == 400
    assert response.json() == {
        "error": "Missing required fields",
        "missing": ["email", "whatsappContact", "countryOfResidence"],
    }


def test_create_registration_rejects_bad_email(client: TestClient) -> None:
    response = client.post("/registrations", json=_payload(email="nope"))
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid email address"}


def test_malformed_json_is_a_validation_error(client: TestClient) -> None:
    response = client.post(
        "/registrations", content=b"{not json", headers={"content-type": "application/json"}
    )
    assert response.status_code == 400
    assert response.json()["missing"] == ["name", "email", "whatsappContact", "countryOfResidence"]


def test_identical_submissions_with_capacity_one_give_201_then_429(
    registration_store: MemoryRegistrationStore, fake_clock: FakeClock
) -> None:
    limiter = RateLimiter(max_requests=1, window_seconds=60, clock=fake_clock)
    app.dependency_overrides[get_registration_store] = lambda: registration_store
    app.dependency_overrides[get_rate_limiter] = lambda: limiter
    try:
        client = TestClient(app)
        first = client.post("/registrations", json=_payload())
        second = client.post("/registrations", json=_payload())
    finally:
        app.dependency_overrides.pop(get_registration_store, None)
        app.dependency_overrides.pop(get_rate_limiter, None)

    assert first.status_code == 201
    assert second.status_code == 429
    assert second.json() == {"error": "Too many requests. Please try again later.", "retryAfter": 60}
    assert second.headers["retry-after"] == "60"


def test_store_failure_returns_generic_500(client: TestClient) -> None:
    class BrokenStore(MemoryRegistrationStore):
        async def insert(self, data):  # type: ignore[no-untyped-def]
            raise StoreError()

    app.dependency_overrides[get_registration_store] = lambda: BrokenStore()
    response = client.post("/registrations", json=_payload())
    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}


def test_list_registrations_newest_first(client: TestClient) -> None:
    for name in ("First", "Second"):
        client.post("/registrations", json=_payload(name=name))
    response = client.get("/registrations")
    assert response.status_code == 200
    assert [row["name"] for row in response.json()["registrations"]] == ["Second", "First"]


def test_stats_view(client: TestClient) -> None:
    client.post("/registrations", json=_payload(countryOfResidence="Ghana"))
    client.post("/registrations", json=_payload(countryOfResidence="Ghana"))
    client.post("/registrations", json=_payload(countryOfResidence="Kenya"))
    client.post("/visits", json={"page": "/"})

    response = client.get("/registrations?stats=true")
    assert response.status_code == 200
    body = response.json()
    assert body["totalRegistrations"] == 3
    assert body["todayRegistrations"] == 3
    assert body["thisWeekRegistrations"] == 3
    assert body["thisMonthRegistrations"] == 3
    assert body["topCountries"] == [{"country": "Ghana", "count": 2}, {"country": "Kenya", "count": 1}]
    assert len(body["recentActivity"]) == 3
    assert body["visitStats"]["total"] == 1


def test_stats_survive_visit_store_failure(client: TestClient) -> None:
    class BrokenVisits:
        async def visit_stats(self, now):  # type: ignore[no-untyped-def]
            raise StoreError()

    app.dependency_overrides[get_visit_store] = lambda: BrokenVisits()
    client.post("/registrations", json=_payload())
    response = client.get("/registrations?stats=true")
    assert response.status_code == 200
    assert response.json()["totalRegistrations"] == 1
    assert "visitStats" not in response.json()


def test_get_update_delete_registration(client: TestClient) -> None:
    created = client.post("/registrations", json=_payload()).json()
    path = f"/registrations/{created['id']}"

    assert client.get(path).json()["id"] == created["id"]

    patched = client.patch(path, json={"status": "verified", "groupType": "local", "name": "Ada O."})
    assert patched.status_code == 200
    assert patched.json()["status"] == "verified"
    assert patched.json()["name"] == "Ada O."
    assert patched.json()["groupType"] == "diaspora"
    assert patched.json()["updatedAt"] >= created["updatedAt"]

    deleted = client.delete(path)
    assert deleted.status_code == 204
    assert client.get(path).status_code == 404
    assert client.delete(path).status_code == 404


def test_patch_null_location_clears_it(client: TestClient) -> None:
    created = client.post("/registrations", json=_payload()).json()
    response = client.patch(f"/registrations/{created['id']}", json={"location": None})
    assert response.status_code == 200
    assert response.json()["location"] == {}


def test_patch_collapses_line_breaks_in_name(client: TestClient) -> None:
    created = client.post("/registrations", json=_payload()).json()
    response = client.patch(f"/registrations/{created['id']}", json={"name": "Ada\n\tObi"})
    assert response.json()["name"] == "Ada Obi"


def test_patch_rejects_unknown_status(client: TestClient) -> None:
    created = client.post("/registrations", json=_payload()).json()
    response = client.patch(f"/registrations/{created['id']}", json={"status": "banned"})
    assert response.status_code == 400
    assert "status" in response.json()["error"]


def test_missing_registration_is_404(client: TestClient) -> None:
    assert client.get(f"/registrations/{uuid4()}").status_code == 404
    assert client.patch(f"/registrations/{uuid4()}", json={"status": "active"}).status_code == 404
    response = client.get("/registrations/not-a-uuid")
    assert response.status_code == 404
    assert response.json() == {"error": "Registration not found"}


def test_export_csv(client: TestClient) -> None:
    client.post("/registrations", json=_payload())
    response = client.get("/registrations/export")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "attachment" in response.headers["content-disposition"]
    rows = list(csv.reader(io.StringIO(response.text)))
    assert rows[0][:3] == ["Name", "Email", "WhatsApp"]
    assert rows[1][0] == "Ada Obi"
