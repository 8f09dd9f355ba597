"""HTTP-level tests: auth, envelopes, validation and error mapping."""

import pytest
from fastapi.testclient import TestClient

from app.api.deps import get_square_client
from app.core.exceptions import UpstreamError
from app.main import app
from tests.conftest import FakeSquareClient, make_item, make_slot

AUTH = {"Authorization": "Bearer test-auth-token"}


@pytest.fixture
def square():
    return FakeSquareClient(
        items=[
            make_item("I1", "Shave", "V2", ["T2"], amount=1500),
            make_item("I2", "Haircut", "V1", ["T1", "T9"]),
        ],
        team_members=[
            {"id": "T1", "given_name": "Alice", "family_name": "Smith"},
            {"id": "T2", "given_name": "Bob"},
        ],
        related={"I2": [{"type": "IMAGE", "image_data": {"url": "https://img/haircut.png"}}]},
    )


@pytest.fixture
def client(square):
    app.dependency_overrides[get_square_client] = lambda: square
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


class TestHealthAndAuth:

    def test_health_is_public(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["environment"] == "test"
        assert "timestamp" in data

    def test_missing_token(self, client):
        response = client.get("/services")
        assert response.status_code == 401
        body = response.json()
        assert body["success"] is False
        assert "Authorization" in body["error"]["message"]

    def test_non_bearer_scheme(self, client):
        response = client.get("/services", headers={"Authorization": "Basic abc"})
        assert response.status_code == 401
        assert "Bearer" in response.json()["error"]["message"]

    def test_wrong_token(self, client):
        response = client.get("/services", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401
        assert "Invalid" in response.json()["error"]["message"]

    def test_unknown_endpoint(self, client):
        response = client.get("/unknown-endpoint", headers=AUTH)
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    def test_unknown_endpoint_without_token_is_not_found(self, client):
        response = client.get("/unknown-endpoint")
        assert response.status_code == 404

    def test_cors_preflight(self, client):
        response = client.options(
            "/services",
            headers={"Origin": "http://localhost:3000", "Access-Control-Request-Method": "GET"},
        )
        assert response.status_code == 200
        assert response.headers.get("access-control-allow-origin") == "http://localhost:3000"


class TestCatalogEndpoints:

    def test_services_sorted_with_images_and_providers(self, client):
        response = client.get("/services", headers=AUTH)
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["count"] == 2
        services = body["data"]["services"]
        assert [s["name"] for s in services] == ["Haircut", "Shave"]
        haircut = services[0]
        assert haircut["service_variation_id"] == "V1"
        assert haircut["imageUrl"] == "https://img/haircut.png"
        assert haircut["pricing_amount"] == 25.0
        assert haircut["pricing_currency"] == "CAD"
        assert haircut["providers"] == [{"id": "T1", "name": "Alice"}, {"id": "T9", "name": "Unknown"}]

    def test_service_names(self, client, square):
        response = client.get("/services/names", headers=AUTH)
        assert response.json()["data"] == {"services": ["Shave", "Haircut"]}
        assert square.called("get_catalog_item_with_related") == []

    def test_team_members(self, client):
        response = client.get("/team-members", headers=AUTH)
        body = response.json()
        assert body["count"] == 2
        assert body["data"] == [{"id": "T1", "name": "Alice Smith"}, {"id": "T2", "name": "Bob"}]

    def test_upstream_status_is_forwarded(self, client, square):
        square.fail_with["list_catalog_items"] = UpstreamError("This request could not be authorized.", 401)
        response = client.get("/services/names", headers=AUTH)
        assert response.status_code == 401
        assert response.json()["error"] == {
            "message": "This request could not be authorized.",
            "code": "HTTP_401",
        }


class TestAvailabilityEndpoints:

    def test_missing_params(self, client):
        response = client.get("/availability?date=2025-06-01", headers=AUTH)
        assert response.status_code == 400
        assert "Missing required query params" in response.json()["error"]["message"]

    def test_unknown_service(self, client):
        response = client.get("/availability?date=2025-06-01&serviceName=Massage", headers=AUTH)
        assert response.status_code == 404

    def test_malformed_slot_is_bad_gateway(self, client, square):
        square.availabilities = [{"start_at": "garbage"}]
        response = client.get("/availability?date=2025-06-01&serviceName=haircut", headers=AUTH)
        assert response.status_code == 502
        assert response.json()["error"]["code"] == "HTTP_502"

    def test_raw_slots(self, client, square):
        square.availabilities = [make_slot("2025-06-01T15:00:00Z")]
        response = client.get("/availability?date=2025-06-01&serviceName=haircut", headers=AUTH)
        body = response.json()
        assert body["count"] == 1
        assert body["data"][0]["appointment_segments"][0]["team_member_id"] == "T1"

    def test_times_grouped_by_period(self, client, square):
        square.availabilities = [
            make_slot("2025-06-01T15:00:00Z"),
            make_slot("2025-06-01T19:30:00Z"),
            make_slot("2025-06-02T01:00:00Z"),
        ]
        response = client.get(
            "/availability-times?date=2025-06-01&serviceName=Haircut&timezone=America/Edmonton",
            headers=AUTH,
        )
        assert response.status_code == 200
        assert response.json()["data"]["result"] == [
            {"category": "morning", "times": ["09:00"]},
            {"category": "afternoon", "times": ["13:30"]},
            {"category": "night", "times": ["19:00"]},
        ]

    def test_invalid_timezone(self, client):
        response = client.get(
            "/availability-times?date=2025-06-01&serviceName=Haircut&timezone=Bad/Zone",
            headers=AUTH,
        )
        assert response.status_code == 400

    def test_availability_array(self, client, square):
        square.availabilities = [make_slot("2025-06-01T15:00:00Z"), make_slot("2025-06-01T16:00:00Z")]
        response = client.post(
            "/availability-array",
            json={"date": "2025-06-01", "serviceName": "Haircut", "timezone": "America/Edmonton"},
            headers=AUTH,
        )
        body = response.json()
        assert body["count"] == 2
        assert all(s.startswith("2025-06-01") for s in body["data"])

    def test_availability_array_validation(self, client):
        response = client.post("/availability-array", json={"date": "June 1"}, headers=AUTH)
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"


class TestAppointmentEndpoints:

    def test_creates_booking(self, client, square):
        square.availabilities = [make_slot("2025-06-01T14:02:00Z")]
        response = client.post(
            "/appointment",
            json={
                "firstName": "Jane",
                "lastName": "Doe",
                "email": "jane@example.com",
                "serviceName": "haircut",
                "teamMemberName": "Alice Smith",
                "startAt": "2025-06-01T14:00:00Z",
            },
            headers=AUTH,
        )
        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Booking created successfully"
        assert body["data"]["bookingId"] == "B-1"
        assert len(square.called("create_booking")) == 1

    def test_busy_slot_is_conflict(self, client):
        response = client.post(
            "/appointment",
            json={
                "firstName": "Jane",
                "lastName": "Doe",
                "serviceName": "haircut",
                "teamMemberName": "Alice Smith",
                "startAt": "2025-06-01T14:00:00Z",
            },
            headers=AUTH,
        )
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "HTTP_409"

    def test_customer_without_id_is_bad_gateway(self, client, square):
        square.availabilities = [make_slot("2025-06-01T14:00:00Z")]
        square.customers = [{"email_address": "jane@example.com"}]
        response = client.post(
            "/appointment",
            json={
                "firstName": "Jane",
                "lastName": "Doe",
                "email": "jane@example.com",
                "serviceName": "haircut",
                "teamMemberName": "Alice Smith",
                "startAt": "2025-06-01T14:00:00Z",
            },
            headers=AUTH,
        )
        assert response.status_code == 502
        assert response.json()["error"]["code"] == "HTTP_502"
        assert square.called("create_booking") == []

    def test_validation_failure(self, client, square):
        response = client.post(
            "/appointment",
            json={"firstName": "", "serviceName": "Test Service"},
            headers=AUTH,
        )
        assert response.status_code == 400
        assert response.json()["error"]["message"].startswith("Validation failed")
        assert square.calls == []

    def test_parse_date_time(self, client):
        response = client.post(
            "/parse_date_time",
            data={"date": "2025-06-01", "time": "14:30", "timezone": "America/Edmonton"},
            headers=AUTH,
        )
        assert response.status_code == 200
        assert response.json()["data"] == {"isoDate": "2025-06-01T14:30:00.000-06:00"}

    def test_parse_date_time_uses_default_zone(self, client):
        response = client.post("/parse_date_time", data={"date": "2025-01-10", "time": "09:00"}, headers=AUTH)
        assert response.json()["data"]["isoDate"] == "2025-01-10T09:00:00.000-07:00"

    def test_parse_date_time_rejects_bad_time(self, client):
        response = client.post("/parse_date_time", data={"date": "2025-06-01", "time": "2pm"}, headers=AUTH)
        assert response.status_code == 400
