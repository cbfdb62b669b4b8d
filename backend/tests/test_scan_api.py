"""
End-to-end tests for the HTTP API.

Tests complete workflow:
- Upload image -> outcome body with the matching status code
- Location lookup, registration and history
- RIC reference endpoints
"""

import pytest
from fastapi.testclient import TestClient

from conftest import FakeVisionClient
from main import app
from rescan.exceptions import VisionTransportError
from rescan.feature_flags import FeatureFlags, get_feature_flags
from rescan.mocks.fixtures import MOCK_VISION_RESPONSES
from rescan.models import RecordFailed
from rescan.services.orchestrator import ScanOrchestrator


@pytest.fixture
def install_orchestrator(ledger, flags):
    """Put an orchestrator with a fake vision client on app.state."""

    def _install(response: str = "", error=None) -> ScanOrchestrator:
        orchestrator = ScanOrchestrator(
            vision_client=FakeVisionClient(response=response, error=error),
            ledger=ledger,
            flags=flags,
        )
        app.state.orchestrator = orchestrator
        return orchestrator

    yield _install
    if hasattr(app.state, "orchestrator"):
        del app.state.orchestrator


@pytest.fixture
def client():
    # No context manager: the lifespan would build the production orchestrator
    return TestClient(app)


def post_scan(client, image: bytes, location="12 Main St", content_type="image/jpeg"):
    data = {"location": location} if location is not None else {}
    return client.post(
        "/scan",
        files={"image": ("item.jpg", image, content_type)},
        data=data,
    )


class TestScanEndpoint:
    """Test POST /scan status codes and bodies."""

    def test_success(self, client, install_orchestrator, jpeg_bytes):
        install_orchestrator(MOCK_VISION_RESPONSES["pet_bottle"])

        response = post_scan(client, jpeg_bytes)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["material_type"] == "plastic"
        assert body["ric_code"] == 1
        assert body["recyclable"] is True
        assert body["points_awarded"] == 10
        assert body["new_total"] == 10
        assert body["educational"]["ric_info"]["name"] == "PET/PETE"

    def test_png_upload(self, client, install_orchestrator, png_bytes):
        install_orchestrator(MOCK_VISION_RESPONSES["aluminum_can"])

        response = post_scan(client, png_bytes, content_type="image/png")

        assert response.status_code == 200
        assert response.json()["material_type"] == "aluminum"

    def test_unsupported_content_type(self, client, install_orchestrator, jpeg_bytes):
        install_orchestrator(MOCK_VISION_RESPONSES["pet_bottle"])

        response = post_scan(client, jpeg_bytes, content_type="application/pdf")

        assert response.status_code == 400
        assert response.json()["reason"] == "InvalidInputError"

    def test_missing_location(self, client, install_orchestrator, jpeg_bytes):
        install_orchestrator(MOCK_VISION_RESPONSES["pet_bottle"])

        response = post_scan(client, jpeg_bytes, location=None)

        assert response.status_code == 400
        assert response.json()["success"] is False
        assert response.json()["reason"] == "InvalidInputError"

    def test_corrupt_image(self, client, install_orchestrator):
        install_orchestrator(MOCK_VISION_RESPONSES["pet_bottle"])

        response = post_scan(client, b"\xff\xd8\xff not really a jpeg")

        assert response.status_code == 400
        assert response.json()["reason"] == "InvalidInputError"

    def test_uncertain(self, client, install_orchestrator, jpeg_bytes):
        install_orchestrator(MOCK_VISION_RESPONSES["unreadable"])

        response = post_scan(client, jpeg_bytes)

        assert response.status_code == 422
        body = response.json()
        assert body["reason"] == "AnalysisUncertain"
        assert body["points_awarded"] == 0
        assert body["scan_id"]

    def test_transport_error(self, client, install_orchestrator, jpeg_bytes):
        install_orchestrator(error=VisionTransportError("upstream 503"))

        response = post_scan(client, jpeg_bytes)

        assert response.status_code == 502
        assert response.json()["reason"] == "TransportError"

    def test_persistence_error(self, client, install_orchestrator, ledger, jpeg_bytes, monkeypatch):
        install_orchestrator(MOCK_VISION_RESPONSES["pet_bottle"])
        monkeypatch.setattr(
            ledger, "record_scan", lambda *args, **kwargs: RecordFailed("12 main st", "database is locked")
        )

        response = post_scan(client, jpeg_bytes)

        assert response.status_code == 503
        assert response.json()["reason"] == "PersistenceError"


class TestLocationEndpoints:
    """Test /locations endpoints."""

    def test_unknown_location(self, client, install_orchestrator):
        install_orchestrator()

        response = client.get("/locations/nowhere")

        assert response.status_code == 200
        assert response.json()["exists"] is False
        assert response.json()["points_total"] == 0

    def test_location_after_scan(self, client, install_orchestrator, jpeg_bytes):
        install_orchestrator(MOCK_VISION_RESPONSES["pet_bottle"])
        post_scan(client, jpeg_bytes, location="12 Main St")

        response = client.get("/locations/12 MAIN ST")

        assert response.status_code == 200
        body = response.json()
        assert body["exists"] is True
        assert body["points_total"] == 10
        assert body["display_address"] == "12 Main St"

    def test_register_location(self, client, install_orchestrator):
        install_orchestrator()

        response = client.post("/locations", json={"address": "  7 Park Pl "})

        assert response.status_code == 201
        assert response.json()["location_key"] == "7 park pl"
        assert client.get("/locations/7 park pl").json()["exists"] is True

    def test_register_blank_location(self, client, install_orchestrator):
        install_orchestrator()

        response = client.post("/locations", json={"address": "   "})

        assert response.status_code == 400

    def test_scan_history(self, client, install_orchestrator, jpeg_bytes):
        install_orchestrator(MOCK_VISION_RESPONSES["pet_bottle"])
        for _ in range(3):
            post_scan(client, jpeg_bytes, location="History Ln")

        response = client.get("/locations/History Ln/scans", params={"limit": 2})

        assert response.status_code == 200
        body = response.json()
        assert body["points_total"] == 30
        assert len(body["scans"]) == 2
        assert body["scans"][0]["parse_method"] == "structured"

    def test_scan_history_unknown_location(self, client, install_orchestrator):
        install_orchestrator()
        assert client.get("/locations/nowhere/scans").status_code == 404

    def test_scan_history_disabled(self, client, install_orchestrator):
        install_orchestrator()
        app.dependency_overrides[get_feature_flags] = lambda: FeatureFlags(feature_scan_history=False)
        try:
            assert client.get("/locations/anywhere/scans").status_code == 404
        finally:
            app.dependency_overrides.clear()


class TestRicCodeEndpoints:

    def test_list(self, client):
        response = client.get("/ric-codes")
        assert response.status_code == 200
        assert [item["code"] for item in response.json()] == [1, 2, 3, 4, 5, 6, 7]

    def test_single(self, client):
        response = client.get("/ric-codes/5")
        assert response.status_code == 200
        assert response.json()["name"] == "PP"

    @pytest.mark.parametrize("code", [0, 8])
    def test_out_of_range(self, client, code):
        assert client.get(f"/ric-codes/{code}").status_code == 404


class TestAppLifespan:

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}

    def test_lifespan_builds_orchestrator(self, temp_db, monkeypatch, jpeg_bytes):
        monkeypatch.setenv("USE_MOCKS", "true")
        monkeypatch.setenv("DATABASE_PATH", str(temp_db))

        with TestClient(app) as live_client:
            response = post_scan(live_client, jpeg_bytes, location="Lifespan Rd")
            assert response.status_code == 200
            assert response.json()["new_total"] == 10

        del app.state.orchestrator
