"""
Service Tests

Exercises the FastAPI app in-process with TestClient.
"""

import io

import docx
import pytest
from fastapi.testclient import TestClient

from service import main as service_main
from service.main import app
from service.routers import publish as publish_router
from siteaudit.publish import MSG_SUCCESS, PublishResult
from siteaudit.serializer import DOCX_MEDIA_TYPE

from conftest import NOT_BASE64_PHOTO, VALID_PHOTO


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def payload():
    return {
        "userName": "J. Smith",
        "siteName": "Riverside WTW",
        "siteType": "WTW",
        "date": "14/03/2026",
        "compliantCounts": {"Pumps": 9},
        "observations": [
            {
                "id": "obs-1",
                "category": "Pumps",
                "assetName": "Raw water pump 1",
                "risk": "Hi",
                "nonComplianceCount": 1,
                "previouslySeen": "No",
                "photos": [VALID_PHOTO, NOT_BASE64_PHOTO],
            },
            {
                "id": "obs-2",
                "category": "Non-Maintenance",
                "assetName": "Handrail",
                "nonComplianceCount": 4,
            },
        ],
        "config": {"categories": ["Pumps"]},
    }


class TestInfoEndpoints:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert "X-Request-ID" in response.headers

    def test_version(self, client):
        body = client.get("/version").json()
        assert body["engine_version"] == "1.0.0"

    def test_config_defaults(self, client):
        body = client.get("/config/defaults").json()
        assert body["categories"] == ["Pumps", "Motors", "Compressors", "Electrical Panels"]
        assert body["sis_threshold"] == 0.5


class TestScoreEndpoint:
    def test_score(self, client, payload):
        response = client.post("/score", json=payload)
        assert response.status_code == 200
        body = response.json()
        assert body["snapshot"]["total_assets_checked"] == 10
        assert body["snapshot"]["compliance_percentage"] == 90
        assert body["snapshot"]["site_issue_score"] == "0.100"
        assert body["alerts"] == {"sis_high": False, "compliance_low": False}

    def test_default_categories_used_without_config(self, client, payload):
        del payload["config"]
        body = client.post("/score", json=payload).json()
        assert body["thresholds"]["compliance_threshold"] == 85

    def test_shape_error_is_422(self, client, payload):
        payload["observations"][0]["nonComplianceCount"] = 0
        assert client.post("/score", json=payload).status_code == 422

    def test_model_error_is_400(self, client, payload):
        payload["observations"][1]["id"] = "obs-1"
        response = client.post("/score", json=payload)
        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "SA_INPUT_INVALID"
        assert body["request_id"]

    def test_reserved_category_dropped_from_config(self, client, payload):
        payload["config"]["categories"] = ["Pumps", "Non-Maintenance"]
        body = client.post("/score", json=payload).json()
        assert body["snapshot"]["total_assets_checked"] == 10


class TestReportEndpoint:
    def test_docx_download(self, client, payload):
        response = client.post("/report", json=payload)
        assert response.status_code == 200
        assert response.headers["content-type"] == DOCX_MEDIA_TYPE
        assert response.headers["x-image-count"] == "1"
        disposition = response.headers["content-disposition"]
        assert disposition.startswith('attachment; filename="Riverside_WTW_')
        assert disposition.endswith('_Report.docx"')

        document = docx.Document(io.BytesIO(response.content))
        assert len(document.inline_shapes) == 1

    def test_outline(self, client, payload):
        body = client.post("/report/outline", json=payload).json()
        assert body["snapshot"]["compliance_percentage"] == 90
        headings = [b["text"] for b in body["outline"]["blocks"] if b["type"] == "heading"]
        assert "Observation #1: Pumps" in headings
        assert "Observation #2: Non-Maintenance" in headings

    def test_request_too_large(self, client, payload, monkeypatch):
        monkeypatch.setattr(service_main, "SA_MAX_REQUEST_SIZE", 10)
        response = client.post("/report", json=payload)
        assert response.status_code == 413
        assert response.json()["code"] == "REQUEST_TOO_LARGE"


class TestPublishEndpoint:
    def test_unconfigured_webhook_is_502(self, client, payload, monkeypatch):
        monkeypatch.setattr(publish_router, "_webhook_url", "")
        response = client.post("/publish", json=payload)
        assert response.status_code == 502
        body = response.json()
        assert body["code"] == "SA_PUBLISH_FAILED"
        assert body["error"] == "Webhook URL missing."

    def test_success(self, client, payload, monkeypatch):
        calls = []

        def fake_publish(session, url, *, timeout):
            calls.append((session.site_name, url, timeout))
            return PublishResult(success=True, message=MSG_SUCCESS, status_code=200)

        monkeypatch.setattr(publish_router, "_webhook_url", "https://hooks.example.test/x")
        monkeypatch.setattr(publish_router, "publish_metrics", fake_publish)
        response = client.post("/publish", json=payload)
        assert response.status_code == 200
        assert response.json()["success"] is True
        assert calls[0][0] == "Riverside WTW"

    def test_malformed_webhook_url_is_502(self, client, payload, monkeypatch):
        monkeypatch.setattr(publish_router, "_webhook_url", "http://[::1/hook")
        response = client.post("/publish", json=payload)
        assert response.status_code == 502
        assert response.json()["error"] == "Sync failed. Check connection."
