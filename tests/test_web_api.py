"""
Tests for the web API endpoints.

This module tests the FastAPI application endpoints for inspecting,
normalizing and redacting documents.
"""

import json

import fitz
import pytest
from fastapi.testclient import TestClient

from blackline.web.api import app

from conftest import area, make_pdf


@pytest.fixture
def client():
    """Create test client for FastAPI app."""
    return TestClient(app)


def upload(data=None, name="report.pdf"):
    return {"file": (name, data if data is not None else make_pdf(), "application/pdf")}


class TestBasicEndpoints:
    """Test basic API endpoints."""

    def test_root_endpoint(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert "blackline API" in response.json()["message"]

    def test_health_check(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == "blackline-api"


class TestNormalize:

    def test_normalize(self, client):
        response = client.post("/normalize", json={
            "rect": {"x": 20, "y": 40, "width": 100, "height": 60},
            "capture": {"width": 300, "height": 400},
            "page": {"width": 150, "height": 200},
        })
        assert response.status_code == 200
        assert response.json() == {"x": 10, "y": 150, "width": 50, "height": 30}

    def test_normalize_without_capture(self, client):
        response = client.post("/normalize", json={
            "rect": {"x": 0, "y": 150, "width": 10, "height": 50},
            "page": {"width": 150, "height": 200},
        })
        assert response.status_code == 200
        assert response.json()["y"] == 0


class TestInspect:

    def test_inspect(self, client):
        response = client.post("/inspect", files=upload(make_pdf(pages=2)))
        assert response.status_code == 200
        data = response.json()
        assert data["page_count"] == 2
        assert data["pages"][0] == {"width": 150, "height": 200}

    def test_inspect_unreadable(self, client):
        response = client.post("/inspect", files=upload(b"garbage"))
        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "SourceUnreadable"


class TestRedact:

    def test_redact(self, client):
        response = client.post(
            "/redact",
            files=upload(),
            data={"areas": json.dumps([area(0)])},
        )
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert 'filename="report_redacted.pdf"' in response.headers["content-disposition"]
        with fitz.open(stream=response.content, filetype="pdf") as doc:
            assert doc.page_count == 3
            assert doc[0].search_for("SECRET-0") == []

    def test_redact_no_areas(self, client):
        response = client.post("/redact", files=upload(), data={"areas": "[]"})
        assert response.status_code == 422
        assert response.json()["detail"]["error"] == "NoAreasSpecified"

    def test_redact_invalid_json(self, client):
        response = client.post("/redact", files=upload(), data={"areas": "{not json"})
        assert response.status_code == 422

    def test_redact_areas_not_a_list(self, client):
        response = client.post("/redact", files=upload(), data={"areas": json.dumps(area(0))})
        assert response.status_code == 422

    def test_redact_missing_page(self, client):
        response = client.post("/redact", files=upload(), data={"areas": json.dumps([area(9)])})
        assert response.status_code == 422
        assert response.json()["detail"]["error"] == "InvalidArea"

    def test_redact_non_numeric_capture_size(self, client):
        bad = area(0)
        bad["captureWidth"] = "wide"
        response = client.post("/redact", files=upload(), data={"areas": json.dumps([bad])})
        assert response.status_code == 422
        assert response.json()["detail"]["error"] == "InvalidArea"

    def test_redact_negative_extents(self, client):
        areas = [area(0, x=100, y=50, width=-90, height=-40)]
        response = client.post("/redact", files=upload(), data={"areas": json.dumps(areas)})
        assert response.status_code == 200
        with fitz.open(stream=response.content, filetype="pdf") as doc:
            assert doc[0].search_for("SECRET-0") == []

    def test_redact_unreadable_source(self, client):
        response = client.post(
            "/redact", files=upload(b"not a pdf"), data={"areas": json.dumps([area(0)])}
        )
        assert response.status_code == 400
