# app/tests/test_request_id.py
"""
Tests for the X-Request-Id middleware.

These tests verify:
1. Client-provided X-Request-Id is echoed in response
2. Missing or unsafe X-Request-Id generates a req-<base36>-<suffix> id
3. Scan responses and their provenance reuse the request id
"""
import re

import pytest
from fastapi.testclient import TestClient

from app.main import app

GENERATED_ID = re.compile(r"^req-[0-9a-z]+-[0-9a-z]{6}$")

EMPTY_SCAN = {
    "context": {
        "home_team": "KC",
        "away_team": "BUF",
        "data_timestamp": 1_700_000_000_000,
        "data_version": "2024-w10",
    }
}


class TestRequestIdMiddleware:
    """Integration tests for request ids with FastAPI."""

    @pytest.fixture
    def client(self, monkeypatch):
        monkeypatch.setenv("TERMINAL_ENABLED", "true")
        monkeypatch.setenv("ANALYST_PROVIDER", "mock")
        return TestClient(app)

    def test_client_request_id_echoed(self, client):
        response = client.get("/health", headers={"X-Request-Id": "my-custom-request-id-123"})
        assert response.headers.get("X-Request-Id") == "my-custom-request-id-123"

    def test_missing_request_id_generated(self, client):
        response = client.get("/health")
        assert GENERATED_ID.match(response.headers["X-Request-Id"])

    def test_invalid_request_id_replaced(self, client):
        invalid_request_id = "invalid@id!with#special"
        response = client.get("/health", headers={"X-Request-Id": invalid_request_id})
        returned_id = response.headers["X-Request-Id"]
        assert returned_id != invalid_request_id
        assert GENERATED_ID.match(returned_id)

    def test_scan_reuses_request_id(self, client):
        """The scan body and its provenance carry the header's request id."""
        response = client.post(
            "/terminal/scan",
            json=EMPTY_SCAN,
            headers={"X-Request-Id": "scan-test-id-456"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["request_id"] == "scan-test-id-456"
        assert data["provenance"]["request_id"] == "scan-test-id-456"

    def test_error_response_has_request_id(self, client, monkeypatch):
        """Error responses also carry X-Request-Id."""
        monkeypatch.setenv("TERMINAL_ENABLED", "false")
        response = client.post(
            "/terminal/scan",
            json=EMPTY_SCAN,
            headers={"X-Request-Id": "error-test-id-789"},
        )
        assert response.status_code == 503
        assert response.headers["X-Request-Id"] == "error-test-id-789"
