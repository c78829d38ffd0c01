"""Tests for the FastAPI application."""

import pytest
from fastapi.testclient import TestClient

from assocquery.api import create_app


@pytest.fixture
def client(service):
    return TestClient(create_app(service))


@pytest.mark.tier1
class TestApi:
    @pytest.mark.parametrize("method", ["GET", "POST", "PUT", "DELETE"])
    def test_root_not_allowed(self, client, method):
        response = client.request(method, "/")
        assert response.status_code == 405

    def test_get_stats(self, client):
        response = client.post(
            "/getStats", json={"api_version": 1, "passback": "x1", "limit": 3}
        )
        assert response.status_code == 200
        body = response.json()
        assert body["is_error"] is False
        assert body["passback"] == "x1"
        assert body["count"] == 3
        assert [s["pos"] for s in body["stats"]] == [5, 5, 100]
        assert "p-value" in body["stats"][0]

    def test_count_only(self, client):
        response = client.post("/getStats", json={"api_version": 1, "count": True})
        assert response.status_code == 200
        assert response.json()["stats"] is None
        assert response.json()["count"] == 7

    def test_error_is_400(self, client):
        response = client.post("/getStats", json={"api_version": 2, "passback": "x2"})
        assert response.status_code == 400
        body = response.json()
        assert body["is_error"] is True
        assert body["passback"] == "x2"
        assert "Unsupported API version" in body["error_message"]

    def test_oversized_limit_is_400(self, client):
        response = client.post(
            "/getStats", json={"api_version": 1, "limit": 10**20, "passback": "x3"}
        )
        assert response.status_code == 400
        body = response.json()
        assert body["passback"] == "x3"
        assert body["error_message"].startswith("limit must be at most")

    def test_malformed_body(self, client):
        response = client.post(
            "/getStats",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400
        body = response.json()
        assert body["is_error"] is True
        assert body["passback"] is None

    def test_get_stats_requires_post(self, client):
        response = client.get("/getStats")
        assert response.status_code == 405

    def test_unexpected_failure_is_500(self, service, monkeypatch):
        def boom(_body):
            raise RuntimeError("engine crashed")

        monkeypatch.setattr(service, "get_stats", boom)
        client = TestClient(create_app(service), raise_server_exceptions=False)
        response = client.post("/getStats", json={"api_version": 1})
        assert response.status_code == 500
        assert response.json()["error_message"] == "Internal server error"
