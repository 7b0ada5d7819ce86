"""Health check and basic app tests."""
import pytest

pytestmark = pytest.mark.anyio


async def test_health_check(client):
    response = await client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"


async def test_openapi_schema(client):
    response = await client.get("/openapi.json")
    assert response.status_code == 200
    schema = response.json()
    assert schema["info"]["title"] == "Moderation Queue API"
    assert schema["info"]["version"] == "0.1.0"
    assert "/api/v1/moderation/{entry_id}/approve" in schema["paths"]


async def test_request_id_header(client):
    response = await client.get("/health", headers={"x-request-id": "abc123"})
    assert response.headers["x-request-id"] == "abc123"


async def test_metrics_endpoint(client):
    await client.get("/health")
    response = await client.get("/metrics")
    assert response.status_code == 200
    assert "http_requests_total" in response.text
    assert "moderation_actions_total" in response.text
