"""Tests for health check endpoints."""

import pytest


@pytest.mark.asyncio
async def test_health_check(client):
    """Test basic health check."""
    response = await client.get("/health")
    assert response.status_code == 200

    data = response.json()
    assert data["status"] == "healthy"
    assert data["environment"] == "development"
    assert "timestamp" in data


@pytest.mark.asyncio
async def test_readiness_check(client):
    """Test readiness probe reports storage and token store."""
    response = await client.get("/health/ready")
    assert response.status_code == 200

    data = response.json()
    assert data["status"] == "ready"
    assert data["checks"] == {"storage": True, "kv_store": True}


@pytest.mark.asyncio
async def test_readiness_check_degraded(client, storage, monkeypatch):
    """Test readiness probe when storage is down."""

    async def unhealthy() -> bool:
        return False

    monkeypatch.setattr(storage, "health_check", unhealthy)

    response = await client.get("/health/ready")
    data = response.json()
    assert data["status"] == "degraded"
    assert data["checks"]["storage"] is False


@pytest.mark.asyncio
async def test_liveness_check(client):
    """Test liveness probe."""
    response = await client.get("/health/live")
    assert response.status_code == 200

    data = response.json()
    assert data["status"] == "alive"


@pytest.mark.asyncio
async def test_root_endpoint(client):
    """Test root endpoint."""
    response = await client.get("/")
    assert response.status_code == 200

    data = response.json()
    assert data["service"] == "SupportDesk API"
    assert data["status"] == "running"
