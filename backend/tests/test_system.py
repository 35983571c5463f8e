import httpx
import pytest


@pytest.mark.asyncio
async def test_health_ok(client: httpx.AsyncClient):
    r = await client.get("/health")
    assert r.status_code == 200
    data = r.json()
    assert data["status"] == "ok"
    assert "request_id" in data
    assert r.headers["X-Request-ID"] == data["request_id"]


@pytest.mark.asyncio
async def test_request_id_is_echoed(client: httpx.AsyncClient):
    r = await client.get("/health", headers={"X-Request-ID": "req-123"})
    assert r.headers["X-Request-ID"] == "req-123"
    assert r.json()["request_id"] == "req-123"


@pytest.mark.asyncio
async def test_ready_checks_database(client: httpx.AsyncClient):
    r = await client.get("/health/ready")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "db": "ok"}


@pytest.mark.asyncio
async def test_version_ok(client: httpx.AsyncClient):
    r = await client.get("/version")
    assert r.status_code == 200
    data = r.json()
    assert "version" in data and "git_sha" in data
    assert data["confirmation_ttl_minutes"] == 60
