"""
Health, readiness, metrics and websocket tests.
"""

import pytest
from fastapi.testclient import TestClient
from httpx import AsyncClient

from main import app


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_ready_checks_database(client: AsyncClient):
    resp = await client.get("/ready")
    assert resp.status_code == 200
    assert resp.json()["checks"] == {"database": "ok"}


@pytest.mark.asyncio
async def test_metrics_exposed(client: AsyncClient):
    resp = await client.get("/metrics")
    assert resp.status_code == 200
    assert "intranet_notifications_total" in resp.text


@pytest.mark.asyncio
async def test_unknown_route_uses_envelope(client: AsyncClient):
    resp = await client.get("/api/nope")
    assert resp.status_code == 404
    assert resp.json()["success"] is False


def test_websocket_accepts_connections():
    with TestClient(app) as tc:
        with tc.websocket_connect("/ws") as ws:
            ws.send_text("ping")
