"""
Tests for health, metrics and the error envelope.
"""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["cache"] == {"status": "disabled"}


@pytest.mark.asyncio
async def test_metrics_exposes_vote_counters(client: AsyncClient, test_subject):
    await client.post("/api/v1/votes", json={"subject_id": test_subject.id, "choice": True})

    response = await client.get("/metrics")
    assert response.status_code == 200
    assert 'votes_cast_total{result="created"}' in response.text


@pytest.mark.asyncio
async def test_request_id_header(client: AsyncClient):
    response = await client.get("/health", headers={"X-Request-ID": "abc123"})
    assert response.headers["X-Request-ID"] == "abc123"

    generated = await client.get("/health")
    assert len(generated.headers["X-Request-ID"]) == 12


@pytest.mark.asyncio
async def test_request_latency_labelled_by_route_template(client: AsyncClient, test_event, auth_headers):
    await client.get(f"/api/v1/events/{test_event.id}", headers=auth_headers)

    response = await client.get("/metrics")
    assert 'route="/api/v1/events/{event_id}"' in response.text
    assert test_event.id not in response.text


@pytest.mark.asyncio
async def test_unknown_route_uses_message_envelope(client: AsyncClient):
    response = await client.get("/api/v1/nowhere")
    assert response.status_code == 404
    assert response.json() == {"message": "Not Found"}
