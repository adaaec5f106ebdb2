"""
Tests for location endpoints: search, CRUD and CSV import.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from flashvote.models import Location, Vote


@pytest.mark.asyncio
async def test_search_by_zip_prefix(client: AsyncClient, test_event, db_session):
    """Prefix match on the postal code, ordered by name, no auth required."""
    db_session.add_all([
        Location(event_id=test_event.id, name="Zed's Diner", zip_code="62704"),
        Location(event_id=test_event.id, name="Alpha Burgers", zip_code="62701"),
        Location(event_id=test_event.id, name="Far Away", zip_code="90210"),
    ])
    await db_session.commit()

    response = await client.get("/api/v1/locations/search", params={"zip_code": "627"})
    assert response.status_code == 200
    assert [loc["name"] for loc in response.json()["locations"]] == ["Alpha Burgers", "Zed's Diner"]


@pytest.mark.asyncio
async def test_search_wildcards_are_literal(client: AsyncClient, test_location):
    response = await client.get("/api/v1/locations/search", params={"zip_code": "%"})
    assert response.status_code == 200
    assert response.json()["locations"] == []


@pytest.mark.asyncio
async def test_search_scoped_to_event(client: AsyncClient, test_location, other_event, db_session):
    db_session.add(Location(event_id=other_event.id, name="Other Grill", zip_code="62701"))
    await db_session.commit()

    response = await client.get(
        "/api/v1/locations/search",
        params={"zip_code": "62701", "event_id": test_location.event_id},
    )
    assert [loc["id"] for loc in response.json()["locations"]] == [test_location.id]


@pytest.mark.asyncio
async def test_search_requires_zip(client: AsyncClient):
    response = await client.get("/api/v1/locations/search")
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_get_location(client: AsyncClient, test_location):
    response = await client.get(f"/api/v1/locations/{test_location.id}")
    assert response.status_code == 200
    assert response.json()["name"] == "Downtown Grill"

    response = await client.get("/api/v1/locations/missing")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_create_and_list_locations(client: AsyncClient, editor_headers, viewer_headers, test_event):
    response = await client.post(
        f"/api/v1/events/{test_event.id}/locations",
        json={"name": "Harbor Shack", "city": "Springfield", "zip_code": "62702", "lat": 39.8, "lon": -89.6},
        headers=editor_headers,
    )
    assert response.status_code == 201
    assert response.json()["lat"] == 39.8

    response = await client.get(f"/api/v1/events/{test_event.id}/locations", headers=viewer_headers)
    assert response.status_code == 200
    assert [loc["name"] for loc in response.json()] == ["Harbor Shack"]


@pytest.mark.asyncio
async def test_create_location_out_of_range(client: AsyncClient, editor_headers, test_event):
    response = await client.post(
        f"/api/v1/events/{test_event.id}/locations",
        json={"name": "Nowhere", "lat": 123.0},
        headers=editor_headers,
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_update_location(client: AsyncClient, editor_headers, viewer_headers, test_location):
    response = await client.patch(
        f"/api/v1/locations/{test_location.id}",
        json={"address": "2 Main St"},
        headers=viewer_headers,
    )
    assert response.status_code == 403

    response = await client.patch(
        f"/api/v1/locations/{test_location.id}",
        json={"address": "2 Main St"},
        headers=editor_headers,
    )
    assert response.status_code == 200
    assert response.json()["address"] == "2 Main St"
    assert response.json()["name"] == "Downtown Grill"


@pytest.mark.asyncio
async def test_delete_location_with_votes_refused(
    client: AsyncClient, editor_headers, test_location, test_subject, db_session
):
    db_session.add(Vote(subject_id=test_subject.id, location_id=test_location.id, user_ip="10.0.0.1", choice=True))
    await db_session.commit()

    response = await client.delete(f"/api/v1/locations/{test_location.id}", headers=editor_headers)
    assert response.status_code == 409
    assert response.json()["message"] == "Cannot delete location with existing votes"


@pytest.mark.asyncio
async def test_delete_location(client: AsyncClient, editor_headers, test_location):
    response = await client.delete(f"/api/v1/locations/{test_location.id}", headers=editor_headers)
    assert response.status_code == 200

    response = await client.get(f"/api/v1/locations/{test_location.id}")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_bulk_import_locations(client: AsyncClient, editor_headers, test_event, test_location, db_session):
    """locationName and zip are accepted as column aliases; duplicates are rejected."""
    csv_text = "\n".join([
        "locationName,address,city,zip,lat,lon",
        '"Uptown Grill","5 Oak Ave","Springfield","62703","39.80","-89.65"',
        "downtown grill,1 Main St,Springfield,62701,,",
        "Bad Coordinates,9 Elm St,Springfield,62705,north,west",
        "Uptown Grill,5 Oak Ave,Springfield,62703,,",
        "Riverside,,Springfield,62706,,",
    ])
    response = await client.post(
        f"/api/v1/events/{test_event.id}/locations/bulk",
        json={"csv": csv_text},
        headers=editor_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["successful"] == 2
    assert sorted({f["row"] for f in data["failed"]}) == [2, 3, 4]
    assert any("Duplicate location" in f["error"] for f in data["failed"] if f["row"] == 2)

    result = await db_session.execute(
        select(Location.name).where(Location.event_id == test_event.id).order_by(Location.name)
    )
    assert result.scalars().all() == ["Downtown Grill", "Riverside", "Uptown Grill"]

    uptown = (await db_session.execute(select(Location).where(Location.name == "Uptown Grill"))).scalar_one()
    assert uptown.lat == pytest.approx(39.80)
    assert uptown.zip_code == "62703"


@pytest.mark.asyncio
async def test_bulk_import_locations_missing_name(client: AsyncClient, editor_headers, test_event):
    response = await client.post(
        f"/api/v1/events/{test_event.id}/locations/bulk",
        json={"csv": "address,city\n1 Main St,Springfield\n"},
        headers=editor_headers,
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Missing required fields: name"
