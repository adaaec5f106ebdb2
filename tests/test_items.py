"""
Tests for item endpoints, including the default subject and CSV import.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from flashvote.models import Item, Subject


@pytest.mark.asyncio
async def test_create_item_adds_default_subject(client: AsyncClient, editor_headers, test_event, db_session):
    """Every new item gets exactly one default "Recommend" subject."""
    response = await client.post(
        f"/api/v1/events/{test_event.id}/items",
        json={"item_slug": "veggie-deluxe", "name": "Veggie Deluxe", "category": "vegetarian"},
        headers=editor_headers,
    )
    assert response.status_code == 201
    item = response.json()
    assert item["item_slug"] == "veggie-deluxe"
    assert item["event_id"] == test_event.id

    result = await db_session.execute(select(Subject).where(Subject.item_id == item["id"]))
    subjects = result.scalars().all()
    assert len(subjects) == 1
    assert subjects[0].is_default
    assert subjects[0].label == ""
    assert subjects[0].pos_label == "Recommend"
    assert subjects[0].neg_label == "Not Recommended"


@pytest.mark.asyncio
async def test_create_item_duplicate_slug(client: AsyncClient, editor_headers, test_event, test_item):
    response = await client.post(
        f"/api/v1/events/{test_event.id}/items",
        json={"item_slug": test_item.item_slug, "name": "Another"},
        headers=editor_headers,
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_create_item_requires_editor(client: AsyncClient, viewer_headers, test_event):
    response = await client.post(
        f"/api/v1/events/{test_event.id}/items",
        json={"item_slug": "nope", "name": "Nope"},
        headers=viewer_headers,
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_create_item_bad_slug(client: AsyncClient, editor_headers, test_event):
    response = await client.post(
        f"/api/v1/events/{test_event.id}/items",
        json={"item_slug": "Has Spaces", "name": "Bad"},
        headers=editor_headers,
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_list_items_as_viewer(client: AsyncClient, viewer_headers, test_event, test_item):
    response = await client.get(f"/api/v1/events/{test_event.id}/items", headers=viewer_headers)
    assert response.status_code == 200
    assert [i["id"] for i in response.json()] == [test_item.id]


@pytest.mark.asyncio
async def test_update_and_get_item(client: AsyncClient, editor_headers, test_item):
    response = await client.patch(
        f"/api/v1/items/{test_item.id}",
        json={"name": "Triple Smash", "image_url": "https://cdn.example.com/triple.png"},
        headers=editor_headers,
    )
    assert response.status_code == 200
    assert response.json()["name"] == "Triple Smash"

    response = await client.get(f"/api/v1/items/{test_item.id}", headers=editor_headers)
    assert response.status_code == 200
    assert response.json()["image_url"] == "https://cdn.example.com/triple.png"
    assert response.json()["item_slug"] == "double-smash"


@pytest.mark.asyncio
async def test_get_missing_item(client: AsyncClient, editor_headers):
    response = await client.get("/api/v1/items/missing", headers=editor_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_item_removes_its_subjects(client: AsyncClient, editor_headers, test_item, db_session):
    response = await client.delete(f"/api/v1/items/{test_item.id}", headers=editor_headers)
    assert response.status_code == 200

    result = await db_session.execute(select(Subject.id).where(Subject.item_id == test_item.id))
    assert result.scalars().all() == []


@pytest.mark.asyncio
async def test_bulk_import_items(client: AsyncClient, editor_headers, test_event, test_item, db_session):
    """Valid rows are created; bad and duplicate rows are reported individually."""
    csv_text = "\n".join([
        "item_slug,name,category",
        "classic,Classic Burger,beef",
        "Bad Slug,Broken,beef",
        "double-smash,Duplicate of existing,beef",
        'bbq-bacon,"BBQ, Bacon & Onion",beef',
        "classic,Duplicate within file,beef",
    ])
    response = await client.post(
        f"/api/v1/events/{test_event.id}/items/bulk",
        json={"csv": csv_text},
        headers=editor_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["successful"] == 2
    assert [f["row"] for f in data["failed"]] == [2, 3, 5]
    assert data["first_item_id"] is not None

    result = await db_session.execute(
        select(Item.name).where(Item.event_id == test_event.id).order_by(Item.name)
    )
    assert result.scalars().all() == ["BBQ, Bacon & Onion", "Classic Burger", "Double Smash"]

    # Imported items get their default subject too
    result = await db_session.execute(select(Subject).where(Subject.item_id == data["first_item_id"]))
    assert [s.is_default for s in result.scalars().all()] == [True]


@pytest.mark.asyncio
async def test_bulk_import_missing_header(client: AsyncClient, editor_headers, test_event, db_session):
    """A file without a required column is rejected before any row is created."""
    response = await client.post(
        f"/api/v1/events/{test_event.id}/items/bulk",
        json={"csv": "item_slug,category\nclassic,beef\n"},
        headers=editor_headers,
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Missing required fields: name"

    result = await db_session.execute(select(Item.id).where(Item.event_id == test_event.id))
    assert result.scalars().all() == []


@pytest.mark.asyncio
async def test_bulk_import_short_row(client: AsyncClient, editor_headers, test_event):
    response = await client.post(
        f"/api/v1/events/{test_event.id}/items/bulk",
        json={"csv": "item_slug,name\nclassic,Classic\nlonely\n"},
        headers=editor_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["successful"] == 1
    assert data["failed"] == [{"row": 2, "error": "Expected 2 values but got 1", "data": None}]
