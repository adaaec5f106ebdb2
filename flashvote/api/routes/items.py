"""
Item endpoints. Every item is created with its default
"Recommend / Not Recommended" subject.
"""

from fastapi import APIRouter, status

from flashvote.api.dependencies import CurrentUserDep, SessionDep
from flashvote.schemas.common import CsvImportRequest, MessageResponse
from flashvote.schemas.item import ItemCreate, ItemImportResult, ItemResponse, ItemUpdate
from flashvote.services import event_service, item_service
from flashvote.services.cache_service import commit_and_invalidate

router = APIRouter(tags=["Items"])


@router.post("/events/{event_id}/items", response_model=ItemResponse, status_code=status.HTTP_201_CREATED)
async def create_item_endpoint(event_id: str, item_data: ItemCreate, user_id: CurrentUserDep, db: SessionDep):
    event = await event_service.require_editor(db, event_id, user_id, "add items to this event")
    item = await item_service.create_item(db, event, item_data)
    await commit_and_invalidate(db, event.slug)
    return item


@router.get("/events/{event_id}/items", response_model=list[ItemResponse])
async def list_items_endpoint(event_id: str, user_id: CurrentUserDep, db: SessionDep):
    await event_service.require_member(db, event_id, user_id, "view items for this event")
    return await item_service.list_items(db, event_id)


@router.post("/events/{event_id}/items/bulk", response_model=ItemImportResult)
async def bulk_create_items_endpoint(
    event_id: str, payload: CsvImportRequest, user_id: CurrentUserDep, db: SessionDep
):
    """
    Import items from CSV text. The response lists per-row failures;
    a file missing a required header is rejected outright with 400.
    """
    event = await event_service.require_editor(db, event_id, user_id, "add items to this event")
    result = await item_service.bulk_create_items(db, event, payload.csv)
    if result.successful:
        await commit_and_invalidate(db, event.slug)
    return result


@router.get("/items/{item_id}", response_model=ItemResponse)
async def get_item_endpoint(item_id: str, user_id: CurrentUserDep, db: SessionDep):
    item = await item_service.get_item(db, item_id)
    await event_service.require_editor(db, item.event_id, user_id, "view this item")
    return item


@router.patch("/items/{item_id}", response_model=ItemResponse)
async def update_item_endpoint(item_id: str, item_data: ItemUpdate, user_id: CurrentUserDep, db: SessionDep):
    item = await item_service.get_item(db, item_id)
    event = await event_service.require_editor(db, item.event_id, user_id, "update this item")
    item = await item_service.update_item(db, item, item_data)
    await commit_and_invalidate(db, event.slug)
    return item


@router.delete("/items/{item_id}", response_model=MessageResponse)
async def delete_item_endpoint(item_id: str, user_id: CurrentUserDep, db: SessionDep):
    item = await item_service.get_item(db, item_id)
    event = await event_service.require_editor(db, item.event_id, user_id, "delete this item")
    await item_service.delete_item(db, item)
    await commit_and_invalidate(db, event.slug)
    return MessageResponse(message="Item deleted successfully")
