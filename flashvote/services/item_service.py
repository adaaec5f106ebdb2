"""
Item service: CRUD for items, default-subject creation and CSV bulk import.

Every item gets exactly one default subject (empty label,
metadata.is_default = true) at creation time, both on the single-create path
and on the bulk path. Nothing creates a default subject afterwards.
"""

from typing import Optional

from fastapi import HTTPException, status
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from flashvote.core.logging import get_logger
from flashvote.models.event import Event
from flashvote.models.item import Item
from flashvote.models.subject import DEFAULT_NEG_LABEL, DEFAULT_POS_LABEL, Subject
from flashvote.schemas.common import ImportFailure
from flashvote.schemas.item import ItemCreate, ItemImportResult, ItemUpdate
from flashvote.services.event_service import persistence_error
from flashvote.utils.csv_import import CsvFormatError, parse_csv

logger = get_logger(__name__)

ITEM_CSV_REQUIRED = (("item_slug",), ("name",))


def _default_subject(event_id: str, item_id: str) -> Subject:
    return Subject(
        label="",
        pos_label=DEFAULT_POS_LABEL,
        neg_label=DEFAULT_NEG_LABEL,
        event_id=event_id,
        item_id=item_id,
        meta={"is_default": True},
    )


async def _slug_taken(db: AsyncSession, event_id: str, item_slug: str, exclude_id: Optional[str] = None) -> bool:
    query = select(Item.id).where(Item.event_id == event_id, Item.item_slug == item_slug)
    if exclude_id:
        query = query.where(Item.id != exclude_id)
    return (await db.execute(query)).scalar_one_or_none() is not None


async def _insert_item(db: AsyncSession, event_id: str, item_data: ItemCreate) -> Item:
    item = Item(
        event_id=event_id,
        item_slug=item_data.item_slug,
        name=item_data.name,
        item_id=item_data.item_id or None,
        category=item_data.category or None,
        image_url=item_data.image_url or None,
    )
    db.add(item)
    await db.flush()
    db.add(_default_subject(event_id, item.id))
    await db.flush()
    await db.refresh(item)
    return item


async def create_item(db: AsyncSession, event: Event, item_data: ItemCreate) -> Item:
    """Create an item and its default subject."""
    if await _slug_taken(db, event.id, item_data.item_slug):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="This item slug is already taken for this event. Please choose another one.",
        )

    try:
        item = await _insert_item(db, event.id, item_data)
    except SQLAlchemyError as e:
        raise persistence_error("create item", e)

    logger.info("item_created", item_id=item.id, event_id=event.id, slug=item.item_slug)
    return item


async def get_item(db: AsyncSession, item_id: str) -> Item:
    result = await db.execute(select(Item).where(Item.id == item_id))
    item = result.scalar_one_or_none()
    if not item:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Item not found",
        )
    return item


async def list_items(db: AsyncSession, event_id: str) -> list[Item]:
    result = await db.execute(
        select(Item).where(Item.event_id == event_id).order_by(Item.name.asc())
    )
    return list(result.scalars().all())


async def update_item(db: AsyncSession, item: Item, item_data: ItemUpdate) -> Item:
    changes = item_data.model_dump(exclude_unset=True)

    if changes.get("item_slug") and await _slug_taken(db, item.event_id, changes["item_slug"], exclude_id=item.id):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="This item slug is already taken for this event. Please choose another one.",
        )

    for field, value in changes.items():
        if field in ("item_slug", "name") and value is None:
            continue
        setattr(item, field, value)

    try:
        await db.flush()
        await db.refresh(item)
    except SQLAlchemyError as e:
        raise persistence_error("update item", e)

    logger.info("item_updated", item_id=item.id, fields=sorted(changes))
    return item


async def delete_item(db: AsyncSession, item: Item) -> None:
    try:
        await db.delete(item)
        await db.flush()
    except SQLAlchemyError as e:
        raise persistence_error("delete item", e)
    logger.info("item_deleted", item_id=item.id, event_id=item.event_id)


def _row_error(e: ValidationError) -> str:
    messages = []
    for error in e.errors():
        message = str(error["msg"]).removeprefix("Value error, ")
        loc = ".".join(str(part) for part in error["loc"])
        messages.append(f"{loc}: {message}" if loc else message)
    return "; ".join(messages)


async def bulk_create_items(db: AsyncSession, event: Event, csv_text: str) -> ItemImportResult:
    """
    Import items from CSV. Required headers: item_slug, name. Optional:
    item_id, category, image_url.

    A missing header rejects the whole file (400). Otherwise each row is
    created independently and failures are collected per row.
    """
    try:
        parsed = parse_csv(csv_text, required=ITEM_CSV_REQUIRED)
    except CsvFormatError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    result = await db.execute(select(Item.item_slug).where(Item.event_id == event.id))
    existing_slugs = set(result.scalars().all())

    failed = [ImportFailure(row=row, error=error) for row, error in parsed.errors]
    successful = 0
    first_item_id: Optional[str] = None

    for csv_row in parsed.rows:
        try:
            item_data = ItemCreate(
                item_slug=csv_row.data.get("item_slug", ""),
                name=csv_row.data.get("name", ""),
                item_id=csv_row.data.get("item_id") or None,
                category=csv_row.data.get("category") or None,
                image_url=csv_row.data.get("image_url") or None,
            )
        except ValidationError as e:
            failed.append(ImportFailure(row=csv_row.row, error=_row_error(e), data=csv_row.data))
            continue

        if item_data.item_slug in existing_slugs:
            failed.append(ImportFailure(
                row=csv_row.row,
                error=f'Item slug "{item_data.item_slug}" already exists for this event',
                data=csv_row.data,
            ))
            continue

        # Rows are validated up front; a store error here aborts the import
        try:
            item = await _insert_item(db, event.id, item_data)
        except SQLAlchemyError as e:
            raise persistence_error("import items", e)

        existing_slugs.add(item_data.item_slug)
        successful += 1
        if first_item_id is None:
            first_item_id = item.id

    failed.sort(key=lambda f: f.row)
    logger.info("items_imported", event_id=event.id, successful=successful, failed=len(failed))
    return ItemImportResult(successful=successful, failed=failed, first_item_id=first_item_id)
