"""
Location service: CRUD, postal-code prefix search and CSV bulk import.
"""

from typing import Optional

from fastapi import HTTPException, status
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from flashvote.core.logging import get_logger
from flashvote.models.event import Event
from flashvote.models.location import Location
from flashvote.models.vote import Vote
from flashvote.schemas.common import ImportFailure, ImportResult
from flashvote.schemas.location import LocationCreate, LocationUpdate
from flashvote.services.event_service import persistence_error
from flashvote.utils.csv_import import CsvFormatError, first_value, parse_csv

logger = get_logger(__name__)

LOCATION_CSV_REQUIRED = (("name", "locationName"),)


async def create_location(db: AsyncSession, event: Event, location_data: LocationCreate) -> Location:
    location = Location(event_id=event.id, **location_data.model_dump())
    db.add(location)
    try:
        await db.flush()
        await db.refresh(location)
    except SQLAlchemyError as e:
        raise persistence_error("create location", e)

    logger.info("location_created", location_id=location.id, event_id=event.id)
    return location


async def get_location(db: AsyncSession, location_id: str) -> Location:
    result = await db.execute(select(Location).where(Location.id == location_id))
    location = result.scalar_one_or_none()
    if not location:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Location not found",
        )
    return location


async def list_locations(db: AsyncSession, event_id: str) -> list[Location]:
    result = await db.execute(
        select(Location).where(Location.event_id == event_id).order_by(Location.name.asc())
    )
    return list(result.scalars().all())


async def search_locations(db: AsyncSession, zip_code: str, event_id: Optional[str] = None) -> list[Location]:
    """Locations whose postal code starts with zip_code, ordered by name."""
    # Escape LIKE wildcards so user input only ever matches as a prefix
    pattern = zip_code.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_") + "%"
    query = select(Location).where(Location.zip_code.ilike(pattern, escape="\\"))
    if event_id:
        query = query.where(Location.event_id == event_id)
    result = await db.execute(query.order_by(Location.name.asc()))
    return list(result.scalars().all())


async def update_location(db: AsyncSession, location: Location, location_data: LocationUpdate) -> Location:
    changes = location_data.model_dump(exclude_unset=True)
    for field, value in changes.items():
        if field == "name" and value is None:
            continue
        setattr(location, field, value)

    try:
        await db.flush()
        await db.refresh(location)
    except SQLAlchemyError as e:
        raise persistence_error("update location", e)

    logger.info("location_updated", location_id=location.id, fields=sorted(changes))
    return location


async def delete_location(db: AsyncSession, location: Location) -> None:
    """Delete a location. Locations that already carry votes are kept (409)."""
    has_votes = await db.execute(select(Vote.id).where(Vote.location_id == location.id).limit(1))
    if has_votes.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Cannot delete location with existing votes",
        )

    try:
        await db.delete(location)
        await db.flush()
    except SQLAlchemyError as e:
        raise persistence_error("delete location", e)
    logger.info("location_deleted", location_id=location.id, event_id=location.event_id)


def _fingerprint(name: str, address: Optional[str], city: Optional[str], zip_code: Optional[str]) -> tuple:
    return (name.lower(), address, city, zip_code)


async def bulk_create_locations(db: AsyncSession, event: Event, csv_text: str) -> ImportResult:
    """
    Import locations from CSV. Required header: name (or locationName).
    Optional: address, city, zip (or zip_code), lat, lon.

    Duplicates (same case-insensitive name, address, city and zip) of an
    existing location or of an earlier row in the same file are rejected.
    """
    try:
        parsed = parse_csv(csv_text, required=LOCATION_CSV_REQUIRED)
    except CsvFormatError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    existing = await db.execute(
        select(Location.name, Location.address, Location.city, Location.zip_code)
        .where(Location.event_id == event.id)
    )
    seen = {_fingerprint(*row) for row in existing.all()}

    failed = [ImportFailure(row=row, error=error) for row, error in parsed.errors]
    successful = 0

    for csv_row in parsed.rows:
        data = csv_row.data
        label = first_value(data, "locationName", "name") or "Unnamed location"
        try:
            location_data = LocationCreate(
                name=first_value(data, "locationName", "name"),
                address=data.get("address") or None,
                city=data.get("city") or None,
                zip_code=first_value(data, "zip", "zip_code") or None,
                lat=data.get("lat") or None,
                lon=data.get("lon") or None,
            )
        except ValidationError as e:
            for error in e.errors():
                field = ".".join(str(part) for part in error["loc"])
                failed.append(ImportFailure(
                    row=csv_row.row,
                    error=f"{field}: {error['msg']} ({label})",
                    data=data,
                ))
            continue

        key = _fingerprint(location_data.name, location_data.address, location_data.city, location_data.zip_code)
        if key in seen:
            failed.append(ImportFailure(
                row=csv_row.row,
                error=f'Duplicate location found with name "{location_data.name}"',
                data=data,
            ))
            continue

        db.add(Location(event_id=event.id, **location_data.model_dump()))
        seen.add(key)
        successful += 1

    try:
        await db.flush()
    except SQLAlchemyError as e:
        raise persistence_error("import locations", e)

    failed.sort(key=lambda f: f.row)
    logger.info("locations_imported", event_id=event.id, successful=successful, failed=len(failed))
    return ImportResult(successful=successful, failed=failed)
