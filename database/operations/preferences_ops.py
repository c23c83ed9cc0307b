"""
Display Preferences and Saved Locations Operations

Preferences are one row per user, created on first save, with metric
defaults until then. Saved locations are a per-user list keyed by
coordinates.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, and_
from sqlalchemy.exc import IntegrityError
from typing import Any, Dict, List, Optional
import logging

from database.models import UserPreferences, SavedLocation
from database.operations.upsert import upsert_by_user
from utils.auth import CallerContext
from utils.errors import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

COORDINATE_PRECISION = 6


# ==================== Preferences ====================

async def get_preferences(session: AsyncSession, caller: CallerContext) -> Dict[str, Any]:
    """The caller's saved preferences, or the metric defaults."""
    result = await session.execute(
        select(UserPreferences)
        .where(UserPreferences.user_id == caller.user_id)
        .execution_options(populate_existing=True)
    )
    row = result.scalars().first()
    if row is None:
        return dict(UserPreferences.DEFAULTS)
    return row.to_dict()


def _clean_preference(name: str, value: Any) -> Any:
    if name == "preferred_location":
        if not isinstance(value, str):
            raise ValidationError("preferred_location must be a string", field=name)
        value = value.strip()
        if len(value) > 255:
            raise ValidationError("preferred_location is too long", field=name)
        # Empty string clears the location
        return value or None
    if name == "notifications_enabled":
        if not isinstance(value, bool):
            raise ValidationError("notifications_enabled must be a boolean", field=name)
        return value

    allowed = UserPreferences.CHOICES[name]
    if value not in allowed:
        raise ValidationError(f"Invalid {name}. Must be one of: {', '.join(allowed)}", field=name)
    return value


async def update_preferences(
    session: AsyncSession,
    caller: CallerContext,
    changes: Dict[str, Any],
) -> Dict[str, Any]:
    """
    Save a partial preferences update.

    Fields left out (or None) keep their current value.

    Raises:
        ValidationError: Unknown preference or a value outside its choices
    """
    unknown = set(changes) - set(UserPreferences.DEFAULTS)
    if unknown:
        raise ValidationError(f"Unknown preferences: {', '.join(sorted(unknown))}", field="preferences")

    merged = await get_preferences(session, caller)
    for name, value in changes.items():
        if value is not None:
            merged[name] = _clean_preference(name, value)

    await upsert_by_user(session, UserPreferences, caller.user_id, merged)
    await session.commit()

    logger.info(f"✅ Preferences saved for user {caller.user_id}")
    return await get_preferences(session, caller)


# ==================== Saved locations ====================

def _location_dict(location: SavedLocation) -> Dict[str, Any]:
    return {
        "id": location.id,
        "location_name": location.location_name,
        "latitude": location.latitude,
        "longitude": location.longitude,
        "is_favorite": bool(location.is_favorite),
        "created_at": location.created_at,
    }


def _coordinate(value: Any, field: str, bound: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{field} must be a number", field=field) from e
    if not -bound <= number <= bound:
        raise ValidationError(f"{field} must be between -{bound:g} and {bound:g}", field=field)
    return round(number, COORDINATE_PRECISION)


async def list_locations(session: AsyncSession, caller: CallerContext) -> List[Dict[str, Any]]:
    """The caller's saved locations, newest first."""
    result = await session.execute(
        select(SavedLocation)
        .where(SavedLocation.user_id == caller.user_id)
        .order_by(SavedLocation.created_at.desc(), SavedLocation.id.desc())
    )
    return [_location_dict(location) for location in result.scalars().all()]


async def add_location(
    session: AsyncSession,
    caller: CallerContext,
    location_name: str,
    latitude: Any,
    longitude: Any,
    is_favorite: bool = False,
) -> Dict[str, Any]:
    """
    Save a location for the caller.

    Coordinates are stored to six decimal places.

    Raises:
        ValidationError: Blank name or coordinates out of range
        ConflictError: The caller already saved these coordinates
    """
    name = (location_name or "").strip()
    if not name:
        raise ValidationError("Location name is required", field="location_name")
    if len(name) > 255:
        raise ValidationError("Location name is too long", field="location_name")
    lat = _coordinate(latitude, "latitude", 90)
    lon = _coordinate(longitude, "longitude", 180)

    existing = await session.execute(
        select(SavedLocation.id).where(and_(
            SavedLocation.user_id == caller.user_id,
            SavedLocation.latitude == lat,
            SavedLocation.longitude == lon,
        ))
    )
    if existing.first() is not None:
        raise ConflictError("Location already saved")

    location = SavedLocation(
        user_id=caller.user_id,
        location_name=name,
        latitude=lat,
        longitude=lon,
        is_favorite=bool(is_favorite),
    )
    session.add(location)
    try:
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        raise ConflictError("Location already saved") from e
    await session.refresh(location)

    logger.info(f"📍 Location saved for user {caller.user_id}: {name}")
    return _location_dict(location)


async def delete_location(session: AsyncSession, caller: CallerContext, location_id: int) -> None:
    """
    Remove one of the caller's saved locations.

    Raises:
        NotFoundError: No such location among the caller's
    """
    result = await session.execute(
        delete(SavedLocation).where(and_(
            SavedLocation.id == location_id,
            SavedLocation.user_id == caller.user_id,
        )).execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        await session.rollback()
        raise NotFoundError("Location not found", resource="location")
    await session.commit()
    logger.info(f"📍 Location {location_id} removed for user {caller.user_id}")


__all__ = [
    'get_preferences',
    'update_preferences',
    'list_locations',
    'add_location',
    'delete_location',
]
