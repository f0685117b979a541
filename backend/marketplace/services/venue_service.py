"""
Venue detail for the public catalogue: the venue, its room types and how many
rooms of each type are physically in service.

"In service" is Room.status == available. It says nothing about bookings;
use the availability check for a date range.
"""

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.errors import NotFoundError
from marketplace.domain.booking_state import RoomStatus
from marketplace.models.venue import Room, RoomType, Venue


async def get_venue_detail(db: AsyncSession, venue_id: int) -> dict:
    venue = await db.get(Venue, venue_id)
    if venue is None or not venue.is_active:
        raise NotFoundError("Venue", venue_id)

    in_service = (
        select(Room.room_type_id, func.count(Room.id).label("rooms"))
        .where(Room.status == RoomStatus.AVAILABLE.value)
        .group_by(Room.room_type_id)
        .subquery()
    )
    result = await db.execute(
        select(RoomType, func.coalesce(in_service.c.rooms, 0))
        .outerjoin(in_service, in_service.c.room_type_id == RoomType.id)
        .where(RoomType.venue_id == venue_id)
        .order_by(RoomType.id)
    )

    room_types = [
        {
            "id": room_type.id,
            "name": room_type.name,
            "capacity": room_type.capacity,
            "total_rooms": room_type.total_rooms,
            "price_per_night": room_type.price_per_night,
            "currency": room_type.currency,
            "rooms_in_service": rooms,
        }
        for room_type, rooms in result.all()
    ]

    return {
        "id": venue.id,
        "name": venue.name,
        "venue_type": venue.venue_type,
        "location": venue.location,
        "capacity_min": venue.capacity_min,
        "capacity_max": venue.capacity_max,
        "approval_status": venue.approval_status,
        "is_active": venue.is_active,
        "room_types": room_types,
    }
