"""
Availability checker for room types.

A room type is available for ``[check_in, check_out)`` when fewer than
``total_rooms`` active bookings (pending or confirmed) overlap that range.
Overlap is half-open: a stay ending on the 12th does not collide with one
starting on the 12th.

All functions here are read-only. The booking service calls them inside its
own transaction so the count it acts on is the count it commits against.
"""

from datetime import date
from typing import Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.errors import NotFoundError
from marketplace.core.logging import get_logger
from marketplace.domain.booking_state import ACTIVE_STATUSES, RoomStatus
from marketplace.models.booking import Booking
from marketplace.models.venue import Room, RoomType

logger = get_logger(__name__)

ACTIVE_STATUS_VALUES = sorted(s.value for s in ACTIVE_STATUSES)


def _overlapping(room_type_id: int, check_in: date, check_out: date, exclude_booking_id: Optional[int]):
    conditions = [
        Booking.room_type_id == room_type_id,
        Booking.status.in_(ACTIVE_STATUS_VALUES),
        Booking.check_in_date < check_out,
        Booking.check_out_date > check_in,
    ]
    if exclude_booking_id is not None:
        conditions.append(Booking.id != exclude_booking_id)
    return conditions


async def get_room_type(db: AsyncSession, room_type_id: int) -> RoomType:
    result = await db.execute(
        select(RoomType)
        .where(RoomType.id == room_type_id)
        .execution_options(populate_existing=True)
    )
    room_type = result.scalar_one_or_none()
    if not room_type:
        raise NotFoundError("Room type", room_type_id)
    return room_type


async def count_overlapping_bookings(
    db: AsyncSession,
    room_type_id: int,
    check_in: date,
    check_out: date,
    exclude_booking_id: Optional[int] = None,
) -> int:
    result = await db.execute(
        select(func.count(Booking.id)).where(
            *_overlapping(room_type_id, check_in, check_out, exclude_booking_id)
        )
    )
    return result.scalar_one()


async def is_available(
    db: AsyncSession,
    room_type_id: int,
    check_in: date,
    check_out: date,
    exclude_booking_id: Optional[int] = None,
) -> bool:
    """Return True while capacity remains for the room type over the range.

    Raises NotFoundError if the room type does not exist.
    """
    room_type = await get_room_type(db, room_type_id)
    booked = await count_overlapping_bookings(
        db, room_type_id, check_in, check_out, exclude_booking_id
    )
    available = booked < room_type.total_rooms

    logger.debug(
        "availability_checked",
        room_type_id=room_type_id,
        check_in=check_in.isoformat(),
        check_out=check_out.isoformat(),
        booked=booked,
        total_rooms=room_type.total_rooms,
        available=available,
    )
    return available


async def count_rooms(db: AsyncSession, room_type_id: int, status: Optional[RoomStatus] = None) -> int:
    query = select(func.count(Room.id)).where(Room.room_type_id == room_type_id)
    if status is not None:
        query = query.where(Room.status == status.value)
    return (await db.execute(query)).scalar_one()


async def find_free_room(
    db: AsyncSession,
    room_type_id: int,
    check_in: date,
    check_out: date,
    exclude_booking_id: Optional[int] = None,
) -> Optional[Room]:
    """First room (by room number) that is in service and not held by an
    overlapping active booking."""
    held = select(Booking.room_id).where(
        *_overlapping(room_type_id, check_in, check_out, exclude_booking_id),
        Booking.room_id.is_not(None),
    )
    result = await db.execute(
        select(Room)
        .where(
            Room.room_type_id == room_type_id,
            Room.status == RoomStatus.AVAILABLE.value,
            Room.id.not_in(held),
        )
        .order_by(Room.room_number)
        .limit(1)
    )
    return result.scalar_one_or_none()
