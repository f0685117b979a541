"""
Booking endpoints: availability, creation and status changes.
"""

import time
from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.metrics import booking_latency
from marketplace.core.security import get_current_principal, get_principal
from marketplace.db.session import get_db
from marketplace.domain.roles import Principal
from marketplace.domain.stay import Stay
from marketplace.schemas.booking import (
    AvailabilityResponse,
    BookingCreate,
    BookingResponse,
    BookingStatusUpdate,
)
from marketplace.services import availability_service, booking_service

router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.post("/", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking_data: BookingCreate,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    """
    Book a room type for a date range. Guests may book without a token.

    The booking starts out `pending`. Returns 400 when the dates are invalid
    or the room type is full for any night of the stay.
    """
    started = time.perf_counter()
    try:
        return await booking_service.create_booking(db, booking_data, principal)
    finally:
        booking_latency.observe(time.perf_counter() - started)


@router.get("/check-availability/{room_type_id}", response_model=AvailabilityResponse)
async def check_availability(
    room_type_id: int,
    check_in_date: date = Query(..., alias="checkInDate"),
    check_out_date: date = Query(..., alias="checkOutDate"),
    db: AsyncSession = Depends(get_db),
):
    """Public, uncached: whether the room type has a room left for every night."""
    stay = Stay(check_in_date, check_out_date)
    available = await availability_service.is_available(db, room_type_id, stay.check_in, stay.check_out)
    return AvailabilityResponse(
        room_type_id=room_type_id,
        check_in_date=stay.check_in,
        check_out_date=stay.check_out,
        available=available,
    )


@router.get("/", response_model=list[BookingResponse])
async def list_my_bookings(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """Bookings made by the authenticated account, newest first."""
    return await booking_service.get_user_bookings(db, principal.account_id)


@router.get("/venue/{venue_id}", response_model=list[BookingResponse])
async def list_venue_bookings(
    venue_id: int,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """All bookings for one venue. Its host or an admin only."""
    return await booking_service.get_venue_bookings(db, venue_id, principal)


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: int,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    return await booking_service.get_booking_for(db, booking_id, principal)


@router.put("/{booking_id}/status", response_model=BookingResponse)
async def change_booking_status(
    booking_id: int,
    update: BookingStatusUpdate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """
    Confirm, reject, complete or cancel a booking.

    Confirm/reject/complete: the venue's host or an admin.
    Cancel: additionally the account that made the booking.
    Terminal bookings (cancelled, completed, rejected) cannot change again.
    """
    return await booking_service.change_status(
        db, booking_id, update.status, principal, reason=update.reason
    )
