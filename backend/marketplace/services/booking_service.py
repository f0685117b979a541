"""
Booking lifecycle: create, confirm, cancel, reject and complete room bookings.

CONCURRENCY STRATEGY: Optimistic Locking on the Room Type
=========================================================

Problem:
  Availability is derived: count active bookings overlapping the requested
  range and compare with RoomType.total_rooms. Check-then-insert spans two
  statements, so two requests for the last room can both see count < total
  and both insert. Result: overbooking.

Solution:
  Every write that changes the active booking set of a room type bumps
  RoomType.version, conditionally on the version it read:

  1. Read the room type (and its version)
  2. Count overlapping active bookings, pick a free room
  3. UPDATE room_types SET version = version + 1
     WHERE id = :room_type_id AND version = :read_version
  4. If rows_affected == 0, another booking write got in first -> retry
     from step 1, which re-runs the availability check against the
     committed state
  5. INSERT the booking and COMMIT in the same transaction

  A concurrent writer blocks on the row lock taken by step 3 and then sees a
  new version, so exactly one of two racing requests proceeds per round.
  Cancellations bump the version too, so a creator never commits against a
  count that a release has already invalidated.

  The booking_reference unique index is the final guard for references;
  a collision rolls back and retries with a fresh reference. Running out of
  attempts either way is a ContentionError (409).
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.config import get_settings
from marketplace.core.errors import (
    AuthorizationError,
    AvailabilityError,
    ContentionError,
    InvalidTransitionError,
    InventoryInconsistencyError,
    NotFoundError,
    ValidationError,
)
from marketplace.core.logging import get_logger
from marketplace.core.metrics import record_booking_attempt, record_retry, record_transition
from marketplace.domain.booking_state import (
    BookingStatus,
    PaymentStatus,
    assert_transition,
    can_change_status,
    releases_capacity,
)
from marketplace.domain.roles import AccountRole, Principal
from marketplace.domain.stay import Stay
from marketplace.models.booking import Booking
from marketplace.models.venue import Room, RoomType, Venue
from marketplace.schemas.booking import BookingCreate
from marketplace.services import availability_service
from marketplace.services.identifiers import generate_booking_reference
from marketplace.services.notifier_factory import get_notifier
from marketplace.services.pricing import quote_stay, settle_total

logger = get_logger(__name__)
settings = get_settings()


async def _get_venue(db: AsyncSession, venue_id: int) -> Venue:
    result = await db.execute(
        select(Venue).where(Venue.id == venue_id).execution_options(populate_existing=True)
    )
    venue = result.scalar_one_or_none()
    if not venue:
        raise NotFoundError("Venue", venue_id)
    return venue


async def _claim_room_type(db: AsyncSession, room_type_id: int, read_version: int) -> bool:
    """Bump the room type version only if nobody else has since we read it."""
    result = await db.execute(
        update(RoomType)
        .where(RoomType.id == room_type_id, RoomType.version == read_version)
        .values(version=RoomType.version + 1)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def _release_room_type(db: AsyncSession, room_type_id: int) -> None:
    await db.execute(
        update(RoomType)
        .where(RoomType.id == room_type_id)
        .values(version=RoomType.version + 1)
        .execution_options(synchronize_session=False)
    )


async def _assign_room(db: AsyncSession, room_type_id: int, stay: Stay) -> Optional[Room]:
    """Pick a physical room for the stay.

    Room types without any Room rows are booked by count only and get a room
    assigned later by the host.
    """
    if not settings.ASSIGN_ROOMS_ON_CREATE:
        return None
    if await availability_service.count_rooms(db, room_type_id) == 0:
        return None

    room = await availability_service.find_free_room(db, room_type_id, stay.check_in, stay.check_out)
    if room is None:
        logger.error(
            "inventory_inconsistency",
            room_type_id=room_type_id,
            check_in=stay.check_in.isoformat(),
            check_out=stay.check_out.isoformat(),
        )
        raise InventoryInconsistencyError(
            "Room type has capacity for these dates but no room is free to assign"
        )
    return room


async def create_booking(
    db: AsyncSession,
    booking_data: BookingCreate,
    principal: Principal,
) -> Booking:
    """
    Create a pending booking after checking availability.
    Retries up to MAX_RETRY_ATTEMPTS on version conflicts or reference collisions.
    """
    try:
        stay = Stay(booking_data.check_in_date, booking_data.check_out_date)
    except ValidationError:
        record_booking_attempt("invalid")
        raise

    user_id = None if principal.is_guest else principal.account_id

    for attempt in range(1, settings.MAX_RETRY_ATTEMPTS + 1):
        try:
            venue = await _get_venue(db, booking_data.venue)
            if not venue.accepts_bookings:
                raise ValidationError("Venue is not accepting bookings")

            room_type = await availability_service.get_room_type(db, booking_data.room_type)
            if room_type.venue_id != venue.id:
                raise NotFoundError("Room type for this venue", booking_data.room_type)

            if booking_data.guests > room_type.capacity:
                raise ValidationError(
                    f"This room type can only accommodate {room_type.capacity} guests"
                )

            total_price = settle_total(
                quote_stay(room_type.price_per_night, stay),
                booking_data.total_price,
                "totalPrice",
            )
            read_version = room_type.version

            if not await availability_service.is_available(db, room_type.id, stay.check_in, stay.check_out):
                logger.warning(
                    "booking_failed_unavailable",
                    room_type_id=room_type.id,
                    check_in=stay.check_in.isoformat(),
                    check_out=stay.check_out.isoformat(),
                    total_rooms=room_type.total_rooms,
                )
                record_booking_attempt("unavailable")
                raise AvailabilityError(
                    "This room is not available for the selected dates. "
                    "Please choose different dates or another room."
                )

            room = await _assign_room(db, room_type.id, stay)
        except InventoryInconsistencyError:
            record_booking_attempt("inconsistent")
            raise
        except (ValidationError, NotFoundError):
            record_booking_attempt("invalid")
            raise

        if not await _claim_room_type(db, room_type.id, read_version):
            logger.info(
                "booking_retry",
                room_type_id=room_type.id,
                attempt=attempt,
                reason="version_conflict",
            )
            record_retry("booking")
            await db.rollback()
            continue

        payment = booking_data.payment
        contact = booking_data.contact_info
        booking = Booking(
            booking_reference=generate_booking_reference(settings.BOOKING_REFERENCE_PREFIX),
            venue_id=venue.id,
            room_type_id=room_type.id,
            room_id=room.id if room else None,
            user_id=user_id,
            check_in_date=stay.check_in,
            check_out_date=stay.check_out,
            guests=booking_data.guests,
            status=BookingStatus.PENDING.value,
            total_price=total_price,
            contact_first_name=contact.first_name,
            contact_last_name=contact.last_name,
            contact_email=contact.email,
            contact_phone=contact.phone,
            special_requests=booking_data.special_requests,
            payment_method=payment.method if payment else None,
            payment_status=(payment.status if payment else PaymentStatus.PENDING).value,
        )
        db.add(booking)

        try:
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            logger.warning("booking_retry", attempt=attempt, reason="integrity_error", error=str(e.orig))
            record_retry("booking")
            continue

        await db.refresh(booking)
        record_booking_attempt("success")
        logger.info(
            "booking_created",
            booking_id=booking.id,
            booking_reference=booking.booking_reference,
            room_type_id=booking.room_type_id,
            room_id=booking.room_id,
            user_id=user_id,
            attempt=attempt,
        )
        await get_notifier().notify("booking_created", {
            "booking_id": booking.id,
            "booking_reference": booking.booking_reference,
            "venue_id": booking.venue_id,
            "host_id": venue.host_id,
            "check_in_date": booking.check_in_date.isoformat(),
            "check_out_date": booking.check_out_date.isoformat(),
            "contact_email": booking.contact_email,
        })
        return booking

    logger.warning(
        "booking_failed_contention",
        room_type_id=booking_data.room_type,
        attempts=settings.MAX_RETRY_ATTEMPTS,
    )
    record_booking_attempt("conflict")
    raise ContentionError("Booking failed due to high demand. Please try again.")


async def _get_booking(db: AsyncSession, booking_id: int) -> Booking:
    result = await db.execute(
        select(Booking).where(Booking.id == booking_id).execution_options(populate_existing=True)
    )
    booking = result.scalar_one_or_none()
    if not booking:
        raise NotFoundError("Booking", booking_id)
    return booking


async def change_status(
    db: AsyncSession,
    booking_id: int,
    target: BookingStatus,
    principal: Principal,
    reason: Optional[str] = None,
) -> Booking:
    """
    Move a booking along its state machine.

    The write is a compare-and-set on the status the caller's decision was
    based on; a concurrent change makes this one fail as an invalid transition
    instead of silently overwriting it.
    """
    booking = await _get_booking(db, booking_id)
    venue = await _get_venue(db, booking.venue_id)
    current = BookingStatus(booking.status)

    if not can_change_status(principal, target, booking.user_id, venue.host_id):
        logger.warning(
            "booking_status_forbidden",
            booking_id=booking_id,
            role=principal.role.value,
            target=target.value,
        )
        raise AuthorizationError(f"Not authorized to set booking status to {target.value}")

    assert_transition(current, target)

    if target == BookingStatus.REJECTED and not reason:
        raise ValidationError("Rejection reason is required")

    values = {"status": target.value}
    if target == BookingStatus.CANCELLED:
        values["cancelled_at"] = datetime.now(timezone.utc)
        values["cancellation_reason"] = reason or "No reason provided"
    elif target == BookingStatus.REJECTED:
        values["rejection_reason"] = reason
    if target in (BookingStatus.CANCELLED, BookingStatus.REJECTED) \
            and booking.payment_status == PaymentStatus.PAID.value:
        values["payment_status"] = PaymentStatus.REFUND_PENDING.value

    result = await db.execute(
        update(Booking)
        .where(Booking.id == booking_id, Booking.status == current.value)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        await db.rollback()
        raise InvalidTransitionError(current.value, target.value)

    released = releases_capacity(current, target)
    if released:
        await _release_room_type(db, booking.room_type_id)

    await db.commit()
    await db.refresh(booking)

    record_transition(current.value, target.value)
    logger.info(
        "booking_status_changed",
        booking_id=booking.id,
        from_status=current.value,
        to_status=target.value,
        actor_role=principal.role.value,
        capacity_released=released,
    )
    await get_notifier().notify("booking_status_changed", {
        "booking_id": booking.id,
        "booking_reference": booking.booking_reference,
        "from_status": current.value,
        "to_status": target.value,
        "reason": reason,
        "contact_email": booking.contact_email,
    })
    return booking


async def get_booking_for(db: AsyncSession, booking_id: int, principal: Principal) -> Booking:
    """A booking is visible to its owner, the venue's host and admins."""
    booking = await _get_booking(db, booking_id)
    if principal.is_admin or principal.owns(booking.user_id):
        return booking

    venue = await _get_venue(db, booking.venue_id)
    if principal.role == AccountRole.HOST and principal.owns(venue.host_id):
        return booking
    raise AuthorizationError("Not authorized to view this booking")


async def get_user_bookings(db: AsyncSession, user_id: int) -> list[Booking]:
    result = await db.execute(
        select(Booking)
        .where(Booking.user_id == user_id)
        .order_by(Booking.created_at.desc(), Booking.id.desc())
    )
    return list(result.scalars().all())


async def get_venue_bookings(db: AsyncSession, venue_id: int, principal: Principal) -> list[Booking]:
    """All bookings of a venue, by check-in date. Venue host or admin only."""
    venue = await _get_venue(db, venue_id)
    if not (principal.is_admin or (principal.role == AccountRole.HOST and principal.owns(venue.host_id))):
        raise AuthorizationError("Not authorized to view bookings for this venue")

    result = await db.execute(
        select(Booking)
        .where(Booking.venue_id == venue_id)
        .order_by(Booking.check_in_date.asc(), Booking.id.asc())
    )
    return list(result.scalars().all())
