"""
Booking state machine.

Every status change goes through ``assert_transition`` and
``can_change_status``; route handlers never compare status strings.
"""

from enum import Enum
from typing import Optional

from marketplace.core.errors import InvalidTransitionError
from marketplace.domain.roles import AccountRole, Principal


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    REJECTED = "rejected"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"
    REFUND_PENDING = "refund_pending"


class RoomStatus(str, Enum):
    AVAILABLE = "available"
    OCCUPIED = "occupied"
    MAINTENANCE = "maintenance"
    RESERVED = "reserved"


# Bookings in these states hold capacity for their date range
ACTIVE_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED})

TERMINAL_STATUSES = frozenset(
    {BookingStatus.CANCELLED, BookingStatus.COMPLETED, BookingStatus.REJECTED}
)

BOOKING_TRANSITIONS = {
    BookingStatus.PENDING: {BookingStatus.CONFIRMED, BookingStatus.CANCELLED, BookingStatus.REJECTED},
    BookingStatus.CONFIRMED: {BookingStatus.COMPLETED, BookingStatus.CANCELLED},
    BookingStatus.CANCELLED: set(),
    BookingStatus.COMPLETED: set(),
    BookingStatus.REJECTED: set(),
}

# Targets only the venue's host (or an admin) may set
HOST_ONLY_TARGETS = frozenset(
    {BookingStatus.CONFIRMED, BookingStatus.COMPLETED, BookingStatus.REJECTED}
)


def assert_transition(current: BookingStatus, target: BookingStatus) -> None:
    if target not in BOOKING_TRANSITIONS[current]:
        raise InvalidTransitionError(current.value, target.value)


def can_change_status(
    principal: Principal,
    target: BookingStatus,
    booking_user_id: Optional[int],
    venue_host_id: Optional[int],
) -> bool:
    """Capability check for a status change: allow or deny, nothing else."""
    if principal.is_admin:
        return True
    is_venue_host = principal.role == AccountRole.HOST and principal.owns(venue_host_id)
    if target in HOST_ONLY_TARGETS:
        return is_venue_host
    if target == BookingStatus.CANCELLED:
        return is_venue_host or principal.owns(booking_user_id)
    return False


def releases_capacity(current: BookingStatus, target: BookingStatus) -> bool:
    return current in ACTIVE_STATUSES and target not in ACTIVE_STATUSES
