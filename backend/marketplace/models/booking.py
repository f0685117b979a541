"""
Booking model representing a stay in one room type of a venue.

Key design decisions:
- `booking_reference` is unique at the storage level; generation entropy is
  not trusted on its own
- Composite index on (room_type_id, check_in_date, check_out_date, status)
  serves the overlap query of the availability check
- `room_id` stays NULL until a physical room is assigned
- `user_id` is NULL for guest checkout
- Status field allows cancellation without deleting records
"""

from sqlalchemy import (
    Column,
    Integer,
    String,
    Date,
    DateTime,
    ForeignKey,
    Index,
    CheckConstraint,
)
from sqlalchemy.orm import relationship

from marketplace.db.base import Base, TimestampMixin


class Booking(Base, TimestampMixin):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    booking_reference = Column(String(32), unique=True, index=True, nullable=False)
    venue_id = Column(Integer, ForeignKey("venues.id"), nullable=False, index=True)
    room_type_id = Column(Integer, ForeignKey("room_types.id"), nullable=False)
    room_id = Column(Integer, ForeignKey("rooms.id"), nullable=True)
    user_id = Column(Integer, ForeignKey("accounts.id"), nullable=True, index=True)

    check_in_date = Column(Date, nullable=False)
    check_out_date = Column(Date, nullable=False)
    guests = Column(Integer, nullable=False, default=1)
    status = Column(String(20), nullable=False, default="pending")
    total_price = Column(Integer, nullable=False)

    contact_first_name = Column(String(100), nullable=False)
    contact_last_name = Column(String(100), nullable=False)
    contact_email = Column(String(255), nullable=False)
    contact_phone = Column(String(50), nullable=False)
    special_requests = Column(String(1000), nullable=True)

    # Opaque to this service: set by the payment collaborator
    payment_method = Column(String(20), nullable=True)
    payment_status = Column(String(20), nullable=False, default="pending")

    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancellation_reason = Column(String(500), nullable=True)
    rejection_reason = Column(String(500), nullable=True)

    user = relationship("Account", back_populates="bookings", lazy="raise")

    __table_args__ = (
        CheckConstraint("check_out_date > check_in_date", name="check_booking_dates_ordered"),
        CheckConstraint("guests > 0", name="check_booking_guests_positive"),
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'cancelled', 'completed', 'rejected')",
            name="check_booking_status",
        ),
        Index(
            "ix_bookings_availability",
            "room_type_id",
            "check_in_date",
            "check_out_date",
            "status",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, ref={self.booking_reference}, "
            f"room_type={self.room_type_id}, status={self.status})>"
        )
