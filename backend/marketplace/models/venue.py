"""
Inventory store: venues, their room types and the physical rooms.

Key design decisions:
- `total_rooms` on RoomType is the capacity the availability check counts
  against; Room rows are the physical units handed out on assignment
- `version` on RoomType is an optimistic-lock counter bumped by every booking
  write for that room type, so a check-then-insert that raced another writer
  is detected and retried
- Room numbers are unique within a room type
"""

from sqlalchemy import (
    Column,
    Integer,
    String,
    Boolean,
    ForeignKey,
    CheckConstraint,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from marketplace.db.base import Base, TimestampMixin


class Venue(Base, TimestampMixin):
    __tablename__ = "venues"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    venue_type = Column(String(50), nullable=False, default="hotel")
    location = Column(String(255), nullable=True)
    host_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)
    capacity_min = Column(Integer, nullable=True)
    capacity_max = Column(Integer, nullable=True)
    approval_status = Column(String(20), nullable=False, default="pending")
    is_active = Column(Boolean, nullable=False, default=True)

    host = relationship("Account", back_populates="venues", lazy="raise")
    room_types = relationship("RoomType", back_populates="venue", lazy="raise")

    __table_args__ = (
        CheckConstraint(
            "approval_status IN ('pending', 'approved', 'rejected')",
            name="check_venue_approval_status",
        ),
    )

    @property
    def accepts_bookings(self) -> bool:
        return bool(self.is_active) and self.approval_status == "approved"

    def __repr__(self) -> str:
        return f"<Venue(id={self.id}, name={self.name}, host={self.host_id})>"


class RoomType(Base, TimestampMixin):
    __tablename__ = "room_types"

    id = Column(Integer, primary_key=True, index=True)
    venue_id = Column(Integer, ForeignKey("venues.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    capacity = Column(Integer, nullable=False)
    total_rooms = Column(Integer, nullable=False)
    price_per_night = Column(Integer, nullable=False, default=0)
    currency = Column(String(3), nullable=False, default="LKR")

    # Optimistic locking version counter
    version = Column(Integer, nullable=False, default=1)

    venue = relationship("Venue", back_populates="room_types", lazy="raise")
    rooms = relationship("Room", back_populates="room_type", lazy="raise")

    __table_args__ = (
        CheckConstraint("total_rooms >= 0", name="check_total_rooms_non_negative"),
        CheckConstraint("capacity > 0", name="check_room_type_capacity_positive"),
        CheckConstraint("price_per_night >= 0", name="check_price_per_night_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<RoomType(id={self.id}, venue={self.venue_id}, rooms={self.total_rooms})>"


class Room(Base, TimestampMixin):
    __tablename__ = "rooms"

    id = Column(Integer, primary_key=True, index=True)
    room_type_id = Column(Integer, ForeignKey("room_types.id"), nullable=False, index=True)
    room_number = Column(String(20), nullable=False)
    floor = Column(Integer, nullable=True)
    status = Column(String(20), nullable=False, default="available")

    room_type = relationship("RoomType", back_populates="rooms", lazy="raise")

    __table_args__ = (
        UniqueConstraint("room_type_id", "room_number", name="uq_room_type_room_number"),
        CheckConstraint(
            "status IN ('available', 'occupied', 'maintenance', 'reserved')",
            name="check_room_status",
        ),
    )

    def __repr__(self) -> str:
        return f"<Room(id={self.id}, number={self.room_number}, status={self.status})>"
