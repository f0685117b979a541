"""
Event model with per-ticket-type inventory.

Key design decisions:
- Ticket types are rows, not an embedded array, so each one can be decremented
  with a single conditional UPDATE (no read-modify-write of the whole event)
- `available + sold == quantity` and `available >= 0` are CHECK constraints:
  the database refuses any write that would oversell
- `tickets_sold` on Event is a denormalized aggregate for listings
"""

from sqlalchemy import (
    Column,
    Integer,
    String,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    CheckConstraint,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from marketplace.db.base import Base, TimestampMixin


class Event(Base, TimestampMixin):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    date = Column(DateTime(timezone=True), nullable=True)
    location = Column(String(255), nullable=True)
    organizer_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)
    approval_status = Column(String(20), nullable=False, default="pending")
    is_active = Column(Boolean, nullable=False, default=True)
    tickets_sold = Column(Integer, nullable=False, default=0)

    ticket_types = relationship(
        "TicketType",
        back_populates="event",
        lazy="selectin",
        order_by="TicketType.id",
    )

    __table_args__ = (
        CheckConstraint(
            "approval_status IN ('pending', 'approved', 'rejected')",
            name="check_event_approval_status",
        ),
        CheckConstraint("tickets_sold >= 0", name="check_tickets_sold_non_negative"),
        Index("ix_events_listing", "approval_status", "is_active", "date"),
    )

    @property
    def on_sale(self) -> bool:
        return bool(self.is_active) and self.approval_status == "approved"

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, title={self.title}, sold={self.tickets_sold})>"


class TicketType(Base):
    __tablename__ = "ticket_types"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    price = Column(Integer, nullable=False)
    quantity = Column(Integer, nullable=False)
    available = Column(Integer, nullable=False)
    sold = Column(Integer, nullable=False, default=0)

    event = relationship("Event", back_populates="ticket_types", lazy="raise")

    __table_args__ = (
        UniqueConstraint("event_id", "name", name="uq_event_ticket_type_name"),
        CheckConstraint("available >= 0", name="check_ticket_available_non_negative"),
        CheckConstraint("sold >= 0", name="check_ticket_sold_non_negative"),
        CheckConstraint("available + sold = quantity", name="check_ticket_ledger_balanced"),
        CheckConstraint("price >= 0", name="check_ticket_price_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<TicketType(event={self.event_id}, name={self.name}, available={self.available}/{self.quantity})>"
