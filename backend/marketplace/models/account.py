"""
Account model: one credential-bearing entity per actor.

Key design decisions:
- A single table tagged with `role` replaces separate user/host/organizer/admin
  tables; role-specific attributes live in the `profile` JSON payload
- Guests are never persisted (guest checkout bookings have user_id = NULL)
"""

from sqlalchemy import Column, Integer, String, Boolean, JSON, CheckConstraint
from sqlalchemy.orm import relationship

from marketplace.db.base import Base, TimestampMixin


class Account(Base, TimestampMixin):
    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    display_name = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="user")
    profile = Column(JSON, nullable=False, default=dict)
    is_active = Column(Boolean, default=True, nullable=False)

    venues = relationship("Venue", back_populates="host", lazy="raise")
    bookings = relationship("Booking", back_populates="user", lazy="raise")
    ticket_purchases = relationship("TicketPurchase", back_populates="user", lazy="raise")

    __table_args__ = (
        CheckConstraint("role IN ('user', 'host', 'organizer', 'admin')", name="check_account_role"),
    )

    def __repr__(self) -> str:
        return f"<Account(id={self.id}, email={self.email}, role={self.role})>"
