"""
Ticket purchases, the individual tickets they issue, and the organizer's
sales ledger.

Key design decisions:
- `transaction_id` and `ticket_number` carry unique constraints; they are the
  authoritative guard against duplicate identifiers
- The buyer's purchase history is this table indexed by `user_id`
- OrganizerSales is a denormalized per-organizer aggregate, updated in the
  same transaction as the purchase
"""

from sqlalchemy import Column, Integer, String, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship

from marketplace.db.base import Base, TimestampMixin


class TicketPurchase(Base, TimestampMixin):
    __tablename__ = "ticket_purchases"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)
    transaction_id = Column(String(40), unique=True, index=True, nullable=False)
    total_amount = Column(Integer, nullable=False)
    service_fee = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default="confirmed")

    contact_full_name = Column(String(255), nullable=False)
    contact_email = Column(String(255), nullable=False)
    contact_phone = Column(String(50), nullable=False)

    payment_method = Column(String(20), nullable=False)
    payment_status = Column(String(20), nullable=False, default="pending")

    user = relationship("Account", back_populates="ticket_purchases", lazy="raise")
    tickets = relationship(
        "Ticket",
        back_populates="purchase",
        lazy="selectin",
        order_by="Ticket.id",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint("total_amount >= 0", name="check_purchase_total_non_negative"),
        CheckConstraint("service_fee >= 0", name="check_purchase_fee_non_negative"),
        CheckConstraint(
            "status IN ('confirmed', 'pending', 'cancelled', 'refunded')",
            name="check_purchase_status",
        ),
    )

    @property
    def ticket_count(self) -> int:
        return len(self.tickets)

    def __repr__(self) -> str:
        return f"<TicketPurchase(id={self.id}, txn={self.transaction_id}, event={self.event_id})>"


class Ticket(Base):
    __tablename__ = "tickets"

    id = Column(Integer, primary_key=True, index=True)
    purchase_id = Column(Integer, ForeignKey("ticket_purchases.id"), nullable=False, index=True)
    ticket_number = Column(String(40), unique=True, index=True, nullable=False)
    ticket_type = Column(String(100), nullable=False)
    price = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False, default="valid")

    purchase = relationship("TicketPurchase", back_populates="tickets", lazy="raise")

    __table_args__ = (
        CheckConstraint(
            "status IN ('valid', 'used', 'cancelled', 'refunded')",
            name="check_ticket_status",
        ),
    )


class OrganizerSales(Base, TimestampMixin):
    __tablename__ = "organizer_sales"

    organizer_id = Column(Integer, ForeignKey("accounts.id"), primary_key=True)
    tickets_sold = Column(Integer, nullable=False, default=0)
    revenue = Column(Integer, nullable=False, default=0)
