"""Initial schema: accounts, venue inventory, bookings, events and the ticket ledger.

Revision ID: 001
Revises: None
Create Date: 2026-10-17
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "accounts",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("display_name", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default=sa.text("'user'")),
        sa.Column("profile", sa.JSON(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
        sa.CheckConstraint("role IN ('user', 'host', 'organizer', 'admin')", name="check_account_role"),
    )
    op.create_index("ix_accounts_id", "accounts", ["id"])
    op.create_index("ix_accounts_email", "accounts", ["email"], unique=True)

    op.create_table(
        "venues",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("venue_type", sa.String(50), nullable=False, server_default=sa.text("'hotel'")),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("host_id", sa.Integer(), sa.ForeignKey("accounts.id"), nullable=False),
        sa.Column("capacity_min", sa.Integer(), nullable=True),
        sa.Column("capacity_max", sa.Integer(), nullable=True),
        sa.Column("approval_status", sa.String(20), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
        sa.CheckConstraint(
            "approval_status IN ('pending', 'approved', 'rejected')",
            name="check_venue_approval_status",
        ),
    )
    op.create_index("ix_venues_id", "venues", ["id"])
    op.create_index("ix_venues_host_id", "venues", ["host_id"])

    op.create_table(
        "room_types",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("venue_id", sa.Integer(), sa.ForeignKey("venues.id"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.Column("total_rooms", sa.Integer(), nullable=False),
        sa.Column("price_per_night", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("currency", sa.String(3), nullable=False, server_default=sa.text("'LKR'")),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        *_timestamps(),
        sa.CheckConstraint("total_rooms >= 0", name="check_total_rooms_non_negative"),
        sa.CheckConstraint("capacity > 0", name="check_room_type_capacity_positive"),
        sa.CheckConstraint("price_per_night >= 0", name="check_price_per_night_non_negative"),
    )
    op.create_index("ix_room_types_id", "room_types", ["id"])
    op.create_index("ix_room_types_venue_id", "room_types", ["venue_id"])

    op.create_table(
        "rooms",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("room_type_id", sa.Integer(), sa.ForeignKey("room_types.id"), nullable=False),
        sa.Column("room_number", sa.String(20), nullable=False),
        sa.Column("floor", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'available'")),
        *_timestamps(),
        sa.UniqueConstraint("room_type_id", "room_number", name="uq_room_type_room_number"),
        sa.CheckConstraint(
            "status IN ('available', 'occupied', 'maintenance', 'reserved')",
            name="check_room_status",
        ),
    )
    op.create_index("ix_rooms_id", "rooms", ["id"])
    op.create_index("ix_rooms_room_type_id", "rooms", ["room_type_id"])

    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("booking_reference", sa.String(32), nullable=False),
        sa.Column("venue_id", sa.Integer(), sa.ForeignKey("venues.id"), nullable=False),
        sa.Column("room_type_id", sa.Integer(), sa.ForeignKey("room_types.id"), nullable=False),
        sa.Column("room_id", sa.Integer(), sa.ForeignKey("rooms.id"), nullable=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("accounts.id"), nullable=True),
        sa.Column("check_in_date", sa.Date(), nullable=False),
        sa.Column("check_out_date", sa.Date(), nullable=False),
        sa.Column("guests", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("total_price", sa.Integer(), nullable=False),
        sa.Column("contact_first_name", sa.String(100), nullable=False),
        sa.Column("contact_last_name", sa.String(100), nullable=False),
        sa.Column("contact_email", sa.String(255), nullable=False),
        sa.Column("contact_phone", sa.String(50), nullable=False),
        sa.Column("special_requests", sa.String(1000), nullable=True),
        sa.Column("payment_method", sa.String(20), nullable=True),
        sa.Column("payment_status", sa.String(20), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancellation_reason", sa.String(500), nullable=True),
        sa.Column("rejection_reason", sa.String(500), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("check_out_date > check_in_date", name="check_booking_dates_ordered"),
        sa.CheckConstraint("guests > 0", name="check_booking_guests_positive"),
        sa.CheckConstraint(
            "status IN ('pending', 'confirmed', 'cancelled', 'completed', 'rejected')",
            name="check_booking_status",
        ),
    )
    op.create_index("ix_bookings_id", "bookings", ["id"])
    op.create_index("ix_bookings_booking_reference", "bookings", ["booking_reference"], unique=True)
    op.create_index("ix_bookings_venue_id", "bookings", ["venue_id"])
    op.create_index("ix_bookings_user_id", "bookings", ["user_id"])
    # Overlap query: room type + date window + active status
    op.create_index(
        "ix_bookings_availability",
        "bookings",
        ["room_type_id", "check_in_date", "check_out_date", "status"],
    )

    op.create_table(
        "events",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("organizer_id", sa.Integer(), sa.ForeignKey("accounts.id"), nullable=False),
        sa.Column("approval_status", sa.String(20), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("tickets_sold", sa.Integer(), nullable=False, server_default=sa.text("0")),
        *_timestamps(),
        sa.CheckConstraint(
            "approval_status IN ('pending', 'approved', 'rejected')",
            name="check_event_approval_status",
        ),
        sa.CheckConstraint("tickets_sold >= 0", name="check_tickets_sold_non_negative"),
    )
    op.create_index("ix_events_id", "events", ["id"])
    op.create_index("ix_events_organizer_id", "events", ["organizer_id"])
    op.create_index("ix_events_listing", "events", ["approval_status", "is_active", "date"])

    op.create_table(
        "ticket_types",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("event_id", sa.Integer(), sa.ForeignKey("events.id"), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("price", sa.Integer(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("available", sa.Integer(), nullable=False),
        sa.Column("sold", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.UniqueConstraint("event_id", "name", name="uq_event_ticket_type_name"),
        sa.CheckConstraint("available >= 0", name="check_ticket_available_non_negative"),
        sa.CheckConstraint("sold >= 0", name="check_ticket_sold_non_negative"),
        sa.CheckConstraint("available + sold = quantity", name="check_ticket_ledger_balanced"),
        sa.CheckConstraint("price >= 0", name="check_ticket_price_non_negative"),
    )
    op.create_index("ix_ticket_types_id", "ticket_types", ["id"])
    op.create_index("ix_ticket_types_event_id", "ticket_types", ["event_id"])

    op.create_table(
        "ticket_purchases",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("event_id", sa.Integer(), sa.ForeignKey("events.id"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("accounts.id"), nullable=False),
        sa.Column("transaction_id", sa.String(40), nullable=False),
        sa.Column("total_amount", sa.Integer(), nullable=False),
        sa.Column("service_fee", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'confirmed'")),
        sa.Column("contact_full_name", sa.String(255), nullable=False),
        sa.Column("contact_email", sa.String(255), nullable=False),
        sa.Column("contact_phone", sa.String(50), nullable=False),
        sa.Column("payment_method", sa.String(20), nullable=False),
        sa.Column("payment_status", sa.String(20), nullable=False, server_default=sa.text("'pending'")),
        *_timestamps(),
        sa.CheckConstraint("total_amount >= 0", name="check_purchase_total_non_negative"),
        sa.CheckConstraint("service_fee >= 0", name="check_purchase_fee_non_negative"),
        sa.CheckConstraint(
            "status IN ('confirmed', 'pending', 'cancelled', 'refunded')",
            name="check_purchase_status",
        ),
    )
    op.create_index("ix_ticket_purchases_id", "ticket_purchases", ["id"])
    op.create_index("ix_ticket_purchases_event_id", "ticket_purchases", ["event_id"])
    op.create_index("ix_ticket_purchases_user_id", "ticket_purchases", ["user_id"])
    op.create_index("ix_ticket_purchases_transaction_id", "ticket_purchases", ["transaction_id"], unique=True)

    op.create_table(
        "tickets",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("purchase_id", sa.Integer(), sa.ForeignKey("ticket_purchases.id"), nullable=False),
        sa.Column("ticket_number", sa.String(40), nullable=False),
        sa.Column("ticket_type", sa.String(100), nullable=False),
        sa.Column("price", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'valid'")),
        sa.CheckConstraint(
            "status IN ('valid', 'used', 'cancelled', 'refunded')",
            name="check_ticket_status",
        ),
    )
    op.create_index("ix_tickets_id", "tickets", ["id"])
    op.create_index("ix_tickets_purchase_id", "tickets", ["purchase_id"])
    op.create_index("ix_tickets_ticket_number", "tickets", ["ticket_number"], unique=True)

    op.create_table(
        "organizer_sales",
        sa.Column("organizer_id", sa.Integer(), sa.ForeignKey("accounts.id"), primary_key=True),
        sa.Column("tickets_sold", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("revenue", sa.Integer(), nullable=False, server_default=sa.text("0")),
        *_timestamps(),
    )


def downgrade() -> None:
    op.drop_table("organizer_sales")
    op.drop_table("tickets")
    op.drop_table("ticket_purchases")
    op.drop_table("ticket_types")
    op.drop_table("events")
    op.drop_table("bookings")
    op.drop_table("rooms")
    op.drop_table("room_types")
    op.drop_table("venues")
    op.drop_table("accounts")
