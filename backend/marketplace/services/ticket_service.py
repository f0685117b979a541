"""
Ticket inventory ledger: all-or-nothing ticket purchases.

CONCURRENCY STRATEGY: Conditional Decrement per Ticket Type
===========================================================

Each ticket type is its own row, so a purchase line is a single statement:

    UPDATE ticket_types
    SET available = available - :q, sold = sold + :q
    WHERE id = :id AND available >= :q

The row lock and the predicate are evaluated together; two buyers of the last
ticket cannot both get rowcount 1. All lines of one purchase run in one
transaction, so a line that loses rolls back the lines that won. The
`available + sold = quantity` and `available >= 0` CHECK constraints are the
final safety net.

Ticket numbers and transaction ids are random enough that collisions are
negligible, but the unique indexes decide: an IntegrityError rolls the whole
purchase back and it is retried with fresh identifiers, up to
MAX_RETRY_ATTEMPTS before a ContentionError (409).
"""

from collections import OrderedDict

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.config import get_settings
from marketplace.core.errors import (
    AuthorizationError,
    ContentionError,
    InsufficientInventoryError,
    NotFoundError,
    ValidationError,
)
from marketplace.core.logging import get_logger
from marketplace.core.metrics import record_purchase, record_retry
from marketplace.domain.roles import AccountRole, Principal
from marketplace.models.event import Event, TicketType
from marketplace.models.ticket_purchase import OrganizerSales, Ticket, TicketPurchase
from marketplace.schemas.ticket import TicketPurchaseCreate
from marketplace.services.identifiers import generate_ticket_number, generate_transaction_id
from marketplace.services.notifier_factory import get_notifier
from marketplace.services.pricing import quote_tickets, settle_total

logger = get_logger(__name__)
settings = get_settings()


async def get_event(db: AsyncSession, event_id: int) -> Event:
    """Event with live ticket counts (bypasses the identity map)."""
    result = await db.execute(
        select(Event).where(Event.id == event_id).execution_options(populate_existing=True)
    )
    event = result.scalar_one_or_none()
    if not event:
        raise NotFoundError("Event", event_id)
    return event


def _merge_lines(purchase_data: TicketPurchaseCreate) -> "OrderedDict[str, tuple[int, object]]":
    """Collapse repeated ticket types into one line: name -> (quantity, client price)."""
    merged: OrderedDict = OrderedDict()
    for line in purchase_data.tickets:
        quantity, price = merged.get(line.ticket_type, (0, line.price_per_ticket))
        if price != line.price_per_ticket:
            raise ValidationError(f'Conflicting prices sent for ticket type "{line.ticket_type}"')
        merged[line.ticket_type] = (quantity + line.quantity, price)
    return merged


def _unit_price(ticket_type: TicketType, client_price) -> int:
    if client_price is None:
        return ticket_type.price
    if settings.TRUST_CLIENT_TOTALS:
        return client_price
    if client_price != ticket_type.price:
        raise ValidationError(
            f'Price for "{ticket_type.name}" is {ticket_type.price}, not {client_price}'
        )
    return ticket_type.price


async def _credit_organizer(db: AsyncSession, organizer_id: int, tickets: int, revenue: int) -> None:
    """Upsert the organizer's sales ledger row with an atomic increment."""
    dialect = db.get_bind().dialect.name
    insert = pg_insert if dialect == "postgresql" else sqlite_insert
    stmt = insert(OrganizerSales).values(
        organizer_id=organizer_id, tickets_sold=tickets, revenue=revenue
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[OrganizerSales.organizer_id],
        set_={
            "tickets_sold": OrganizerSales.tickets_sold + tickets,
            "revenue": OrganizerSales.revenue + revenue,
        },
    )
    await db.execute(stmt)


async def purchase_tickets(
    db: AsyncSession,
    purchase_data: TicketPurchaseCreate,
    principal: Principal,
) -> TicketPurchase:
    """
    Buy tickets of one or more types for an event.

    Either every line is fulfilled or nothing is written:
    InsufficientInventoryError names the first ticket type that ran short.
    """
    if principal.is_guest:
        raise AuthorizationError("Sign in to purchase tickets")

    try:
        lines = _merge_lines(purchase_data)
    except ValidationError:
        record_purchase("invalid")
        raise

    for attempt in range(1, settings.MAX_RETRY_ATTEMPTS + 1):
        event = await get_event(db, purchase_data.event_id)
        if not event.on_sale:
            record_purchase("invalid")
            raise ValidationError("This event is not available for ticket purchases")

        types_by_name = {t.name: t for t in event.ticket_types}
        organizer_id = event.organizer_id
        event_id = event.id

        # Check every line up front; nothing is written if any line fails
        priced = []
        try:
            for name, (quantity, client_price) in lines.items():
                ticket_type = types_by_name.get(name)
                if ticket_type is None:
                    raise ValidationError(f'Ticket type "{name}" not found')
                if ticket_type.available < quantity:
                    logger.warning(
                        "purchase_failed_insufficient",
                        event_id=event_id,
                        ticket_type=name,
                        requested=quantity,
                        available=ticket_type.available,
                    )
                    record_purchase("insufficient")
                    raise InsufficientInventoryError(name, quantity, ticket_type.available)
                priced.append((ticket_type.id, name, quantity, _unit_price(ticket_type, client_price)))

            total_amount = settle_total(
                quote_tickets(((price, quantity) for _, _, quantity, price in priced), purchase_data.service_fee),
                purchase_data.total_amount,
                "totalAmount",
            )
        except ValidationError:
            record_purchase("invalid")
            raise

        ticket_count = 0
        tickets = []
        for ticket_type_id, name, quantity, price in priced:
            result = await db.execute(
                update(TicketType)
                .where(TicketType.id == ticket_type_id, TicketType.available >= quantity)
                .values(
                    available=TicketType.available - quantity,
                    sold=TicketType.sold + quantity,
                )
            )
            if result.rowcount != 1:
                # Lost a race for the last tickets since the check above
                await db.rollback()
                current = await get_event(db, event_id)
                left = next((t.available for t in current.ticket_types if t.name == name), 0)
                logger.warning(
                    "purchase_failed_insufficient",
                    event_id=event_id,
                    ticket_type=name,
                    requested=quantity,
                    available=left,
                    reason="concurrent_purchase",
                )
                record_purchase("insufficient")
                raise InsufficientInventoryError(name, quantity, left)

            for _ in range(quantity):
                ticket_count += 1
                tickets.append(Ticket(
                    ticket_number=generate_ticket_number(ticket_count),
                    ticket_type=name,
                    price=price,
                ))

        await db.execute(
            update(Event)
            .where(Event.id == event_id)
            .values(tickets_sold=Event.tickets_sold + ticket_count)
        )

        contact = purchase_data.contact_info
        purchase = TicketPurchase(
            event_id=event_id,
            user_id=principal.account_id,
            transaction_id=generate_transaction_id(),
            total_amount=total_amount,
            service_fee=purchase_data.service_fee,
            contact_full_name=contact.full_name,
            contact_email=contact.email,
            contact_phone=contact.phone_number,
            payment_method=purchase_data.payment.method,
            payment_status=purchase_data.payment.status,
            tickets=tickets,
        )
        # Flush before the ledger upsert so identifier collisions surface here
        try:
            db.add(purchase)
            await db.flush()
            await _credit_organizer(db, organizer_id, ticket_count, total_amount - purchase_data.service_fee)
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            logger.warning("purchase_retry", attempt=attempt, reason="integrity_error", error=str(e.orig))
            record_retry("purchase")
            continue

        await db.refresh(purchase, ["created_at", "updated_at"])
        record_purchase("success", ticket_count)
        logger.info(
            "tickets_purchased",
            purchase_id=purchase.id,
            transaction_id=purchase.transaction_id,
            event_id=event_id,
            user_id=principal.account_id,
            ticket_count=ticket_count,
            total_amount=total_amount,
            attempt=attempt,
        )
        await get_notifier().notify("tickets_purchased", {
            "purchase_id": purchase.id,
            "transaction_id": purchase.transaction_id,
            "event_id": event_id,
            "organizer_id": organizer_id,
            "ticket_count": ticket_count,
            "contact_email": purchase.contact_email,
        })
        return purchase

    logger.warning(
        "purchase_failed_contention",
        event_id=purchase_data.event_id,
        attempts=settings.MAX_RETRY_ATTEMPTS,
    )
    record_purchase("conflict")
    raise ContentionError("Ticket purchase could not be completed. Please try again.")


async def get_purchase_for(db: AsyncSession, purchase_id: int, principal: Principal) -> TicketPurchase:
    result = await db.execute(select(TicketPurchase).where(TicketPurchase.id == purchase_id))
    purchase = result.scalar_one_or_none()
    if not purchase:
        raise NotFoundError("Ticket purchase", purchase_id)
    if not (principal.is_admin or principal.owns(purchase.user_id)):
        raise AuthorizationError("Unauthorized access to this ticket purchase")
    return purchase


async def get_user_purchases(db: AsyncSession, user_id: int) -> list[TicketPurchase]:
    result = await db.execute(
        select(TicketPurchase)
        .where(TicketPurchase.user_id == user_id)
        .order_by(TicketPurchase.created_at.desc(), TicketPurchase.id.desc())
    )
    return list(result.scalars().all())


async def get_event_purchases(db: AsyncSession, event_id: int, principal: Principal) -> list[TicketPurchase]:
    """Sales for one event. The event's organizer or an admin only."""
    event = await get_event(db, event_id)
    is_organizer = principal.role == AccountRole.ORGANIZER and principal.owns(event.organizer_id)
    if not (principal.is_admin or is_organizer):
        raise AuthorizationError("Unauthorized access to event tickets")

    result = await db.execute(
        select(TicketPurchase)
        .where(TicketPurchase.event_id == event_id)
        .order_by(TicketPurchase.created_at.desc(), TicketPurchase.id.desc())
    )
    return list(result.scalars().all())
