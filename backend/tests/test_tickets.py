"""
Tests for ticket purchases: all-or-nothing fulfilment, identifiers and the
organizer's sales ledger.
"""

import re

import pytest
from httpx import AsyncClient
from sqlalchemy import select, update

from conftest import purchase_payload
from marketplace.models.event import TicketType
from marketplace.models.ticket_purchase import OrganizerSales, Ticket, TicketPurchase
from marketplace.services import ticket_service

TICKET_NUMBER_PATTERN = re.compile(r"^TCKT-\d{6}-\d{5}-\d{3}$")
TRANSACTION_PATTERN = re.compile(r"^TXN-\d+-\d{4}$")


async def _ticket_types(db_session, event_id: int) -> dict:
    result = await db_session.execute(
        select(TicketType.name, TicketType.available, TicketType.sold)
        .where(TicketType.event_id == event_id)
    )
    return {name: (available, sold) for name, available, sold in result.all()}


@pytest.mark.asyncio
async def test_purchase_tickets(client: AsyncClient, db_session, user, user_headers, event, notifier):
    response = await client.post(
        "/api/v1/tickets/purchase",
        json=purchase_payload(event.id, [("VIP", 2)], 10000),
        headers=user_headers,
    )

    assert response.status_code == 201
    data = response.json()
    assert data["eventId"] == event.id
    assert data["userId"] == user.id
    assert data["ticketCount"] == 2
    assert data["totalAmount"] == 10000
    assert data["paymentStatus"] == "completed"
    assert TRANSACTION_PATTERN.match(data["transactionId"])

    numbers = [t["ticketNumber"] for t in data["tickets"]]
    assert all(TICKET_NUMBER_PATTERN.match(n) for n in numbers)
    assert [n[-3:] for n in numbers] == ["001", "002"]
    assert {t["ticketType"] for t in data["tickets"]} == {"VIP"}

    assert (await _ticket_types(db_session, event.id))["VIP"] == (3, 2)
    assert [name for name, _ in notifier.sent] == ["tickets_purchased"]


@pytest.mark.asyncio
async def test_last_tickets_are_not_oversold(client: AsyncClient, db_session, user_headers, other_user_headers, event):
    """Five VIP tickets: a buyer of 4 then a buyer of 2 -> the second is refused."""
    first = await client.post(
        "/api/v1/tickets/purchase",
        json=purchase_payload(event.id, [("VIP", 4)], 20000),
        headers=user_headers,
    )
    second = await client.post(
        "/api/v1/tickets/purchase",
        json=purchase_payload(event.id, [("VIP", 2)], 10000),
        headers=other_user_headers,
    )

    assert first.status_code == 201
    assert second.status_code == 400
    assert second.json() == {
        "kind": "insufficient_inventory",
        "detail": 'Not enough tickets available for "VIP". Requested: 2, Available: 1',
    }
    assert (await _ticket_types(db_session, event.id))["VIP"] == (1, 4)


@pytest.mark.asyncio
async def test_purchase_is_all_or_nothing(client: AsyncClient, db_session, user_headers, event):
    """General is available but VIP is short: nothing is sold."""
    response = await client.post(
        "/api/v1/tickets/purchase",
        json=purchase_payload(event.id, [("General", 3), ("VIP", 6)], 3 * 1500 + 6 * 5000),
        headers=user_headers,
    )

    assert response.status_code == 400
    assert response.json()["kind"] == "insufficient_inventory"
    assert await _ticket_types(db_session, event.id) == {"VIP": (5, 0), "General": (100, 0)}
    assert (await db_session.execute(select(TicketPurchase.id))).all() == []
    assert (await db_session.execute(select(Ticket.id))).all() == []


@pytest.mark.asyncio
async def test_purchase_of_several_types(client: AsyncClient, db_session, user_headers, event):
    response = await client.post(
        "/api/v1/tickets/purchase",
        json=purchase_payload(event.id, [("VIP", 1), ("General", 2)], 5000 + 2 * 1500),
        headers=user_headers,
    )

    assert response.status_code == 201
    numbers = [t["ticketNumber"][-3:] for t in response.json()["tickets"]]
    assert numbers == ["001", "002", "003"]
    assert await _ticket_types(db_session, event.id) == {"VIP": (4, 1), "General": (98, 2)}


@pytest.mark.asyncio
async def test_repeated_lines_are_merged(client: AsyncClient, db_session, user_headers, event):
    """Two lines of VIP count against the same stock."""
    response = await client.post(
        "/api/v1/tickets/purchase",
        json=purchase_payload(event.id, [("VIP", 3), ("VIP", 3)], 30000),
        headers=user_headers,
    )

    assert response.status_code == 400
    assert "Requested: 6, Available: 5" in response.json()["detail"]


@pytest.mark.asyncio
async def test_unknown_ticket_type(client: AsyncClient, user_headers, event):
    response = await client.post(
        "/api/v1/tickets/purchase",
        json=purchase_payload(event.id, [("Backstage", 1)], 0),
        headers=user_headers,
    )

    assert response.status_code == 400
    assert response.json()["kind"] == "validation_error"


@pytest.mark.asyncio
async def test_unknown_event(client: AsyncClient, user_headers):
    response = await client.post(
        "/api/v1/tickets/purchase",
        json=purchase_payload(9999, [("VIP", 1)], 5000),
        headers=user_headers,
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_unapproved_event_is_not_on_sale(client: AsyncClient, user_headers, pending_event):
    response = await client.post(
        "/api/v1/tickets/purchase",
        json=purchase_payload(pending_event.id, [("General", 1)], 1000),
        headers=user_headers,
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_purchase_requires_sign_in(client: AsyncClient, event):
    response = await client.post(
        "/api/v1/tickets/purchase",
        json=purchase_payload(event.id, [("VIP", 1)], 5000),
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_total_amount_must_match(client: AsyncClient, db_session, user_headers, event):
    response = await client.post(
        "/api/v1/tickets/purchase",
        json=purchase_payload(event.id, [("VIP", 1)], 1),
        headers=user_headers,
    )

    assert response.status_code == 400
    assert (await _ticket_types(db_session, event.id))["VIP"] == (5, 0)


@pytest.mark.asyncio
async def test_service_fee_is_part_of_the_total(client: AsyncClient, user_headers, event):
    payload = purchase_payload(event.id, [("General", 2)], 2 * 1500 + 250, serviceFee=250)
    response = await client.post("/api/v1/tickets/purchase", json=payload, headers=user_headers)

    assert response.status_code == 201
    assert response.json()["serviceFee"] == 250


@pytest.mark.asyncio
async def test_client_unit_price_must_match(client: AsyncClient, user_headers, event):
    payload = purchase_payload(event.id, [("VIP", 1)], 100)
    payload["tickets"][0]["pricePerTicket"] = 100
    response = await client.post("/api/v1/tickets/purchase", json=payload, headers=user_headers)

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_organizer_sales_ledger(client: AsyncClient, db_session, organizer, user_headers, other_user_headers, event):
    await client.post(
        "/api/v1/tickets/purchase",
        json=purchase_payload(event.id, [("VIP", 1)], 5000),
        headers=user_headers,
    )
    await client.post(
        "/api/v1/tickets/purchase",
        json=purchase_payload(event.id, [("General", 2)], 3000 + 100, serviceFee=100),
        headers=other_user_headers,
    )

    ledger = (await db_session.execute(
        select(OrganizerSales.tickets_sold, OrganizerSales.revenue)
        .where(OrganizerSales.organizer_id == organizer.id)
    )).one()
    assert tuple(ledger) == (3, 8000)


@pytest.mark.asyncio
async def test_identifiers_are_unique_across_purchases(client: AsyncClient, user_headers, event):
    purchases = [
        (await client.post(
            "/api/v1/tickets/purchase",
            json=purchase_payload(event.id, [("General", 5)], 7500),
            headers=user_headers,
        )).json()
        for _ in range(3)
    ]

    transactions = {p["transactionId"] for p in purchases}
    numbers = {t["ticketNumber"] for p in purchases for t in p["tickets"]}
    assert len(transactions) == 3
    assert len(numbers) == 15


@pytest.mark.asyncio
async def test_my_purchases(client: AsyncClient, user_headers, other_user_headers, event):
    await client.post(
        "/api/v1/tickets/purchase",
        json=purchase_payload(event.id, [("General", 1)], 1500),
        headers=user_headers,
    )
    await client.post(
        "/api/v1/tickets/purchase",
        json=purchase_payload(event.id, [("General", 1)], 1500),
        headers=other_user_headers,
    )

    response = await client.get("/api/v1/tickets/my-purchases", headers=user_headers)

    assert response.status_code == 200
    assert len(response.json()) == 1
    assert response.json()[0]["ticketCount"] == 1


@pytest.mark.asyncio
async def test_purchase_visibility(client: AsyncClient, user_headers, other_user_headers, admin_headers, event):
    purchase = (await client.post(
        "/api/v1/tickets/purchase",
        json=purchase_payload(event.id, [("General", 1)], 1500),
        headers=user_headers,
    )).json()
    url = f"/api/v1/tickets/{purchase['id']}"

    assert (await client.get(url, headers=user_headers)).status_code == 200
    assert (await client.get(url, headers=admin_headers)).status_code == 200
    assert (await client.get(url, headers=other_user_headers)).status_code == 403


@pytest.mark.asyncio
async def test_event_purchases_for_organizer(client: AsyncClient, user_headers, organizer_headers, event):
    await client.post(
        "/api/v1/tickets/purchase",
        json=purchase_payload(event.id, [("General", 1)], 1500),
        headers=user_headers,
    )
    url = f"/api/v1/tickets/event/{event.id}"

    own = await client.get(url, headers=organizer_headers)
    assert own.status_code == 200
    assert len(own.json()) == 1

    assert (await client.get(url, headers=user_headers)).status_code == 403


@pytest.mark.asyncio
async def test_vip_sell_through_scenario(client: AsyncClient, db_session, user_headers, event):
    """VIP 5/5: buy 3 -> 2 left; buying 3 more fails and changes nothing."""
    first = await client.post(
        "/api/v1/tickets/purchase",
        json=purchase_payload(event.id, [("VIP", 3)], 15000),
        headers=user_headers,
    )
    assert first.status_code == 201
    assert (await _ticket_types(db_session, event.id))["VIP"] == (2, 3)

    second = await client.post(
        "/api/v1/tickets/purchase",
        json=purchase_payload(event.id, [("VIP", 3)], 15000),
        headers=user_headers,
    )
    assert second.status_code == 400
    assert second.json()["kind"] == "insufficient_inventory"
    assert (await _ticket_types(db_session, event.id))["VIP"] == (2, 3)


# --- Races and identifier collisions ---

@pytest.mark.asyncio
async def test_transaction_id_collision_is_retried(client: AsyncClient, db_session, organizer, user_headers, event, monkeypatch):
    """A duplicate transaction id rolls the whole purchase back and is regenerated."""
    transaction_ids = iter(["TXN-1-0001", "TXN-1-0001", "TXN-2-0002"])
    monkeypatch.setattr(ticket_service, "generate_transaction_id", lambda: next(transaction_ids))

    first = await client.post(
        "/api/v1/tickets/purchase",
        json=purchase_payload(event.id, [("VIP", 1)], 5000),
        headers=user_headers,
    )
    second = await client.post(
        "/api/v1/tickets/purchase",
        json=purchase_payload(event.id, [("VIP", 1)], 5000),
        headers=user_headers,
    )

    assert first.status_code == 201
    assert second.status_code == 201
    assert second.json()["transactionId"] == "TXN-2-0002"
    assert (await _ticket_types(db_session, event.id))["VIP"] == (3, 2)

    ledger = (await db_session.execute(
        select(OrganizerSales.tickets_sold, OrganizerSales.revenue)
        .where(OrganizerSales.organizer_id == organizer.id)
    )).one()
    assert tuple(ledger) == (2, 10000)


@pytest.mark.asyncio
async def test_transaction_id_collisions_exhaust_retries(client: AsyncClient, db_session, user_headers, event, monkeypatch):
    monkeypatch.setattr(ticket_service, "generate_transaction_id", lambda: "TXN-1-0001")

    first = await client.post(
        "/api/v1/tickets/purchase",
        json=purchase_payload(event.id, [("VIP", 1)], 5000),
        headers=user_headers,
    )
    second = await client.post(
        "/api/v1/tickets/purchase",
        json=purchase_payload(event.id, [("VIP", 1)], 5000),
        headers=user_headers,
    )

    assert first.status_code == 201
    assert second.status_code == 409
    assert second.json() == {
        "kind": "contention",
        "detail": "Ticket purchase could not be completed. Please try again.",
    }
    assert (await _ticket_types(db_session, event.id))["VIP"] == (4, 1)
    assert len((await db_session.execute(select(TicketPurchase.id))).all()) == 1


@pytest.mark.asyncio
async def test_tickets_sold_between_check_and_decrement(client: AsyncClient, db_session, user_headers, event, monkeypatch):
    """Another buyer takes 4 VIP after the availability check: the decrement refuses."""
    real_get_event = ticket_service.get_event
    calls = []

    async def get_event_then_sell(db, event_id):
        loaded = await real_get_event(db, event_id)
        calls.append(event_id)
        if len(calls) == 1:
            await db.execute(
                update(TicketType)
                .where(TicketType.event_id == event_id, TicketType.name == "VIP")
                .values(available=TicketType.available - 4, sold=TicketType.sold + 4)
                .execution_options(synchronize_session=False)
            )
            await db.commit()
        return loaded

    monkeypatch.setattr(ticket_service, "get_event", get_event_then_sell)

    response = await client.post(
        "/api/v1/tickets/purchase",
        json=purchase_payload(event.id, [("General", 1), ("VIP", 2)], 1500 + 2 * 5000),
        headers=user_headers,
    )

    assert response.status_code == 400
    assert response.json() == {
        "kind": "insufficient_inventory",
        "detail": 'Not enough tickets available for "VIP". Requested: 2, Available: 1',
    }
    assert await _ticket_types(db_session, event.id) == {"VIP": (1, 4), "General": (100, 0)}
    assert (await db_session.execute(select(TicketPurchase.id))).all() == []
