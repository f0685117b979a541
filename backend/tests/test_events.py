"""
Tests for the event and venue catalogue endpoints.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy import update

from conftest import purchase_payload
from marketplace.models.venue import Room, Venue


@pytest.mark.asyncio
async def test_list_events_on_sale(client: AsyncClient, event, pending_event):
    """Only approved, active events are listed."""
    response = await client.get("/api/v1/events/")

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    assert data["page"] == 1
    assert data["cached"] is False
    listed = data["events"][0]
    assert listed["id"] == event.id
    assert [t["name"] for t in listed["ticketTypes"]] == ["VIP", "General"]


@pytest.mark.asyncio
async def test_list_events_pagination(client: AsyncClient, event):
    response = await client.get("/api/v1/events/", params={"page": 2, "pageSize": 10})

    assert response.status_code == 200
    assert response.json()["events"] == []
    assert response.json()["total"] == 1


@pytest.mark.asyncio
async def test_list_events_rejects_bad_page(client: AsyncClient):
    response = await client.get("/api/v1/events/", params={"page": 0})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_event_detail_shows_live_counts(client: AsyncClient, user_headers, event):
    await client.post(
        "/api/v1/tickets/purchase",
        json=purchase_payload(event.id, [("VIP", 2)], 10000),
        headers=user_headers,
    )

    response = await client.get(f"/api/v1/events/{event.id}")

    assert response.status_code == 200
    data = response.json()
    assert data["ticketsSold"] == 2
    vip = next(t for t in data["ticketTypes"] if t["name"] == "VIP")
    assert (vip["available"], vip["sold"], vip["quantity"]) == (3, 2, 5)


@pytest.mark.asyncio
async def test_event_not_found(client: AsyncClient):
    response = await client.get("/api/v1/events/9999")

    assert response.status_code == 404
    assert response.json() == {"kind": "not_found", "detail": "Event not found"}


@pytest.mark.asyncio
async def test_venue_detail(client: AsyncClient, db_session, room_type, suite_type):
    db_session.add(Room(room_type_id=room_type.id, room_number="102", status="maintenance"))
    await db_session.commit()

    response = await client.get(f"/api/v1/venues/{room_type.venue_id}")

    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Lagoon Hotel"
    assert [
        (rt["name"], rt["totalRooms"], rt["roomsInService"]) for rt in data["roomTypes"]
    ] == [("Deluxe", 1, 1), ("Suite", 2, 0)]


@pytest.mark.asyncio
async def test_inactive_venue_is_hidden(client: AsyncClient, db_session, venue):
    await db_session.execute(update(Venue).where(Venue.id == venue.id).values(is_active=False))
    await db_session.commit()

    response = await client.get(f"/api/v1/venues/{venue.id}")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["cache"] == {"status": "disabled"}


@pytest.mark.asyncio
async def test_metrics_exposed(client: AsyncClient):
    response = await client.get("/metrics")

    assert response.status_code == 200
    assert "booking_attempts_total" in response.text


@pytest.mark.asyncio
async def test_request_id_is_echoed(client: AsyncClient):
    response = await client.get("/health", headers={"X-Request-ID": "abc123"})
    assert response.headers["X-Request-ID"] == "abc123"
