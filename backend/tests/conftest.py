"""
Pytest fixtures for test database, client, and authentication.

Every test gets a fresh in-memory SQLite database (tables created from the
models) and an HTTP client whose DB dependency yields that same session.
Redis is disabled, so every cached route reads through to the database.
"""

import os

os.environ["REDIS_ENABLED"] = "false"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["NOTIFICATION_BACKEND"] = "log"

from datetime import datetime, timezone, timedelta
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from marketplace.main import app
from marketplace.db.base import Base
from marketplace.db.session import get_db
from marketplace.core.security import create_access_token
from marketplace.models import Account, Venue, RoomType, Room, Event, TicketType
from marketplace.services.interfaces import LoggingNotificationSink
from marketplace.services.notifier_factory import set_notifier

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create tables, yield session, then dispose of the database."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def notifier() -> LoggingNotificationSink:
    sink = LoggingNotificationSink()
    set_notifier(sink)
    yield sink
    set_notifier(None)


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession, notifier) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that overrides the DB dependency with the test session."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def _persist(db_session: AsyncSession, *objects):
    """Commit, load server defaults, and detach so later rollbacks in the
    session under test never expire the fixture objects."""
    db_session.add_all(objects)
    await db_session.commit()
    for obj in objects:
        await db_session.refresh(obj)
        db_session.expunge(obj)
    return objects[0] if len(objects) == 1 else objects


def _account(email: str, role: str) -> Account:
    return Account(email=email, display_name=email.split("@")[0], role=role, profile={})


@pytest_asyncio.fixture
async def host(db_session: AsyncSession) -> Account:
    return await _persist(db_session, _account("host@example.com", "host"))


@pytest_asyncio.fixture
async def other_host(db_session: AsyncSession) -> Account:
    return await _persist(db_session, _account("otherhost@example.com", "host"))


@pytest_asyncio.fixture
async def user(db_session: AsyncSession) -> Account:
    return await _persist(db_session, _account("user@example.com", "user"))


@pytest_asyncio.fixture
async def other_user(db_session: AsyncSession) -> Account:
    return await _persist(db_session, _account("other@example.com", "user"))


@pytest_asyncio.fixture
async def organizer(db_session: AsyncSession) -> Account:
    return await _persist(db_session, _account("organizer@example.com", "organizer"))


@pytest_asyncio.fixture
async def admin(db_session: AsyncSession) -> Account:
    return await _persist(db_session, _account("admin@example.com", "admin"))


def _headers(account: Account) -> dict:
    token = create_access_token(data={"sub": str(account.id), "role": account.role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def host_headers(host) -> dict:
    return _headers(host)


@pytest.fixture
def other_host_headers(other_host) -> dict:
    return _headers(other_host)


@pytest.fixture
def user_headers(user) -> dict:
    return _headers(user)


@pytest.fixture
def other_user_headers(other_user) -> dict:
    return _headers(other_user)


@pytest.fixture
def organizer_headers(organizer) -> dict:
    return _headers(organizer)


@pytest.fixture
def admin_headers(admin) -> dict:
    return _headers(admin)


@pytest_asyncio.fixture
async def venue(db_session: AsyncSession, host: Account) -> Venue:
    """Approved hotel owned by `host`."""
    return await _persist(db_session, Venue(
        name="Lagoon Hotel",
        venue_type="hotel",
        location="Negombo",
        host_id=host.id,
        approval_status="approved",
    ))


@pytest_asyncio.fixture
async def room_type(db_session: AsyncSession, venue: Venue) -> RoomType:
    """Deluxe room type with a single physical room at 10000 per night."""
    room_type = await _persist(db_session, RoomType(
        venue_id=venue.id,
        name="Deluxe",
        capacity=2,
        total_rooms=1,
        price_per_night=10000,
    ))
    await _persist(db_session, Room(room_type_id=room_type.id, room_number="101", floor=1))
    return room_type


@pytest_asyncio.fixture
async def suite_type(db_session: AsyncSession, venue: Venue) -> RoomType:
    """Two suites with no Room rows: booked by count only."""
    return await _persist(db_session, RoomType(
        venue_id=venue.id,
        name="Suite",
        capacity=4,
        total_rooms=2,
        price_per_night=25000,
    ))


@pytest_asyncio.fixture
async def event(db_session: AsyncSession, organizer: Account) -> Event:
    """Approved event with 5 VIP and 100 General tickets."""
    event = await _persist(db_session, Event(
        title="Harbour Jazz Night",
        date=datetime.now(timezone.utc) + timedelta(days=30),
        location="Colombo",
        organizer_id=organizer.id,
        approval_status="approved",
    ))
    await _persist(
        db_session,
        TicketType(event_id=event.id, name="VIP", price=5000, quantity=5, available=5, sold=0),
        TicketType(event_id=event.id, name="General", price=1500, quantity=100, available=100, sold=0),
    )
    return event


@pytest_asyncio.fixture
async def pending_event(db_session: AsyncSession, organizer: Account) -> Event:
    """Event still awaiting approval: not on sale."""
    event = await _persist(db_session, Event(
        title="Unapproved Gig",
        date=datetime.now(timezone.utc) + timedelta(days=10),
        organizer_id=organizer.id,
        approval_status="pending",
    ))
    await _persist(
        db_session,
        TicketType(event_id=event.id, name="General", price=1000, quantity=10, available=10, sold=0),
    )
    return event


def booking_payload(venue_id: int, room_type_id: int, check_in: str, check_out: str, **overrides) -> dict:
    """Request body for POST /bookings in the camelCase wire format."""
    payload = {
        "venue": venue_id,
        "roomType": room_type_id,
        "checkInDate": check_in,
        "checkOutDate": check_out,
        "guests": 2,
        "contactInfo": {
            "firstName": "Nimal",
            "lastName": "Perera",
            "email": "nimal@example.com",
            "phone": "+94771234567",
        },
        "totalPrice": overrides.pop("total_price", 0),
    }
    payload.update(overrides)
    return payload


def purchase_payload(event_id: int, tickets: list, total_amount: int, **overrides) -> dict:
    """Request body for POST /tickets/purchase in the camelCase wire format."""
    payload = {
        "eventId": event_id,
        "tickets": [
            {"ticketType": name, "quantity": quantity} for name, quantity in tickets
        ],
        "contactInfo": {
            "fullName": "Ama Silva",
            "email": "ama@example.com",
            "phoneNumber": "+94770000000",
        },
        "payment": {"method": "credit-card", "status": "completed"},
        "totalAmount": total_amount,
    }
    payload.update(overrides)
    return payload
