"""
Locust Load Test Suite

Targets existing inventory, configured through the environment:
  LOAD_VENUE_ID, LOAD_ROOM_TYPE_ID   room type to fight over (guest checkout)
  LOAD_ROOM_PRICE                    its price per night
  LOAD_EVENT_ID, LOAD_TICKET_TYPE    event / ticket type to fight over
  LOAD_TICKET_PRICE                  its unit price
  LOAD_TOKEN                         bearer token of a user account (tickets)

Run scenarios:
  locust -f locustfile.py --tags rooms        # Test overbooking of a room type
  locust -f locustfile.py --tags tickets      # Test overselling of tickets
  locust -f locustfile.py --tags throughput   # Test cache
  locust -f locustfile.py --tags edge         # Test bad input
  locust -f locustfile.py                     # All tests
"""

import os
import random
from datetime import date, timedelta
from locust import HttpUser, task, between, tag

VENUE_ID = int(os.getenv("LOAD_VENUE_ID", "1"))
ROOM_TYPE_ID = int(os.getenv("LOAD_ROOM_TYPE_ID", "1"))
ROOM_PRICE = int(os.getenv("LOAD_ROOM_PRICE", "10000"))
EVENT_ID = int(os.getenv("LOAD_EVENT_ID", "1"))
TICKET_TYPE = os.getenv("LOAD_TICKET_TYPE", "VIP")
TICKET_PRICE = int(os.getenv("LOAD_TICKET_PRICE", "5000"))
TOKEN = os.getenv("LOAD_TOKEN")

# Every room user asks for the same two nights
CHECK_IN = date.today() + timedelta(days=60)
CHECK_OUT = CHECK_IN + timedelta(days=2)


def booking_body(check_in=CHECK_IN, check_out=CHECK_OUT, **overrides):
    body = {
        "venue": VENUE_ID,
        "roomType": ROOM_TYPE_ID,
        "checkInDate": check_in.isoformat(),
        "checkOutDate": check_out.isoformat(),
        "guests": 1,
        "contactInfo": {
            "firstName": "Load",
            "lastName": f"User{random.randint(1, 99999)}",
            "email": "load@example.com",
            "phone": "+94770000000",
        },
        "totalPrice": ROOM_PRICE * max((check_out - check_in).days, 0),
    }
    body.update(overrides)
    return body


class RoomContentionUser(HttpUser):
    """
    TEST 1: Concurrency - many guests -> total_rooms of one room type

    Run: locust -f locustfile.py --tags rooms -u 100 -r 50 --run-time 30s

    After test, verify:
      SELECT COUNT(*) FROM bookings
      WHERE room_type_id = X AND status IN ('pending', 'confirmed')
        AND check_in_date < :check_out AND check_out_date > :check_in;
    Should be <= total_rooms
    """
    wait_time = between(0, 0.1)

    @tag("rooms", "concurrency")
    @task
    def book_same_nights(self):
        with self.client.post("/api/v1/bookings/",
            json=booking_body(),
            catch_response=True
        ) as resp:
            if resp.status_code == 201:
                resp.success()
            elif resp.status_code == 400 and resp.json().get("kind") == "availability_error":
                resp.success()  # Expected: fully booked
            elif resp.status_code == 409:
                resp.success()  # Expected: retries lost to other bookings
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class TicketContentionUser(HttpUser):
    """
    TEST 2: Concurrency - many buyers -> one ticket type

    Run: locust -f locustfile.py --tags tickets -u 100 -r 50 --run-time 30s

    After test, verify:
      SELECT available, sold, quantity FROM ticket_types WHERE id = X;
    available >= 0 and available + sold = quantity
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        self.headers = {"Authorization": f"Bearer {TOKEN}"} if TOKEN else {}

    @tag("tickets", "concurrency")
    @task
    def buy_tickets(self):
        if not self.headers:
            return
        quantity = random.randint(1, 3)
        with self.client.post("/api/v1/tickets/purchase",
            json={
                "eventId": EVENT_ID,
                "tickets": [{"ticketType": TICKET_TYPE, "quantity": quantity}],
                "contactInfo": {
                    "fullName": "Load Buyer",
                    "email": "buyer@example.com",
                    "phoneNumber": "+94770000000",
                },
                "payment": {"method": "credit-card", "status": "completed"},
                "totalAmount": TICKET_PRICE * quantity,
            },
            headers=self.headers,
            catch_response=True
        ) as resp:
            if resp.status_code == 201:
                resp.success()
            elif resp.status_code == 400 and resp.json().get("kind") == "insufficient_inventory":
                resp.success()  # Expected: sold out
            elif resp.status_code == 409:
                resp.success()  # Expected: identifier collisions exhausted retries
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class ThroughputUser(HttpUser):
    """
    TEST 3: Throughput - Cache effectiveness

    Run twice:
      1. With Redis: locust -f locustfile.py --tags throughput -u 100 -r 20 --run-time 60s
      2. Without Redis: REDIS_ENABLED=false, run again

    Compare avg response time, requests/sec and P95/P99 latency.
    """
    wait_time = between(0.1, 0.5)

    @tag("throughput", "read")
    @task(10)
    def list_events_cached(self):
        page = random.randint(1, 5)
        self.client.get(f"/api/v1/events/?page={page}&pageSize=20",
            name="/api/v1/events/ [cached]")

    @tag("throughput", "read")
    @task(5)
    def venue_detail_cached(self):
        self.client.get(f"/api/v1/venues/{VENUE_ID}", name="/api/v1/venues/{id} [cached]")

    @tag("throughput", "read")
    @task(5)
    def check_availability(self):
        """Uncached: always reads live booking counts."""
        start = CHECK_IN + timedelta(days=random.randint(0, 30))
        self.client.get(
            f"/api/v1/bookings/check-availability/{ROOM_TYPE_ID}",
            params={
                "checkInDate": start.isoformat(),
                "checkOutDate": (start + timedelta(days=2)).isoformat(),
            },
            name="/api/v1/bookings/check-availability/{id}")

    @tag("throughput")
    @task(1)
    def health_check(self):
        self.client.get("/health")


class EdgeCaseUser(HttpUser):
    """
    TEST 4: Edge cases - Bad input handling

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s

    System should NOT crash, return proper error codes.
    """
    wait_time = between(0.5, 1.5)

    def _expect(self, resp, codes):
        if resp.status_code in codes:
            resp.success()
        else:
            resp.failure(f"Expected {codes}, got {resp.status_code}")

    @tag("edge")
    @task
    def unknown_room_type(self):
        with self.client.post("/api/v1/bookings/",
            json=booking_body(roomType=999999),
            catch_response=True
        ) as resp:
            self._expect(resp, [404])

    @tag("edge")
    @task
    def reversed_dates(self):
        with self.client.post("/api/v1/bookings/",
            json=booking_body(check_in=CHECK_OUT, check_out=CHECK_IN),
            catch_response=True
        ) as resp:
            self._expect(resp, [400])

    @tag("edge")
    @task
    def zero_guests(self):
        with self.client.post("/api/v1/bookings/",
            json=booking_body(guests=0),
            catch_response=True
        ) as resp:
            self._expect(resp, [422])

    @tag("edge")
    @task
    def malformed_json(self):
        with self.client.post("/api/v1/bookings/",
            data="not json at all",
            catch_response=True
        ) as resp:
            self._expect(resp, [400, 422])

    @tag("edge")
    @task
    def tickets_without_auth(self):
        with self.client.post("/api/v1/tickets/purchase",
            json={"eventId": EVENT_ID, "tickets": []},
            catch_response=True
        ) as resp:
            self._expect(resp, [401, 422])
