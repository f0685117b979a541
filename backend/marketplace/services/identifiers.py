"""
Human-readable identifiers for bookings, tickets and purchases.

Formats:
  booking reference  <PREFIX><YYMMDD><6 upper-case alphanumerics>   BK260117Q4ZK1M
  ticket number      TCKT-<last 6 digits of epoch ms>-<5 digits>-<3 digit index>
  transaction id     TXN-<epoch ms>-<4 digits>

Randomness comes from `secrets`. Collisions are still possible in principle;
the unique indexes on the owning tables are the authoritative guard and the
services regenerate on an IntegrityError.
"""

import secrets
import string
import time
from datetime import datetime, timezone
from typing import Optional

REFERENCE_ALPHABET = string.ascii_uppercase + string.digits


def _epoch_ms() -> int:
    return time.time_ns() // 1_000_000


def generate_booking_reference(prefix: str = "BK", now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    suffix = "".join(secrets.choice(REFERENCE_ALPHABET) for _ in range(6))
    return f"{prefix}{now:%y%m%d}{suffix}"


def generate_ticket_number(index: int) -> str:
    """`index` is the 1-based position of the ticket within its purchase."""
    stamp = str(_epoch_ms())[-6:]
    return f"TCKT-{stamp}-{secrets.randbelow(100_000):05d}-{index:03d}"


def generate_transaction_id() -> str:
    return f"TXN-{_epoch_ms()}-{secrets.randbelow(10_000):04d}"
