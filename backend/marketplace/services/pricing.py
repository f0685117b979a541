"""
Server-side totals for stays and ticket orders.

Amounts are integers in the currency units stored on the room type or ticket
type; arithmetic is exact and no rounding happens anywhere.

By default a client-supplied total must equal the server's figure, and the
server's figure is what gets stored. With TRUST_CLIENT_TOTALS enabled the
client's total is stored unchecked.
"""

from typing import Iterable, Optional

from marketplace.core.config import get_settings
from marketplace.core.errors import ValidationError
from marketplace.domain.stay import Stay

settings = get_settings()


def quote_stay(price_per_night: int, stay: Stay) -> int:
    return price_per_night * stay.nights


def quote_tickets(lines: Iterable[tuple[int, int]], service_fee: int = 0) -> int:
    """`lines` are (unit price, quantity) pairs."""
    return sum(price * quantity for price, quantity in lines) + service_fee


def settle_total(expected: int, claimed: Optional[int], label: str) -> int:
    if settings.TRUST_CLIENT_TOTALS and claimed is not None:
        return claimed
    if claimed is not None and claimed != expected:
        raise ValidationError(f"{label} {claimed} does not match the computed total {expected}")
    return expected
