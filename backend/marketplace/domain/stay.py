"""Date-range primitives for room stays.

Stays are half-open ``[check_in, check_out)``: the check-out day is handover
day and may be booked as another guest's check-in.
"""

from dataclasses import dataclass
from datetime import date

from marketplace.core.errors import ValidationError


@dataclass(frozen=True)
class Stay:
    check_in: date
    check_out: date

    def __post_init__(self) -> None:
        if self.check_out <= self.check_in:
            raise ValidationError("Check-out date must be after check-in date")

    @property
    def nights(self) -> int:
        return (self.check_out - self.check_in).days

    def overlaps(self, other: "Stay") -> bool:
        return ranges_overlap(self.check_in, self.check_out, other.check_in, other.check_out)


def ranges_overlap(start: date, end: date, other_start: date, other_end: date) -> bool:
    """Three-way overlap test collapsed into one comparison.

    ``other`` starts inside ``[start, end)``, ends inside it, or spans it
    entirely exactly when ``start < other_end and end > other_start``.
    """
    return start < other_end and end > other_start
