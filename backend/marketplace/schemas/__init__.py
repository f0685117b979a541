from marketplace.schemas.booking import (
    BookingCreate, BookingResponse, BookingStatusUpdate, AvailabilityResponse,
)
from marketplace.schemas.ticket import TicketPurchaseCreate, TicketPurchaseResponse
from marketplace.schemas.event import EventResponse, EventListResponse, VenueDetailResponse

__all__ = [
    "BookingCreate", "BookingResponse", "BookingStatusUpdate", "AvailabilityResponse",
    "TicketPurchaseCreate", "TicketPurchaseResponse",
    "EventResponse", "EventListResponse", "VenueDetailResponse",
]
