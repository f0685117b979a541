from marketplace.models.account import Account
from marketplace.models.venue import Venue, RoomType, Room
from marketplace.models.booking import Booking
from marketplace.models.event import Event, TicketType
from marketplace.models.ticket_purchase import TicketPurchase, Ticket, OrganizerSales

__all__ = [
    "Account",
    "Venue", "RoomType", "Room",
    "Booking",
    "Event", "TicketType",
    "TicketPurchase", "Ticket", "OrganizerSales",
]
