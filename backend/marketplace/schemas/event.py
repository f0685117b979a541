"""
Pydantic schemas for event and venue catalogue responses.
"""

from datetime import datetime
from typing import Optional

from marketplace.schemas.base import APIModel


class TicketTypeResponse(APIModel):
    id: int
    name: str
    price: int
    quantity: int
    available: int
    sold: int


class EventResponse(APIModel):
    id: int
    title: str
    date: Optional[datetime]
    location: Optional[str]
    organizer_id: int
    approval_status: str
    is_active: bool
    tickets_sold: int
    ticket_types: list[TicketTypeResponse]


class EventListResponse(APIModel):
    events: list[EventResponse]
    total: int
    page: int
    page_size: int
    cached: bool = False


class RoomTypeResponse(APIModel):
    id: int
    name: str
    capacity: int
    total_rooms: int
    price_per_night: int
    currency: str
    rooms_in_service: int


class VenueDetailResponse(APIModel):
    id: int
    name: str
    venue_type: str
    location: Optional[str]
    capacity_min: Optional[int]
    capacity_max: Optional[int]
    approval_status: str
    is_active: bool
    room_types: list[RoomTypeResponse]
    cached: bool = False
