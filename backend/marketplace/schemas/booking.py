"""
Pydantic schemas for booking-related request/response validation.

Date ordering and guest capacity are not validated here: they
depend on stored room types and are reported by the booking service as
typed 400 errors rather than schema 422s.
"""

from datetime import date, datetime
from typing import Literal, Optional

from pydantic import EmailStr, Field

from marketplace.domain.booking_state import BookingStatus, PaymentStatus
from marketplace.schemas.base import APIModel


class ContactInfo(APIModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    phone: str = Field(..., min_length=3, max_length=50)


class BookingPayment(APIModel):
    method: Literal["credit_card", "paypal", "ezcash", "alipay"]
    status: PaymentStatus = PaymentStatus.PENDING


class BookingCreate(APIModel):
    venue: int
    room_type: int
    check_in_date: date
    check_out_date: date
    guests: int = Field(..., gt=0, le=100)
    contact_info: ContactInfo
    special_requests: Optional[str] = Field(None, max_length=1000)
    total_price: int = Field(..., ge=0)
    payment: Optional[BookingPayment] = None


class BookingResponse(APIModel):
    id: int
    booking_reference: str
    venue_id: int
    room_type_id: int
    room_id: Optional[int]
    user_id: Optional[int]
    check_in_date: date
    check_out_date: date
    guests: int
    status: str
    total_price: int
    payment_status: str
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    rejection_reason: Optional[str] = None
    created_at: datetime


class BookingStatusUpdate(APIModel):
    status: BookingStatus
    reason: Optional[str] = Field(None, max_length=500)


class AvailabilityResponse(APIModel):
    room_type_id: int
    check_in_date: date
    check_out_date: date
    available: bool
