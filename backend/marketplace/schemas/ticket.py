"""
Pydantic schemas for ticket purchases.
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import EmailStr, Field

from marketplace.schemas.base import APIModel


class TicketLineItem(APIModel):
    ticket_type: str = Field(..., min_length=1, max_length=100)
    quantity: int = Field(..., gt=0, le=50)
    price_per_ticket: Optional[int] = Field(None, ge=0)


class PurchaseContact(APIModel):
    full_name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    phone_number: str = Field(..., min_length=3, max_length=50)


class PurchasePayment(APIModel):
    method: Literal["credit-card", "paypal"]
    status: Literal["pending", "completed", "failed", "refunded"] = "pending"


class TicketPurchaseCreate(APIModel):
    event_id: int
    tickets: list[TicketLineItem] = Field(..., min_length=1)
    contact_info: PurchaseContact
    payment: PurchasePayment
    total_amount: int = Field(..., ge=0)
    service_fee: int = Field(0, ge=0)


class TicketResponse(APIModel):
    ticket_number: str
    ticket_type: str
    price: int
    status: str


class TicketPurchaseResponse(APIModel):
    id: int
    event_id: int
    user_id: int
    transaction_id: str
    ticket_count: int
    total_amount: int
    service_fee: int
    status: str
    payment_status: str
    tickets: list[TicketResponse]
    created_at: datetime
