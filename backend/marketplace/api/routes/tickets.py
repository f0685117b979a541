"""
Ticket purchase endpoints.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.security import get_current_principal
from marketplace.db.session import get_db
from marketplace.domain.roles import Principal
from marketplace.schemas.ticket import TicketPurchaseCreate, TicketPurchaseResponse
from marketplace.services import ticket_service
from marketplace.services.cache_service import invalidate_event_listings

router = APIRouter(prefix="/tickets", tags=["Tickets"])


@router.post("/purchase", response_model=TicketPurchaseResponse, status_code=status.HTTP_201_CREATED)
async def purchase_tickets(
    purchase_data: TicketPurchaseCreate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """
    Buy tickets for an event. All requested lines are fulfilled or none are;
    a shortfall on any ticket type returns 400 and leaves inventory untouched.
    """
    purchase = await ticket_service.purchase_tickets(db, purchase_data, principal)
    # Listings show per-type availability
    await invalidate_event_listings()
    return purchase


@router.get("/my-purchases", response_model=list[TicketPurchaseResponse])
async def list_my_purchases(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    return await ticket_service.get_user_purchases(db, principal.account_id)


@router.get("/event/{event_id}", response_model=list[TicketPurchaseResponse])
async def list_event_purchases(
    event_id: int,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """Every purchase for an event. Its organizer or an admin only."""
    return await ticket_service.get_event_purchases(db, event_id, principal)


@router.get("/{purchase_id}", response_model=TicketPurchaseResponse)
async def get_purchase(
    purchase_id: int,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    return await ticket_service.get_purchase_for(db, purchase_id, principal)
