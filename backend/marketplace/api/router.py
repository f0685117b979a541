"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from marketplace.api.routes import bookings, tickets, events, venues

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(bookings.router)
api_router.include_router(tickets.router)
api_router.include_router(events.router)
api_router.include_router(venues.router)
