"""
Event catalogue endpoints with Redis caching on the listing.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.logging import get_logger
from marketplace.db.session import get_db
from marketplace.schemas.event import EventListResponse, EventResponse
from marketplace.services import ticket_service
from marketplace.services.cache_service import cache_get, cache_set, event_list_key
from marketplace.services.event_service import list_events_on_sale

logger = get_logger(__name__)
router = APIRouter(prefix="/events", tags=["Events"])


@router.get("/", response_model=EventListResponse)
async def list_events(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100, alias="pageSize"),
    db: AsyncSession = Depends(get_db),
):
    """
    Events on sale with ticket availability, paginated.
    Cached in Redis; every ticket purchase invalidates the listing.
    """
    key = event_list_key(page, page_size)
    cached = await cache_get(key)
    if cached:
        logger.info("events_list_cache_hit", page=page)
        cached["cached"] = True
        return EventListResponse.model_validate(cached)

    events, total = await list_events_on_sale(db, page, page_size)
    response = EventListResponse(
        events=[EventResponse.model_validate(e) for e in events],
        total=total,
        page=page,
        page_size=page_size,
    )
    await cache_set(key, response.model_dump(mode="json"))
    return response


@router.get("/{event_id}", response_model=EventResponse)
async def get_event(event_id: int, db: AsyncSession = Depends(get_db)):
    """Single event with live ticket counts. Not cached."""
    return await ticket_service.get_event(db, event_id)
