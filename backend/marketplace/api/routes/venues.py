"""
Venue catalogue endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.db.session import get_db
from marketplace.schemas.event import VenueDetailResponse
from marketplace.services.cache_service import cache_get, cache_set, venue_detail_key
from marketplace.services.venue_service import get_venue_detail

router = APIRouter(prefix="/venues", tags=["Venues"])


@router.get("/{venue_id}", response_model=VenueDetailResponse)
async def get_venue(venue_id: int, db: AsyncSession = Depends(get_db)):
    """Venue with its room types and the number of rooms in service per type."""
    key = venue_detail_key(venue_id)
    cached = await cache_get(key)
    if cached:
        return VenueDetailResponse(**cached, cached=True)

    detail = await get_venue_detail(db, venue_id)
    await cache_set(key, detail)
    return VenueDetailResponse(**detail)
