"""
Event catalogue queries.
"""

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.models.event import Event


async def list_events_on_sale(
    db: AsyncSession,
    page: int = 1,
    page_size: int = 20,
) -> tuple[list[Event], int]:
    """
    Approved, active events with their ticket types, soonest first.
    Uses the ix_events_listing composite index.
    """
    query = select(Event).where(Event.approval_status == "approved", Event.is_active.is_(True))

    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar()

    events_query = (
        query
        .order_by(Event.date.asc(), Event.id.asc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .execution_options(populate_existing=True)
    )
    result = await db.execute(events_query)
    events = list(result.scalars().all())

    return events, total
