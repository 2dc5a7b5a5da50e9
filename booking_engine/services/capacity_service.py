"""
Capacity accounting derived from live bookings.

remaining = event.capacity - sum(ticket_count of non-cancelled bookings)

There is no stored counter, so nothing can drift out of sync with the
booking rows. The sum is only trustworthy at decision time when the caller
holds the event's admission guard (see admission_service).
"""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from booking_engine.models.booking import Booking, BookingStatus
from booking_engine.models.event import Event


async def tickets_held(db: AsyncSession, event_id: int) -> int:
    """Sum of ticket counts over non-cancelled bookings of the event."""
    result = await db.execute(
        select(func.coalesce(func.sum(Booking.ticket_count), 0)).where(
            Booking.event_id == event_id,
            Booking.status != BookingStatus.CANCELLED,
        )
    )
    return int(result.scalar_one())


async def remaining_capacity(db: AsyncSession, event: Event) -> int:
    return event.capacity - await tickets_held(db, event.id)
