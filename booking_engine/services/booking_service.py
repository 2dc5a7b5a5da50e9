"""
Booking admission and booking lifecycle.

CONCURRENCY STRATEGY: Serialized Admission per Event
=====================================================

Problem:
  Two users try to book the last ticket simultaneously.
  Both sum the live bookings, both see one ticket left, both insert.
  Result: Overbooking.

Solution:
  Admission for one event is single-writer at the moment of decision.

  1. The engine enters the event's admission guard (AdmissionStrategy)
  2. Inside one transaction the event row is read with SELECT ... FOR UPDATE
  3. Eligibility and the derived capacity sum are checked
  4. The CONFIRMED booking is inserted and the transaction commits
  5. The guard is released on every exit path

  The guard serializes callers inside one process; the row lock serializes
  processes sharing a PostgreSQL database. A partial unique index on
  (user_id, event_id) for non-cancelled rows is the final safety net against
  duplicate bookings.

Check order is fixed so rejections are deterministic:
  actor, event, self-booking, duplicate, published, started, capacity.

Cancellation:
  A single conditional UPDATE on the booking row. Capacity needs no release
  step because it is derived from live bookings.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from booking_engine.core.errors import (
    ActorNotFoundError,
    AlreadyBookedError,
    BookingNotFoundError,
    EventAlreadyStartedError,
    EventNotPublishedError,
    InsufficientCapacityError,
    InvalidInputError,
    InvalidTransitionError,
    SelfBookingNotAllowedError,
)
from booking_engine.core.logging import get_logger
from booking_engine.models.booking import Booking, BookingStatus
from booking_engine.models.event import EventStatus
from booking_engine.models.user import User
from booking_engine.services.capacity_service import remaining_capacity
from booking_engine.services.event_service import require_event

logger = get_logger(__name__)


async def find_active_booking(db: AsyncSession, user_id: int, event_id: int) -> Optional[Booking]:
    result = await db.execute(
        select(Booking).where(
            Booking.user_id == user_id,
            Booking.event_id == event_id,
            Booking.status != BookingStatus.CANCELLED,
        )
    )
    return result.scalars().first()


async def create_booking(
    db: AsyncSession,
    user_id: int,
    event_id: int,
    ticket_count: int,
    now: datetime,
) -> Booking:
    """
    Admit a booking and commit it as CONFIRMED.
    Must run inside the event's admission guard and a single transaction.
    """
    if ticket_count < 1:
        raise InvalidInputError("ticket_count", "must be at least 1")

    user = await db.get(User, user_id)
    if not user:
        raise ActorNotFoundError(user_id)

    # Row lock held until commit
    event = await require_event(db, event_id, for_update=True)

    if event.organizer_id == user_id:
        raise SelfBookingNotAllowedError(user_id, event_id)

    if await find_active_booking(db, user_id, event_id):
        raise AlreadyBookedError(user_id, event_id)

    if event.status != EventStatus.PUBLISHED:
        raise EventNotPublishedError(event_id, event.status.value)

    if event.start_time <= now:
        raise EventAlreadyStartedError(event_id)

    available = await remaining_capacity(db, event)
    if ticket_count > available:
        logger.warning(
            "booking_failed_no_capacity",
            event_id=event_id,
            requested=ticket_count,
            available=available,
        )
        raise InsufficientCapacityError(event_id, ticket_count, available)

    booking = Booking(
        user_id=user_id,
        event_id=event_id,
        ticket_count=ticket_count,
        status=BookingStatus.CONFIRMED,
        created_at=now,
        updated_at=now,
    )
    db.add(booking)
    try:
        await db.flush()
    except IntegrityError:
        # Partial unique index: a concurrent admission for the same pair won
        raise AlreadyBookedError(user_id, event_id) from None

    logger.info(
        "booking_created",
        booking_id=booking.id,
        user_id=user_id,
        event_id=event_id,
        tickets=ticket_count,
        remaining=available - ticket_count,
    )
    return booking


async def cancel_booking(db: AsyncSession, booking_id: int) -> Booking:
    """Move a PENDING or CONFIRMED booking to CANCELLED."""
    result = await db.execute(
        update(Booking)
        .where(Booking.id == booking_id, Booking.status != BookingStatus.CANCELLED)
        .values(status=BookingStatus.CANCELLED)
        .execution_options(synchronize_session=False)
    )

    booking = await db.get(Booking, booking_id, populate_existing=True)
    if not booking:
        raise BookingNotFoundError(booking_id)
    if result.rowcount == 0:
        raise InvalidTransitionError("booking", booking_id, booking.status.value, "cancel")

    logger.info(
        "booking_cancelled",
        booking_id=booking_id,
        event_id=booking.event_id,
        tickets_released=booking.ticket_count,
    )
    return booking


async def get_booking(db: AsyncSession, booking_id: int) -> Optional[Booking]:
    return await db.get(Booking, booking_id)


async def list_bookings_by_user(db: AsyncSession, user_id: int) -> list[Booking]:
    """Get all bookings for a user, newest first."""
    result = await db.execute(
        select(Booking)
        .where(Booking.user_id == user_id)
        .order_by(Booking.created_at.desc(), Booking.id.desc())
    )
    return list(result.scalars().all())


async def list_bookings_by_event(db: AsyncSession, event_id: int) -> list[Booking]:
    result = await db.execute(
        select(Booking)
        .where(Booking.event_id == event_id)
        .order_by(Booking.created_at.asc(), Booking.id.asc())
    )
    return list(result.scalars().all())
