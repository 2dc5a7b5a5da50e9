"""
Event lifecycle: creation, partial updates and the
DRAFT -> PUBLISHED -> CANCELLED state machine.

Status changes are written with a conditional UPDATE that names the
expected prior status, so two racing transitions cannot both win.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Iterable, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from booking_engine.core.errors import (
    ActorNotFoundError,
    DuplicateEventError,
    EventNotFoundError,
    InvalidInputError,
    InvalidTransitionError,
    NotOwnerError,
    RoleNotPermittedError,
)
from booking_engine.core.logging import get_logger
from booking_engine.models.event import Event, EventStatus
from booking_engine.models.user import User, UserRole
from booking_engine.schemas.event import EventCreate, EventUpdate
from booking_engine.services.capacity_service import tickets_held

logger = get_logger(__name__)

REQUIRED_FIELDS = ("title", "location", "start_time", "end_time", "capacity", "ticket_price", "category")


def _validate_fields(fields: dict[str, Any]) -> None:
    """Re-check invariants the schemas already enforce; the engine never trusts its caller."""
    for name in REQUIRED_FIELDS:
        if fields.get(name) is None:
            raise InvalidInputError(name, "is required")
    if not fields["title"].strip():
        raise InvalidInputError("title", "must not be blank")
    if not fields["location"].strip():
        raise InvalidInputError("location", "must not be blank")
    start, end = fields["start_time"], fields["end_time"]
    if start.tzinfo is None or end.tzinfo is None:
        raise InvalidInputError("start_time", "must be timezone-aware")
    if end <= start:
        raise InvalidInputError("end_time", "must be after start_time")
    if fields["capacity"] < 1:
        raise InvalidInputError("capacity", "must be a positive integer")
    if Decimal(fields["ticket_price"]) < 0:
        raise InvalidInputError("ticket_price", "must not be negative")


async def _duplicate_exists(
    db: AsyncSession,
    organizer_id: int,
    start_time: datetime,
    location: str,
    exclude_id: Optional[int] = None,
) -> bool:
    query = select(Event.id).where(
        Event.organizer_id == organizer_id,
        Event.start_time == start_time,
        Event.location == location,
    )
    if exclude_id is not None:
        query = query.where(Event.id != exclude_id)
    result = await db.execute(query.limit(1))
    return result.first() is not None


async def require_event(db: AsyncSession, event_id: int, for_update: bool = False) -> Event:
    """
    Load an event or raise EventNotFoundError.
    With for_update the row stays locked until the transaction ends.
    """
    query = select(Event).where(Event.id == event_id)
    if for_update:
        query = query.with_for_update()
    result = await db.execute(query)
    event = result.scalar_one_or_none()
    if not event:
        raise EventNotFoundError(event_id)
    return event


async def create_event(db: AsyncSession, organizer_id: int, event_data: EventCreate) -> Event:
    """Create a DRAFT event owned by an organizer."""
    organizer = await db.get(User, organizer_id)
    if not organizer:
        raise ActorNotFoundError(organizer_id)

    if organizer.role != UserRole.ORGANIZER:
        logger.warning("event_create_failed", reason="not_organizer", user_id=organizer_id)
        raise RoleNotPermittedError(organizer_id, organizer.role.value, UserRole.ORGANIZER.value)

    fields = event_data.model_dump()
    _validate_fields(fields)

    if await _duplicate_exists(db, organizer_id, fields["start_time"], fields["location"]):
        raise DuplicateEventError(organizer_id, fields["location"])

    event = Event(**fields, organizer_id=organizer_id, status=EventStatus.DRAFT)
    db.add(event)
    try:
        await db.flush()
    except IntegrityError:
        raise DuplicateEventError(organizer_id, fields["location"]) from None

    logger.info("event_created", event_id=event.id, title=event.title, capacity=event.capacity)
    return event


async def update_event(
    db: AsyncSession,
    event_id: int,
    changes: EventUpdate,
    restrict_to_draft: bool = False,
) -> Event:
    """
    Apply only the fields set on ``changes``.

    Capacity may not drop below tickets already held. The caller holds the
    event's admission guard so no booking can slip in between that check and
    the write.
    """
    event = await require_event(db, event_id, for_update=True)

    if restrict_to_draft and event.status != EventStatus.DRAFT:
        raise InvalidTransitionError("event", event_id, event.status.value, "edit")

    updates = changes.changes()
    if not updates:
        return event

    merged = {name: getattr(event, name) for name in REQUIRED_FIELDS}
    merged.update(updates)
    _validate_fields(merged)

    if "capacity" in updates:
        held = await tickets_held(db, event_id)
        if updates["capacity"] < held:
            raise InvalidInputError("capacity", f"cannot drop below {held} tickets already booked")

    if ("start_time" in updates or "location" in updates) and await _duplicate_exists(
        db, event.organizer_id, merged["start_time"], merged["location"], exclude_id=event_id
    ):
        raise DuplicateEventError(event.organizer_id, merged["location"])

    for name, value in updates.items():
        setattr(event, name, value)
    try:
        await db.flush()
    except IntegrityError:
        raise DuplicateEventError(event.organizer_id, merged["location"]) from None

    logger.info("event_updated", event_id=event_id, fields=sorted(updates))
    return event


async def _transition(
    db: AsyncSession,
    event: Event,
    allowed_from: Iterable[EventStatus],
    target: EventStatus,
    action: str,
) -> Event:
    result = await db.execute(
        update(Event)
        .where(Event.id == event.id, Event.status.in_(list(allowed_from)))
        .values(status=target)
        .execution_options(synchronize_session=False)
    )
    await db.refresh(event)
    if result.rowcount == 0:
        # Another transaction moved the event first
        raise InvalidTransitionError("event", event.id, event.status.value, action)
    return event


async def publish_event(db: AsyncSession, event_id: int, requester_id: int) -> Event:
    """
    Publish a DRAFT event.
    Only its organizer may publish, and only while still holding the ORGANIZER role.
    """
    event = await require_event(db, event_id)

    if event.organizer_id != requester_id:
        logger.warning("publish_failed", reason="not_owner", event_id=event_id, user_id=requester_id)
        raise NotOwnerError(requester_id, event_id)

    organizer = await db.get(User, event.organizer_id)
    if not organizer or organizer.role != UserRole.ORGANIZER:
        role = organizer.role.value if organizer else "missing"
        logger.warning("publish_failed", reason="owner_role_changed", event_id=event_id, role=role)
        raise RoleNotPermittedError(event.organizer_id, role, UserRole.ORGANIZER.value)

    if event.status != EventStatus.DRAFT:
        raise InvalidTransitionError("event", event_id, event.status.value, "publish")

    await _transition(db, event, [EventStatus.DRAFT], EventStatus.PUBLISHED, "publish")
    logger.info("event_published", event_id=event_id)
    return event


async def cancel_event(db: AsyncSession, event_id: int) -> Event:
    """
    Cancel a DRAFT or PUBLISHED event.
    Bookings are left untouched; consumers treat them as void.
    """
    event = await require_event(db, event_id)

    if event.status == EventStatus.CANCELLED:
        raise InvalidTransitionError("event", event_id, event.status.value, "cancel")

    await _transition(
        db, event, [EventStatus.DRAFT, EventStatus.PUBLISHED], EventStatus.CANCELLED, "cancel"
    )
    logger.info("event_cancelled", event_id=event_id)
    return event


async def get_event(db: AsyncSession, event_id: int) -> Optional[Event]:
    return await db.get(Event, event_id)


async def list_events(db: AsyncSession, status: Optional[EventStatus] = None) -> list[Event]:
    query = select(Event)
    if status is not None:
        query = query.where(Event.status == status)
    result = await db.execute(query.order_by(Event.start_time.asc(), Event.id.asc()))
    return list(result.scalars().all())


async def list_events_by_organizer(db: AsyncSession, organizer_id: int) -> list[Event]:
    result = await db.execute(
        select(Event)
        .where(Event.organizer_id == organizer_id)
        .order_by(Event.start_time.asc(), Event.id.asc())
    )
    return list(result.scalars().all())


async def list_upcoming_events(db: AsyncSession, now: datetime) -> list[Event]:
    """Events starting after ``now``. Uses the ix_events_start_time index."""
    result = await db.execute(
        select(Event)
        .where(Event.start_time > now)
        .order_by(Event.start_time.asc(), Event.id.asc())
    )
    return list(result.scalars().all())
