"""
Tests for booking admission and cancellation.
"""

from datetime import timedelta

import pytest

from booking_engine.core.errors import ErrorCode, ErrorKind
from booking_engine.db.base import utcnow
from booking_engine.models import BookingStatus, EventStatus
from booking_engine.services import booking_service


@pytest.mark.asyncio
async def test_book_tickets(engine, test_event, attendee):
    """Successful booking is confirmed and reduces remaining capacity."""
    result = await engine.create_booking(attendee.id, test_event.id, 2)
    assert result.is_ok
    booking = result.value
    assert booking.event_id == test_event.id
    assert booking.user_id == attendee.id
    assert booking.ticket_count == 2
    assert booking.status == BookingStatus.CONFIRMED
    assert booking.created_at <= utcnow()

    assert (await engine.remaining_capacity(test_event.id)).value == 98


@pytest.mark.asyncio
async def test_sold_out(engine, make_event, attendee, second_attendee):
    """Capacity 10: first user takes all ten, the next single ticket is refused."""
    event = await make_event(capacity=10)

    first = await engine.create_booking(attendee.id, event.id, 10)
    assert first.is_ok
    assert first.value.status == BookingStatus.CONFIRMED

    second = await engine.create_booking(second_attendee.id, event.id, 1)
    assert second.code == ErrorCode.INSUFFICIENT_CAPACITY
    assert second.kind == ErrorKind.REJECTED
    assert second.error.context == {"event_id": event.id, "requested": 1, "available": 0}


@pytest.mark.asyncio
async def test_book_too_many_tickets(engine, make_event, attendee):
    event = await make_event(capacity=5)
    result = await engine.create_booking(attendee.id, event.id, 6)
    assert result.code == ErrorCode.INSUFFICIENT_CAPACITY
    assert await engine.list_bookings_by_event(event.id) == []


@pytest.mark.asyncio
async def test_duplicate_booking(engine, make_event, attendee):
    """Same user booking same event twice is refused."""
    event = await make_event(capacity=5)
    assert (await engine.create_booking(attendee.id, event.id, 2)).is_ok

    again = await engine.create_booking(attendee.id, event.id, 1)
    assert again.code == ErrorCode.ALREADY_BOOKED
    assert again.kind == ErrorKind.CONFLICT
    assert (await engine.remaining_capacity(event.id)).value == 3


@pytest.mark.asyncio
async def test_self_booking(engine, test_event, organizer):
    result = await engine.create_booking(organizer.id, test_event.id, 1)
    assert result.code == ErrorCode.SELF_BOOKING_NOT_ALLOWED


@pytest.mark.asyncio
async def test_book_unknown_user(engine, test_event):
    result = await engine.create_booking(99999, test_event.id, 1)
    assert result.code == ErrorCode.ACTOR_NOT_FOUND


@pytest.mark.asyncio
async def test_book_nonexistent_event(engine, attendee):
    result = await engine.create_booking(attendee.id, 99999, 1)
    assert result.code == ErrorCode.EVENT_NOT_FOUND


@pytest.mark.asyncio
async def test_book_draft_event(engine, make_event, attendee):
    event = await make_event(publish=False)
    result = await engine.create_booking(attendee.id, event.id, 1)
    assert result.code == ErrorCode.EVENT_NOT_PUBLISHED


@pytest.mark.asyncio
async def test_book_cancelled_event(engine, test_event, attendee):
    await engine.cancel_event(test_event.id)
    result = await engine.create_booking(attendee.id, test_event.id, 1)
    assert result.code == ErrorCode.EVENT_NOT_PUBLISHED


@pytest.mark.asyncio
async def test_book_started_event(engine, make_event, attendee):
    event = await make_event(start_time=utcnow() - timedelta(minutes=5))
    result = await engine.create_booking(attendee.id, event.id, 1)
    assert result.code == ErrorCode.EVENT_ALREADY_STARTED


@pytest.mark.asyncio
async def test_book_zero_tickets(engine, test_event, attendee):
    result = await engine.create_booking(attendee.id, test_event.id, 0)
    assert result.code == ErrorCode.INVALID_INPUT
    assert result.kind == ErrorKind.INVALID_INPUT


@pytest.mark.asyncio
async def test_check_order_self_booking_before_status(engine, make_event, organizer):
    """Self-booking is reported even when the event is still a draft."""
    event = await make_event(publish=False)
    result = await engine.create_booking(organizer.id, event.id, 1)
    assert result.code == ErrorCode.SELF_BOOKING_NOT_ALLOWED


@pytest.mark.asyncio
async def test_check_order_duplicate_before_started(engine, make_event, attendee, second_attendee, clock):
    event = await make_event(start_time=utcnow() + timedelta(hours=1), capacity=2)
    assert (await engine.create_booking(attendee.id, event.id, 2)).is_ok

    clock.advance(timedelta(hours=2))
    assert (await engine.create_booking(attendee.id, event.id, 1)).code == ErrorCode.ALREADY_BOOKED
    # Started is checked before capacity
    assert (await engine.create_booking(second_attendee.id, event.id, 1)).code == (
        ErrorCode.EVENT_ALREADY_STARTED
    )


@pytest.mark.asyncio
async def test_check_order_started_before_capacity(engine, make_event, attendee):
    event = await make_event(start_time=utcnow() - timedelta(minutes=1), capacity=1)
    result = await engine.create_booking(attendee.id, event.id, 5)
    assert result.code == ErrorCode.EVENT_ALREADY_STARTED


@pytest.mark.asyncio
async def test_cancel_booking(engine, test_event, attendee):
    """Cancellation frees the tickets for later admission checks."""
    booking = (await engine.create_booking(attendee.id, test_event.id, 3)).unwrap()
    assert (await engine.remaining_capacity(test_event.id)).value == 97

    result = await engine.cancel_booking(booking.id)
    assert result.is_ok
    assert result.value is None

    assert (await engine.get_booking(booking.id)).status == BookingStatus.CANCELLED
    assert (await engine.remaining_capacity(test_event.id)).value == 100


@pytest.mark.asyncio
async def test_cancel_already_cancelled(engine, test_event, attendee):
    """Double-cancelling fails and leaves the booking as it was."""
    booking = (await engine.create_booking(attendee.id, test_event.id, 1)).unwrap()
    await engine.cancel_booking(booking.id)
    before = await engine.get_booking(booking.id)

    result = await engine.cancel_booking(booking.id)
    assert result.code == ErrorCode.INVALID_TRANSITION
    after = await engine.get_booking(booking.id)
    assert after.status == BookingStatus.CANCELLED
    assert after.updated_at == before.updated_at


@pytest.mark.asyncio
async def test_cancel_missing_booking(engine):
    result = await engine.cancel_booking(99999)
    assert result.code == ErrorCode.BOOKING_NOT_FOUND


@pytest.mark.asyncio
async def test_rebook_after_cancel(engine, make_event, attendee, second_attendee):
    event = await make_event(capacity=1)
    booking = (await engine.create_booking(attendee.id, event.id, 1)).unwrap()
    assert (await engine.create_booking(second_attendee.id, event.id, 1)).code == (
        ErrorCode.INSUFFICIENT_CAPACITY
    )

    await engine.cancel_booking(booking.id)
    assert (await engine.create_booking(second_attendee.id, event.id, 1)).is_ok
    assert (await engine.create_booking(attendee.id, event.id, 1)).code == (
        ErrorCode.INSUFFICIENT_CAPACITY
    )


@pytest.mark.asyncio
async def test_same_user_can_rebook_after_cancel(engine, test_event, attendee):
    first = (await engine.create_booking(attendee.id, test_event.id, 1)).unwrap()
    await engine.cancel_booking(first.id)

    second = await engine.create_booking(attendee.id, test_event.id, 4)
    assert second.is_ok
    assert second.value.id != first.id
    assert (await engine.remaining_capacity(test_event.id)).value == 96


@pytest.mark.asyncio
async def test_event_cancellation_does_not_cascade(engine, test_event, attendee):
    booking = (await engine.create_booking(attendee.id, test_event.id, 1)).unwrap()
    await engine.cancel_event(test_event.id)

    assert (await engine.get_event(test_event.id)).status == EventStatus.CANCELLED
    assert (await engine.get_booking(booking.id)).status == BookingStatus.CONFIRMED


@pytest.mark.asyncio
async def test_list_bookings(engine, make_event, attendee, second_attendee):
    first_event = await make_event()
    second_event = await make_event(location="Second Venue")

    a1 = (await engine.create_booking(attendee.id, first_event.id, 1)).unwrap()
    a2 = (await engine.create_booking(attendee.id, second_event.id, 1)).unwrap()
    b1 = (await engine.create_booking(second_attendee.id, first_event.id, 2)).unwrap()

    assert [b.id for b in await engine.list_bookings_by_user(attendee.id)] == [a2.id, a1.id]
    assert [b.id for b in await engine.list_bookings_by_event(first_event.id)] == [a1.id, b1.id]
    assert await engine.list_bookings_by_user(99999) == []
    assert await engine.get_booking(99999) is None


@pytest.mark.asyncio
async def test_unique_index_refuses_duplicate_missed_by_lookup(engine, test_event, attendee, monkeypatch):
    """
    The partial unique index is the last line against duplicates:
    if the active-booking lookup misses a row, the insert is still refused.
    """
    assert (await engine.create_booking(attendee.id, test_event.id, 1)).is_ok

    async def lookup_misses(db, user_id, event_id):
        return None

    monkeypatch.setattr(booking_service, "find_active_booking", lookup_misses)

    again = await engine.create_booking(attendee.id, test_event.id, 2)
    assert again.code == ErrorCode.ALREADY_BOOKED

    bookings = await engine.list_bookings_by_event(test_event.id)
    assert [b.status for b in bookings] == [BookingStatus.CONFIRMED]
    assert (await engine.remaining_capacity(test_event.id)).value == 99
