"""
Booking model representing a user's claim on an event's capacity.

Key design decisions:
- Partial unique index on (user_id, event_id) for non-cancelled rows: one
  active booking per user per event, rebooking allowed after cancellation
- Status field allows cancellation without deleting records
- ticket_count allows multi-ticket bookings in one transaction
"""

import enum

from sqlalchemy import CheckConstraint, Column, Enum, ForeignKey, Index, Integer, text

from booking_engine.db.base import Base, TimestampMixin

ACTIVE_BOOKING = text("status <> 'cancelled'")


class BookingStatus(str, enum.Enum):
    PENDING = "pending"  # reserved for asynchronous confirmation flows
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class Booking(Base, TimestampMixin):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)
    ticket_count = Column(Integer, nullable=False, default=1)
    status = Column(
        Enum(BookingStatus, name="booking_status", native_enum=False, length=20,
             values_callable=lambda statuses: [s.value for s in statuses]),
        nullable=False,
        default=BookingStatus.CONFIRMED,
    )

    __table_args__ = (
        # One active booking per user per event
        Index(
            "uq_active_user_event_booking",
            "user_id", "event_id",
            unique=True,
            postgresql_where=ACTIVE_BOOKING,
            sqlite_where=ACTIVE_BOOKING,
        ),
        CheckConstraint("ticket_count > 0", name="check_booking_ticket_count_positive"),
        # Covers the capacity sum: bookings of one event filtered by status
        Index("ix_bookings_event_status", "event_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, user={self.user_id}, event={self.event_id}, status={self.status})>"
