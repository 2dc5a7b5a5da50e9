"""
Event model with lifecycle status and fixed capacity.

Key design decisions:
- Remaining capacity is never stored; it is summed from live bookings
- Unique constraint on (organizer_id, start_time, location) blocks duplicate listings
- Status moves DRAFT -> PUBLISHED -> CANCELLED; CANCELLED is terminal
- Index on start_time for upcoming-event queries
"""

import enum

from sqlalchemy import (
    CheckConstraint,
    Column,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)

from booking_engine.db.base import Base, TimestampMixin, UTCDateTime


class EventStatus(str, enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    CANCELLED = "cancelled"


class EventCategory(str, enum.Enum):
    CONFERENCE = "conference"
    CONCERT = "concert"
    WORKSHOP = "workshop"
    SPORTS = "sports"
    MEETUP = "meetup"
    OTHER = "other"


def _values(members):
    return [m.value for m in members]


class Event(Base, TimestampMixin):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(100), nullable=False)
    description = Column(String(2000), nullable=True)
    location = Column(String(255), nullable=False)
    start_time = Column(UTCDateTime(), nullable=False)
    end_time = Column(UTCDateTime(), nullable=False)
    capacity = Column(Integer, nullable=False)
    ticket_price = Column(Numeric(10, 2), nullable=False, default=0)
    category = Column(
        Enum(EventCategory, name="event_category", native_enum=False, length=20,
             values_callable=_values),
        nullable=False,
        default=EventCategory.OTHER,
    )
    status = Column(
        Enum(EventStatus, name="event_status", native_enum=False, length=20,
             values_callable=_values),
        nullable=False,
        default=EventStatus.DRAFT,
        index=True,
    )
    organizer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    __table_args__ = (
        UniqueConstraint(
            "organizer_id", "start_time", "location",
            name="uq_event_organizer_start_location",
        ),
        CheckConstraint("end_time > start_time", name="check_event_dates"),
        CheckConstraint("capacity > 0", name="check_event_capacity_positive"),
        CheckConstraint("ticket_price >= 0", name="check_event_price_non_negative"),
        Index("ix_events_start_time", "start_time"),
    )

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, title={self.title}, status={self.status}, capacity={self.capacity})>"
