from booking_engine.models.user import User, UserRole
from booking_engine.models.event import Event, EventCategory, EventStatus
from booking_engine.models.booking import Booking, BookingStatus

__all__ = [
    "User", "UserRole",
    "Event", "EventCategory", "EventStatus",
    "Booking", "BookingStatus",
]
