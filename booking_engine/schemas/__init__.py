from booking_engine.schemas.user import UserCreate
from booking_engine.schemas.event import EventCreate, EventUpdate

__all__ = [
    "UserCreate",
    "EventCreate", "EventUpdate",
]
