"""
Event booking admission and lifecycle engine.

- Event lifecycle (DRAFT -> PUBLISHED -> CANCELLED) with uniqueness rules
- Capacity derived from live bookings, never stored
- Concurrency-safe admission serialized per event
- Typed results at the boundary, storage errors raised as StorageFailure
"""

from booking_engine.core.errors import DomainError, ErrorCode, ErrorKind, StorageFailure
from booking_engine.core.result import Err, Ok, Result
from booking_engine.engine import BookingEngine

__all__ = [
    "BookingEngine",
    "Ok", "Err", "Result",
    "DomainError", "ErrorCode", "ErrorKind", "StorageFailure",
]
