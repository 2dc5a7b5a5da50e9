"""Domain error codes and typed failures for the booking engine."""

from enum import Enum
from typing import Any, Optional


class ErrorKind(Enum):
    """Broad failure categories a service shell maps to responses."""

    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    FORBIDDEN = "FORBIDDEN"
    REJECTED = "REJECTED"
    INVALID_INPUT = "INVALID_INPUT"


class ErrorCode(Enum):
    """Domain error codes."""

    ACTOR_NOT_FOUND = "ACTOR_NOT_FOUND"
    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    BOOKING_NOT_FOUND = "BOOKING_NOT_FOUND"
    DUPLICATE_EVENT = "DUPLICATE_EVENT"
    ALREADY_BOOKED = "ALREADY_BOOKED"
    USER_ALREADY_EXISTS = "USER_ALREADY_EXISTS"
    ADMISSION_BUSY = "ADMISSION_BUSY"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    ROLE_NOT_PERMITTED = "ROLE_NOT_PERMITTED"
    NOT_OWNER = "NOT_OWNER"
    EVENT_NOT_PUBLISHED = "EVENT_NOT_PUBLISHED"
    EVENT_ALREADY_STARTED = "EVENT_ALREADY_STARTED"
    SELF_BOOKING_NOT_ALLOWED = "SELF_BOOKING_NOT_ALLOWED"
    INSUFFICIENT_CAPACITY = "INSUFFICIENT_CAPACITY"
    INVALID_INPUT = "INVALID_INPUT"

    @property
    def kind(self) -> ErrorKind:
        return _KINDS[self]


_KINDS = {
    ErrorCode.ACTOR_NOT_FOUND: ErrorKind.NOT_FOUND,
    ErrorCode.EVENT_NOT_FOUND: ErrorKind.NOT_FOUND,
    ErrorCode.BOOKING_NOT_FOUND: ErrorKind.NOT_FOUND,
    ErrorCode.DUPLICATE_EVENT: ErrorKind.CONFLICT,
    ErrorCode.ALREADY_BOOKED: ErrorKind.CONFLICT,
    ErrorCode.USER_ALREADY_EXISTS: ErrorKind.CONFLICT,
    ErrorCode.ADMISSION_BUSY: ErrorKind.CONFLICT,
    ErrorCode.INVALID_TRANSITION: ErrorKind.INVALID_TRANSITION,
    ErrorCode.ROLE_NOT_PERMITTED: ErrorKind.FORBIDDEN,
    ErrorCode.NOT_OWNER: ErrorKind.FORBIDDEN,
    ErrorCode.EVENT_NOT_PUBLISHED: ErrorKind.REJECTED,
    ErrorCode.EVENT_ALREADY_STARTED: ErrorKind.REJECTED,
    ErrorCode.SELF_BOOKING_NOT_ALLOWED: ErrorKind.REJECTED,
    ErrorCode.INSUFFICIENT_CAPACITY: ErrorKind.REJECTED,
    ErrorCode.INVALID_INPUT: ErrorKind.INVALID_INPUT,
}


class DomainError(Exception):
    """Base domain error with code, message and structured context."""

    code: ErrorCode

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    @property
    def kind(self) -> ErrorKind:
        return self.code.kind

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class ActorNotFoundError(DomainError):
    code = ErrorCode.ACTOR_NOT_FOUND

    def __init__(self, user_id: int) -> None:
        super().__init__(f"User {user_id} not found", user_id=user_id)


class EventNotFoundError(DomainError):
    code = ErrorCode.EVENT_NOT_FOUND

    def __init__(self, event_id: int) -> None:
        super().__init__(f"Event {event_id} not found", event_id=event_id)


class BookingNotFoundError(DomainError):
    code = ErrorCode.BOOKING_NOT_FOUND

    def __init__(self, booking_id: int) -> None:
        super().__init__(f"Booking {booking_id} not found", booking_id=booking_id)


class DuplicateEventError(DomainError):
    """Raised when an organizer already has an event at the same start and location."""

    code = ErrorCode.DUPLICATE_EVENT

    def __init__(self, organizer_id: int, location: str) -> None:
        super().__init__(
            "An event with the same organizer, start time and location already exists",
            organizer_id=organizer_id,
            location=location,
        )


class AlreadyBookedError(DomainError):
    code = ErrorCode.ALREADY_BOOKED

    def __init__(self, user_id: int, event_id: int) -> None:
        super().__init__(
            "User already holds a booking for this event",
            user_id=user_id,
            event_id=event_id,
        )


class UserAlreadyExistsError(DomainError):
    code = ErrorCode.USER_ALREADY_EXISTS

    def __init__(self, email: str) -> None:
        super().__init__("Email already registered", email=email)


class AdmissionBusyError(DomainError):
    """Raised when the admission guard for an event could not be taken in time."""

    code = ErrorCode.ADMISSION_BUSY

    def __init__(self, event_id: int, timeout: float) -> None:
        super().__init__(
            "Booking failed due to high demand. Please try again.",
            event_id=event_id,
            timeout=timeout,
        )


class InvalidTransitionError(DomainError):
    code = ErrorCode.INVALID_TRANSITION

    def __init__(self, entity: str, entity_id: int, current: str, action: str) -> None:
        super().__init__(
            f"Cannot {action} {entity} {entity_id} while it is {current}",
            entity=entity,
            entity_id=entity_id,
            current=current,
            action=action,
        )


class RoleNotPermittedError(DomainError):
    code = ErrorCode.ROLE_NOT_PERMITTED

    def __init__(self, user_id: Optional[int], role: str, required: str) -> None:
        super().__init__(
            f"Role {role} is not permitted for this operation",
            user_id=user_id,
            role=role,
            required=required,
        )


class NotOwnerError(DomainError):
    code = ErrorCode.NOT_OWNER

    def __init__(self, user_id: int, event_id: int) -> None:
        super().__init__(
            "Only the event organizer can perform this operation",
            user_id=user_id,
            event_id=event_id,
        )


class EventNotPublishedError(DomainError):
    code = ErrorCode.EVENT_NOT_PUBLISHED

    def __init__(self, event_id: int, status: str) -> None:
        super().__init__(
            "Event is not published and cannot be booked",
            event_id=event_id,
            status=status,
        )


class EventAlreadyStartedError(DomainError):
    code = ErrorCode.EVENT_ALREADY_STARTED

    def __init__(self, event_id: int) -> None:
        super().__init__("Cannot book an event that has already started", event_id=event_id)


class SelfBookingNotAllowedError(DomainError):
    code = ErrorCode.SELF_BOOKING_NOT_ALLOWED

    def __init__(self, user_id: int, event_id: int) -> None:
        super().__init__(
            "Organizers cannot book their own events",
            user_id=user_id,
            event_id=event_id,
        )


class InsufficientCapacityError(DomainError):
    code = ErrorCode.INSUFFICIENT_CAPACITY

    def __init__(self, event_id: int, requested: int, available: int) -> None:
        super().__init__(
            f"Not enough tickets. Requested: {requested}, Available: {available}",
            event_id=event_id,
            requested=requested,
            available=available,
        )


class InvalidInputError(DomainError):
    code = ErrorCode.INVALID_INPUT

    def __init__(self, field: str, reason: str) -> None:
        super().__init__(f"Invalid {field}: {reason}", field=field)


class StorageFailure(Exception):
    """
    Unexpected persistence error.

    Not part of the domain taxonomy: it is raised, never returned as a
    result, and carries the driver error as ``__cause__``.
    """

    def __init__(self, operation: str) -> None:
        super().__init__(f"Storage failure during {operation}")
        self.operation = operation
