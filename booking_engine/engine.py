"""
Booking engine boundary.

Every lifecycle and admission operation runs in its own session and
transaction and answers a Result:
- Ok(value) after commit
- Err(DomainError) after rollback, nothing partially written

Unexpected storage errors are raised as StorageFailure, never returned.
Read accessors return plain values.
"""

import time
from contextlib import nullcontext
from datetime import datetime
from typing import Awaitable, Callable, Optional, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from booking_engine.core.config import Settings, get_settings
from booking_engine.core.errors import DomainError, StorageFailure
from booking_engine.core.logging import get_logger, operation_context, setup_logging
from booking_engine.core.metrics import (
    admission_latency,
    booking_cancellations,
    record_booking_attempt,
    record_event_transition,
    record_storage_failure,
)
from booking_engine.core.result import Err, Ok, Result
from booking_engine.db.base import utcnow
from booking_engine.db.session import build_engine, build_session_factory, create_schema
from booking_engine.models import Booking, Event, EventStatus, User
from booking_engine.schemas.event import EventCreate, EventUpdate
from booking_engine.schemas.user import UserCreate
from booking_engine.services import booking_service, capacity_service, event_service, user_service
from booking_engine.services.interfaces.admission import AdmissionStrategy
from booking_engine.services.strategy_factory import check_backend, get_admission_strategy

logger = get_logger(__name__)

T = TypeVar("T")
Work = Callable[[AsyncSession], Awaitable[T]]


class BookingEngine:
    """Entry point a service shell talks to."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        admission: Optional[AdmissionStrategy] = None,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = utcnow,
        db_engine: Optional[AsyncEngine] = None,
    ):
        self.settings = settings or get_settings()
        self.admission = admission or get_admission_strategy(self.settings)
        bind = session_factory.kw.get("bind")
        if bind is not None:
            check_backend(self.admission, bind.dialect.name)
        self._session_factory = session_factory
        self._clock = clock
        self._db_engine = db_engine

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "BookingEngine":
        """Build logging, database and admission strategy from configuration."""
        settings = settings or get_settings()
        setup_logging(settings)
        admission = get_admission_strategy(settings)
        db_engine = build_engine(settings)
        engine = cls(
            build_session_factory(db_engine),
            admission=admission,
            settings=settings,
            db_engine=db_engine,
        )
        logger.info(
            "engine_started",
            app=settings.APP_NAME,
            version=settings.APP_VERSION,
            environment=settings.ENVIRONMENT,
            admission=engine.admission.name,
        )
        return engine

    async def init_schema(self) -> None:
        if self._db_engine is None:
            raise RuntimeError("init_schema needs an engine built by from_settings")
        await create_schema(self._db_engine)

    async def close(self) -> None:
        if self._db_engine is not None:
            await self._db_engine.dispose()
            logger.info("engine_shutdown")

    # Plumbing

    async def _in_transaction(self, work: Work) -> T:
        async with self._session_factory() as db:
            async with db.begin():
                return await work(db)

    async def _command(self, operation: str, work: Work, guard_event: Optional[int] = None, **context) -> Result:
        """Run a mutating operation, optionally inside an event's admission guard."""
        with operation_context(operation, **context):
            guard = self.admission.guard(guard_event) if guard_event is not None else nullcontext()
            try:
                async with guard:
                    value = await self._in_transaction(work)
            except DomainError as error:
                logger.info(
                    "operation_rejected",
                    code=error.code.value,
                    reason=error.message,
                    **error.context,
                )
                return Err(error)
            except SQLAlchemyError as exc:
                record_storage_failure(operation)
                logger.error("storage_failure", error=str(exc))
                raise StorageFailure(operation) from exc
            return Ok(value)

    async def _query(self, operation: str, work: Work) -> T:
        try:
            return await self._in_transaction(work)
        except SQLAlchemyError as exc:
            record_storage_failure(operation)
            logger.error("storage_failure", operation=operation, error=str(exc))
            raise StorageFailure(operation) from exc

    # Users

    async def register_user(self, user_data: UserCreate) -> Result[User]:
        return await self._command(
            "register_user",
            lambda db: user_service.register_user(db, user_data),
        )

    async def get_user(self, user_id: int) -> Optional[User]:
        return await self._query("get_user", lambda db: user_service.get_user(db, user_id))

    async def find_user_by_email(self, email: str) -> Optional[User]:
        return await self._query(
            "find_user_by_email", lambda db: user_service.find_user_by_email(db, email)
        )

    async def list_users(self) -> list[User]:
        return await self._query("list_users", user_service.list_users)

    # Event lifecycle

    async def create_event(self, owner_id: int, details: EventCreate) -> Result[Event]:
        result = await self._command(
            "create_event",
            lambda db: event_service.create_event(db, owner_id, details),
            owner_id=owner_id,
        )
        if result.is_ok:
            record_event_transition(EventStatus.DRAFT.value)
        return result

    async def update_event(self, event_id: int, changes: EventUpdate) -> Result[Event]:
        # Guarded: a capacity edit must not interleave with an admission decision
        return await self._command(
            "update_event",
            lambda db: event_service.update_event(
                db, event_id, changes, restrict_to_draft=self.settings.RESTRICT_EDITS_TO_DRAFT
            ),
            guard_event=event_id,
            event_id=event_id,
        )

    async def publish_event(self, event_id: int, requesting_owner_id: int) -> Result[Event]:
        result = await self._command(
            "publish_event",
            lambda db: event_service.publish_event(db, event_id, requesting_owner_id),
            event_id=event_id,
            user_id=requesting_owner_id,
        )
        if result.is_ok:
            record_event_transition(EventStatus.PUBLISHED.value)
        return result

    async def cancel_event(self, event_id: int) -> Result[None]:
        result = await self._command(
            "cancel_event",
            lambda db: event_service.cancel_event(db, event_id),
            event_id=event_id,
        )
        if not result.is_ok:
            return result
        record_event_transition(EventStatus.CANCELLED.value)
        return Ok(None)

    async def get_event(self, event_id: int) -> Optional[Event]:
        return await self._query("get_event", lambda db: event_service.get_event(db, event_id))

    async def list_events(self) -> list[Event]:
        return await self._query("list_events", event_service.list_events)

    async def list_events_by_status(self, status: EventStatus) -> list[Event]:
        return await self._query(
            "list_events_by_status", lambda db: event_service.list_events(db, status)
        )

    async def list_events_by_organizer(self, organizer_id: int) -> list[Event]:
        return await self._query(
            "list_events_by_organizer",
            lambda db: event_service.list_events_by_organizer(db, organizer_id),
        )

    async def list_upcoming_events(self) -> list[Event]:
        now = self._clock()
        return await self._query(
            "list_upcoming_events", lambda db: event_service.list_upcoming_events(db, now)
        )

    # Capacity

    async def remaining_capacity(self, event_id: int) -> Result[int]:
        async def work(db: AsyncSession) -> int:
            event = await event_service.require_event(db, event_id)
            return await capacity_service.remaining_capacity(db, event)

        return await self._command("remaining_capacity", work, event_id=event_id)

    # Bookings

    async def create_booking(self, user_id: int, event_id: int, ticket_count: int) -> Result[Booking]:
        started = time.perf_counter()
        outcome = "storage_failure"
        try:
            result = await self._command(
                "create_booking",
                lambda db: booking_service.create_booking(
                    db, user_id, event_id, ticket_count, self._clock()
                ),
                guard_event=event_id,
                user_id=user_id,
                event_id=event_id,
                tickets=ticket_count,
            )
            outcome = "confirmed" if result.is_ok else result.code.value
        finally:
            admission_latency.observe(time.perf_counter() - started)
            record_booking_attempt(outcome)
        return result

    async def cancel_booking(self, booking_id: int) -> Result[None]:
        result = await self._command(
            "cancel_booking",
            lambda db: booking_service.cancel_booking(db, booking_id),
            booking_id=booking_id,
        )
        if not result.is_ok:
            return result
        booking_cancellations.inc()
        return Ok(None)

    async def get_booking(self, booking_id: int) -> Optional[Booking]:
        return await self._query(
            "get_booking", lambda db: booking_service.get_booking(db, booking_id)
        )

    async def list_bookings_by_user(self, user_id: int) -> list[Booking]:
        return await self._query(
            "list_bookings_by_user", lambda db: booking_service.list_bookings_by_user(db, user_id)
        )

    async def list_bookings_by_event(self, event_id: int) -> list[Booking]:
        return await self._query(
            "list_bookings_by_event",
            lambda db: booking_service.list_bookings_by_event(db, event_id),
        )
