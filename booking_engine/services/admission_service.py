"""
Admission control service for same-event contention.
Implements AdmissionStrategy with one asyncio.Lock per event.

Single-writer per event:
  The lock is held from the first read of the event through the commit of
  the booking, so two admission checks for one event can never both observe
  the same remaining capacity. Different events get different locks and never
  wait on each other.

Bounded waiting:
  Acquisition gives up after ADMISSION_LOCK_TIMEOUT seconds and the request
  is rejected with AdmissionBusyError instead of queueing forever.

Lock table hygiene:
  A lock entry lives only while someone holds or waits for it; the last
  caller out removes it, so the table does not grow with the event catalogue.
"""

import asyncio
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator

from booking_engine.core.errors import AdmissionBusyError
from booking_engine.core.logging import get_logger
from booking_engine.core.metrics import admission_lock_wait, admission_timeouts
from booking_engine.services.interfaces.admission import AdmissionStrategy

logger = get_logger(__name__)


class LockAdmission(AdmissionStrategy):
    """
    In-process per-event lock.

    Use when:
    - One engine process owns admission for its events
    - Tests and local runs on SQLite
    """

    name = "lock"

    def __init__(self, timeout: float = 5.0):
        self.timeout = timeout
        self._locks: dict[int, asyncio.Lock] = {}
        self._users: dict[int, int] = {}

    @asynccontextmanager
    async def guard(self, event_id: int) -> AsyncIterator[None]:
        lock = self._locks.setdefault(event_id, asyncio.Lock())
        self._users[event_id] = self._users.get(event_id, 0) + 1
        try:
            started = time.perf_counter()
            try:
                await asyncio.wait_for(lock.acquire(), timeout=self.timeout)
            except asyncio.TimeoutError:
                admission_timeouts.inc()
                logger.warning("admission_guard_timeout", event_id=event_id, timeout=self.timeout)
                raise AdmissionBusyError(event_id, self.timeout)
            admission_lock_wait.observe(time.perf_counter() - started)
            try:
                yield
            finally:
                lock.release()
        finally:
            self._users[event_id] -= 1
            if not self._users[event_id]:
                del self._users[event_id]
                del self._locks[event_id]

    def active_guards(self) -> int:
        return len(self._locks)
