"""
Row-lock admission strategy - no process-local gate.
Relies entirely on the database row lock taken on the event.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from booking_engine.services.interfaces.admission import AdmissionStrategy


class RowLockAdmission(AdmissionStrategy):
    """
    No in-process serialization - always enter.
    The admission transaction locks the event row with SELECT ... FOR UPDATE,
    which serializes writers across processes.

    Use when:
    - Several engine processes share one PostgreSQL database
    - The backend honors FOR UPDATE (SQLite does not)
    """

    name = "row_lock"
    needs_row_locks = True

    @asynccontextmanager
    async def guard(self, event_id: int) -> AsyncIterator[None]:
        yield
