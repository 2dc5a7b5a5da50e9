"""
Admission control strategy interface.
Allows swapping between different concurrency control approaches.
"""

from abc import ABC, abstractmethod
from typing import AsyncContextManager


class AdmissionStrategy(ABC):
    """
    Interface for admission control strategies.

    A strategy serializes the capacity read and the booking write for one
    event. The engine enters ``guard(event_id)`` before opening the admission
    transaction and leaves it after commit or rollback.

    Implementations:
    - LockAdmission: per-event in-process lock, single writer per event
    - RowLockAdmission: no process-local gate, rely on SELECT ... FOR UPDATE
    """

    name: str
    # True when correctness depends on the backend honoring SELECT ... FOR UPDATE
    needs_row_locks: bool = False

    @abstractmethod
    def guard(self, event_id: int) -> AsyncContextManager[None]:
        """
        Exclusive section for admission decisions on one event.

        Args:
            event_id: Event whose capacity is being claimed

        Raises:
            AdmissionBusyError: if the section could not be entered in time
        """
        ...

    def active_guards(self) -> int:
        """Number of events with a held or awaited guard."""
        return 0
