"""
Admission strategy factory.
Configures which admission control strategy to use.
"""

from sqlalchemy.engine import make_url

from booking_engine.core.config import Settings
from booking_engine.services.admission_service import LockAdmission
from booking_engine.services.interfaces.admission import AdmissionStrategy
from booking_engine.services.interfaces.row_lock_admission import RowLockAdmission

# Backends that accept SELECT ... FOR UPDATE but do not lock anything
NO_ROW_LOCK_BACKENDS = {"sqlite"}


def check_backend(admission: AdmissionStrategy, backend: str) -> None:
    """
    Refuse a strategy that would leave admission unserialized on ``backend``.

    Raises:
        ValueError: if the strategy relies on row locks the backend ignores
    """
    if admission.needs_row_locks and backend in NO_ROW_LOCK_BACKENDS:
        raise ValueError(
            f"Admission strategy {admission.name!r} needs row locks, "
            f"which the {backend} backend does not provide; use 'lock'"
        )


def get_admission_strategy(settings: Settings) -> AdmissionStrategy:
    """
    Get configured admission strategy.

    - lock: per-event in-process lock (default)
    - row_lock: database row lock only, for multi-process PostgreSQL setups

    Selected via the ADMISSION_STRATEGY env var.
    """
    strategy = settings.ADMISSION_STRATEGY

    if strategy == "row_lock":
        admission = RowLockAdmission()
    elif strategy == "lock":
        admission = LockAdmission(timeout=settings.ADMISSION_LOCK_TIMEOUT)
    else:
        raise ValueError(f"Unknown ADMISSION_STRATEGY: {strategy!r}")

    check_backend(admission, make_url(settings.DATABASE_URL).get_backend_name())
    return admission
