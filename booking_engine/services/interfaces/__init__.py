"""
Service interfaces for dependency inversion.
Allows swapping implementations without changing business logic.
"""

from .admission import AdmissionStrategy
from .row_lock_admission import RowLockAdmission

__all__ = ['AdmissionStrategy', 'RowLockAdmission']
