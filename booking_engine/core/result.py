"""
Tagged results returned across the engine boundary.

Every lifecycle and admission operation answers ``Ok(value)`` or
``Err(error)``; callers branch on ``is_ok`` (or ``isinstance``) instead of
catching exceptions.
"""

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from booking_engine.core.errors import DomainError, ErrorCode, ErrorKind

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def is_ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    error: DomainError

    @property
    def is_ok(self) -> bool:
        return False

    @property
    def code(self) -> ErrorCode:
        return self.error.code

    @property
    def kind(self) -> ErrorKind:
        return self.error.kind

    def unwrap(self):
        raise self.error


Result = Union[Ok[T], Err]
