"""
Pydantic schemas for event commands.

These reject malformed input at the edge; the event service re-checks the
same invariants before writing.
"""

from decimal import Decimal
from typing import Optional

from pydantic import AwareDatetime, BaseModel, Field, model_validator

from booking_engine.models.event import EventCategory


class EventCreate(BaseModel):
    title: str = Field(..., min_length=3, max_length=100)
    description: Optional[str] = Field(None, max_length=2000)
    location: str = Field(..., min_length=1, max_length=255)
    start_time: AwareDatetime
    end_time: AwareDatetime
    capacity: int = Field(..., gt=0)
    ticket_price: Decimal = Field(Decimal("0"), ge=0, max_digits=10, decimal_places=2)
    category: EventCategory = EventCategory.OTHER

    @model_validator(mode="after")
    def check_dates(self) -> "EventCreate":
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class EventUpdate(BaseModel):
    """Partial update: only fields explicitly set are applied."""

    title: Optional[str] = Field(None, min_length=3, max_length=100)
    description: Optional[str] = Field(None, max_length=2000)
    location: Optional[str] = Field(None, min_length=1, max_length=255)
    start_time: Optional[AwareDatetime] = None
    end_time: Optional[AwareDatetime] = None
    capacity: Optional[int] = Field(None, gt=0)
    ticket_price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    category: Optional[EventCategory] = None

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)
