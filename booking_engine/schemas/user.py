"""
Pydantic schemas for user registration commands.
"""

from pydantic import BaseModel, EmailStr, Field

from booking_engine.models.user import UserRole


class UserCreate(BaseModel):
    email: EmailStr
    username: str = Field(..., min_length=3, max_length=100, pattern=r"^[a-zA-Z0-9_]+$")
    role: UserRole = UserRole.ATTENDEE
