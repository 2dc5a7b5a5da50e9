"""
User model. The role decides which lifecycle operations a user may drive.
"""

import enum

from sqlalchemy import Column, Enum, Integer, String

from booking_engine.db.base import Base, TimestampMixin


class UserRole(str, enum.Enum):
    ATTENDEE = "attendee"
    ORGANIZER = "organizer"
    ADMINISTRATOR = "administrator"


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    username = Column(String(100), nullable=False)
    role = Column(
        Enum(UserRole, name="user_role", native_enum=False, length=20,
             values_callable=lambda roles: [r.value for r in roles]),
        nullable=False,
        default=UserRole.ATTENDEE,
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
