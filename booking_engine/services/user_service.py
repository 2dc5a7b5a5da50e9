"""
User registry: the identity resolver the lifecycle services look actors up in.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from booking_engine.core.errors import RoleNotPermittedError, UserAlreadyExistsError
from booking_engine.core.logging import get_logger
from booking_engine.models.user import User, UserRole
from booking_engine.schemas.user import UserCreate

logger = get_logger(__name__)


async def register_user(db: AsyncSession, user_data: UserCreate) -> User:
    """
    Register a new user.
    Administrators are never self-registered; emails are unique.
    """
    if user_data.role == UserRole.ADMINISTRATOR:
        logger.warning("registration_failed", reason="admin_role", email=user_data.email)
        raise RoleNotPermittedError(None, user_data.role.value, "attendee or organizer")

    if await find_user_by_email(db, user_data.email):
        logger.warning("registration_failed", reason="email_exists", email=user_data.email)
        raise UserAlreadyExistsError(user_data.email)

    user = User(
        email=user_data.email,
        username=user_data.username,
        role=user_data.role,
    )
    db.add(user)
    try:
        await db.flush()
    except IntegrityError:
        # Lost a race with a concurrent registration of the same email
        raise UserAlreadyExistsError(user_data.email) from None

    logger.info("user_registered", user_id=user.id, role=user.role.value)
    return user


async def get_user(db: AsyncSession, user_id: int) -> Optional[User]:
    return await db.get(User, user_id)


async def find_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def list_users(db: AsyncSession) -> list[User]:
    result = await db.execute(select(User).order_by(User.id))
    return list(result.scalars().all())
