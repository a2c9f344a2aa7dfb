"""
Identity store: persistence of user credentials by username.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from railbook.core.exceptions import DuplicateUser
from railbook.models.user import User


async def get_user_by_username(db: AsyncSession, username: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


async def create_user(db: AsyncSession, username: str, hashed_password: str) -> User:
    """
    Insert a user row and commit it.
    The unique index on username decides races between concurrent registrations.
    """
    user = User(username=username, hashed_password=hashed_password)
    db.add(user)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise DuplicateUser()
    await db.refresh(user)
    await db.commit()
    return user
