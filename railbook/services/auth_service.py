"""
Authentication service handling user registration and login.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from railbook.models.user import User
from railbook.core.exceptions import DuplicateUser, InvalidCredentials, InvalidInput
from railbook.core.security import (
    BCRYPT_MAX_BYTES,
    Authenticator,
    hash_password,
    verify_password,
)
from railbook.core.logging import get_logger
from railbook.core.metrics import record_auth_event
from railbook.services.user_service import create_user, get_user_by_username

logger = get_logger(__name__)


async def register_user(db: AsyncSession, username: str, password: str) -> User:
    """
    Register a new user with a hashed password.
    Raises InvalidInput for blank fields, DuplicateUser if the name is taken.
    """
    if not username or not username.strip() or not password:
        raise InvalidInput("Username and password are required")
    if len(password.encode("utf-8")) > BCRYPT_MAX_BYTES:
        raise InvalidInput(f"Password must be at most {BCRYPT_MAX_BYTES} bytes")

    if await get_user_by_username(db, username) is not None:
        logger.warning("registration_failed", reason="username_exists", username=username)
        raise DuplicateUser()

    # bcrypt is CPU bound; keep it off the event loop
    hashed = await run_in_threadpool(hash_password, password)
    try:
        user = await create_user(db, username, hashed)
    except DuplicateUser:
        logger.warning("registration_failed", reason="username_race", username=username)
        raise

    record_auth_event("registered")
    logger.info("user_registered", user_id=user.id, username=user.username)
    return user


async def authenticate_user(
    db: AsyncSession,
    authenticator: Authenticator,
    username: str,
    password: str,
) -> str:
    """
    Check credentials and return a session token.
    Unknown user and wrong password raise the same InvalidCredentials.
    """
    user = await get_user_by_username(db, username)

    if not user or not await run_in_threadpool(verify_password, password, user.hashed_password):
        record_auth_event("login_failed")
        logger.warning("login_failed", username=username)
        raise InvalidCredentials()

    token = authenticator.issue_token(user.id, user.username)
    record_auth_event("login_success")
    logger.info("user_logged_in", user_id=user.id)
    return token
