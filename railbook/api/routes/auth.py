"""
Authentication endpoints: register and login.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from railbook.db.session import get_db
from railbook.schemas.user import UserCreate, UserResponse, UserLogin, Token
from railbook.services.auth_service import register_user, authenticate_user
from railbook.core.security import Authenticator, get_authenticator

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(user_data: UserCreate, db: AsyncSession = Depends(get_db)):
    """Register a new user account."""
    return await register_user(db, user_data.username, user_data.password)


@router.post("/login", response_model=Token)
async def login(
    login_data: UserLogin,
    db: AsyncSession = Depends(get_db),
    authenticator: Authenticator = Depends(get_authenticator),
):
    """Authenticate and receive a bearer session token."""
    token = await authenticate_user(db, authenticator, login_data.username, login_data.password)
    return Token(
        access_token=token,
        expires_in=int(authenticator.token_ttl.total_seconds()),
    )
