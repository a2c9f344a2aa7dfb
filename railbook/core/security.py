"""
Password hashing, session tokens and the admin capability check.

Session tokens are HS256 JWTs carrying the user id, username and issue time.
They verify by signature and expiry alone, without a database lookup.

The Authenticator receives its signing key and admin key at construction.
get_authenticator() builds the process-wide instance once from settings, so
neither secret is read again while serving requests.
"""

import hmac
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional

import bcrypt
import jwt
from fastapi import Depends
from fastapi.security import APIKeyHeader, HTTPAuthorizationCredentials, HTTPBearer

from railbook.core.config import get_settings
from railbook.core.exceptions import Forbidden, InvalidToken, Unauthenticated
from railbook.core.logging import get_logger
from railbook.core.metrics import record_auth_event

logger = get_logger(__name__)
settings = get_settings()

BCRYPT_MAX_BYTES = 72


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # Over-long input or a corrupt stored hash
        return False


@dataclass(frozen=True)
class Identity:
    """The verified caller behind a session token."""

    user_id: int
    username: str


class Authenticator:
    def __init__(
        self,
        secret_key: str,
        admin_api_key: str,
        algorithm: str = "HS256",
        token_ttl: timedelta = timedelta(hours=1),
    ):
        self._secret_key = secret_key
        self._admin_api_key = admin_api_key.encode("utf-8")
        self.algorithm = algorithm
        self.token_ttl = token_ttl

    def issue_token(self, user_id: int, username: str, now: Optional[datetime] = None) -> str:
        issued_at = now or datetime.now(timezone.utc)
        claims = {
            "sub": str(user_id),
            "username": username,
            "iat": issued_at,
            "exp": issued_at + self.token_ttl,
        }
        return jwt.encode(claims, self._secret_key, algorithm=self.algorithm)

    def verify_session(self, token: Optional[str]) -> Identity:
        """
        Decode and check a session token.

        Missing or structurally malformed tokens raise Unauthenticated.
        Bad signatures, expired tokens and tokens without the expected claims
        raise InvalidToken.
        """
        if not token:
            raise Unauthenticated()

        try:
            claims = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self.algorithm],
                options={"require": ["sub", "iat", "exp"]},
            )
        except jwt.ExpiredSignatureError:
            raise InvalidToken("Token has expired")
        except jwt.InvalidSignatureError:
            raise InvalidToken()
        except jwt.DecodeError:
            raise Unauthenticated("Malformed token")
        except jwt.InvalidTokenError:
            raise InvalidToken()

        username = claims.get("username")
        try:
            user_id = int(claims["sub"])
        except (TypeError, ValueError):
            raise InvalidToken()
        if not username:
            raise InvalidToken()

        return Identity(user_id=user_id, username=username)

    def verify_admin_capability(self, provided_key: Optional[str]) -> None:
        if not provided_key or not hmac.compare_digest(
            provided_key.encode("utf-8"), self._admin_api_key
        ):
            record_auth_event("admin_denied")
            logger.warning("admin_key_rejected", key_present=bool(provided_key))
            raise Forbidden("Invalid admin key")


@lru_cache()
def get_authenticator() -> Authenticator:
    return Authenticator(
        secret_key=settings.SECRET_KEY,
        admin_api_key=settings.ADMIN_API_KEY,
        algorithm=settings.ALGORITHM,
        token_ttl=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )


bearer_scheme = HTTPBearer(auto_error=False)
admin_key_header = APIKeyHeader(name=settings.ADMIN_KEY_HEADER, auto_error=False)


def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    authenticator: Authenticator = Depends(get_authenticator),
) -> Identity:
    """Resolve the caller from `Authorization: Bearer <token>`."""
    if credentials is None:
        raise Unauthenticated()
    return authenticator.verify_session(credentials.credentials)


def require_admin(
    provided_key: Optional[str] = Depends(admin_key_header),
    authenticator: Authenticator = Depends(get_authenticator),
) -> None:
    authenticator.verify_admin_capability(provided_key)
