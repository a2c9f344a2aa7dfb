"""
Pytest fixtures for test database, client, and authentication.

Each test gets a fresh file-backed SQLite database (set TEST_DATABASE_URL to
run against PostgreSQL instead). A file rather than :memory: so concurrent
sessions use separate connections and really contend on the seat counter.
"""

import os

# Must be set before railbook.core.config is first imported
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("ADMIN_API_KEY", "test-admin-key-0123456789abcdef0123")
os.environ.setdefault("SECRET_KEY", "test-signing-key-0123456789abcdef0123456789")
os.environ.setdefault("ENVIRONMENT", "test")

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from railbook.main import app
from railbook.core.config import get_settings
from railbook.core.security import get_authenticator, hash_password
from railbook.db.base import Base
from railbook.db.session import get_session_factory
from railbook.models import Booking, Train, User


@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path):
    url = os.environ.get("TEST_DATABASE_URL") or f"sqlite+aiosqlite:///{tmp_path / 'railbook.db'}"
    connect_args = {"timeout": 30} if url.startswith("sqlite") else {}
    test_engine = create_async_engine(url, echo=False, connect_args=connect_args)

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client whose requests run against the per-test database."""
    app.dependency_overrides[get_session_factory] = lambda: session_factory

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def _make_user(session_factory, username: str, password: str) -> User:
    async with session_factory() as session:
        user = User(username=username, hashed_password=hash_password(password))
        session.add(user)
        await session.commit()
        await session.refresh(user)
        return user


@pytest_asyncio.fixture
async def test_user(session_factory) -> User:
    return await _make_user(session_factory, "alice", "alicepassword")


@pytest_asyncio.fixture
async def other_user(session_factory) -> User:
    return await _make_user(session_factory, "bob", "bobpassword")


def _bearer(user: User) -> dict:
    token = get_authenticator().issue_token(user.id, user.username)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(test_user: User) -> dict:
    return _bearer(test_user)


@pytest.fixture
def other_auth_headers(other_user: User) -> dict:
    return _bearer(other_user)


@pytest.fixture
def admin_headers() -> dict:
    settings = get_settings()
    return {settings.ADMIN_KEY_HEADER: settings.ADMIN_API_KEY}


async def _make_train(session_factory, total: int, available: int, **fields) -> Train:
    async with session_factory() as session:
        train = Train(
            name=fields.get("name", "Express1"),
            source=fields.get("source", "A"),
            destination=fields.get("destination", "B"),
            total_seats=total,
            available_seats=available,
        )
        session.add(train)
        await session.commit()
        await session.refresh(train)
        return train


@pytest_asyncio.fixture
async def test_train(session_factory) -> Train:
    """A train with 2 free seats on route A -> B."""
    return await _make_train(session_factory, total=2, available=2)


@pytest_asyncio.fixture
async def last_seat_train(session_factory) -> Train:
    return await _make_train(session_factory, total=1, available=1, name="LastSeat")


@pytest_asyncio.fixture
async def sold_out_train(session_factory) -> Train:
    return await _make_train(session_factory, total=50, available=0, name="SoldOut")


@pytest.fixture
def seat_snapshot(session_factory):
    """Returns an async callable giving (available_seats, total_seats, booking count)."""

    async def _snapshot(train_id: int) -> tuple[int, int, int]:
        async with session_factory() as session:
            train = (await session.execute(select(Train).where(Train.id == train_id))).scalar_one()
            count = (
                await session.execute(
                    select(func.count()).select_from(Booking).where(Booking.train_id == train_id)
                )
            ).scalar_one()
            return train.available_seats, train.total_seats, count

    return _snapshot
