"""
Tests for the seat allocation transaction itself, below the HTTP layer.

Each book_seat call opens its own session, so asyncio.gather() here behaves
like concurrent requests hitting separate connections.
"""

import asyncio

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from railbook.core.exceptions import NoSeatsAvailable, NotFound, StorageError
from railbook.core.security import Identity
from railbook.models import Booking
from railbook.services.booking_service import book_seat, get_booking, get_user_bookings


def _identity(user) -> Identity:
    return Identity(user_id=user.id, username=user.username)


async def _all_bookings(session_factory) -> list[tuple]:
    async with session_factory() as session:
        result = await session.execute(select(Booking).order_by(Booking.id))
        return [(b.id, b.user_id, b.train_id, b.created_at) for b in result.scalars().all()]


@pytest.mark.asyncio
async def test_concurrent_requests_for_last_seat(
    session_factory, test_user, last_seat_train, seat_snapshot
):
    """N concurrent bookings on one free seat: exactly one wins."""
    attempts = 10
    identity = _identity(test_user)

    results = await asyncio.gather(
        *(book_seat(session_factory, identity, last_seat_train.id) for _ in range(attempts)),
        return_exceptions=True,
    )

    successes = [r for r in results if isinstance(r, Booking)]
    rejected = [r for r in results if isinstance(r, NoSeatsAvailable)]
    assert len(successes) == 1
    assert len(rejected) == attempts - 1
    assert await seat_snapshot(last_seat_train.id) == (0, 1, 1)


@pytest.mark.asyncio
async def test_concurrent_requests_never_oversell(
    session_factory, test_user, other_user, test_train, seat_snapshot
):
    users = [_identity(test_user), _identity(other_user)]

    results = await asyncio.gather(
        *(book_seat(session_factory, users[i % 2], test_train.id) for i in range(8)),
        return_exceptions=True,
    )

    assert sum(isinstance(r, Booking) for r in results) == 2
    assert sum(isinstance(r, NoSeatsAvailable) for r in results) == 6
    available, total, booked = await seat_snapshot(test_train.id)
    assert available == 0
    assert available + booked == total


@pytest.mark.asyncio
async def test_accounting_invariant_holds_after_each_booking(
    session_factory, test_user, test_train, seat_snapshot
):
    identity = _identity(test_user)

    for _ in range(test_train.total_seats):
        await book_seat(session_factory, identity, test_train.id)
        available, total, booked = await seat_snapshot(test_train.id)
        assert 0 <= available <= total
        assert available + booked == total

    with pytest.raises(NoSeatsAvailable):
        await book_seat(session_factory, identity, test_train.id)
    assert await seat_snapshot(test_train.id) == (0, 2, 2)


@pytest.mark.asyncio
async def test_rejected_booking_changes_nothing(
    session_factory, test_user, sold_out_train, test_train, seat_snapshot
):
    identity = _identity(test_user)
    await book_seat(session_factory, identity, test_train.id)

    before_counter = await seat_snapshot(sold_out_train.id)
    before_rows = await _all_bookings(session_factory)

    with pytest.raises(NoSeatsAvailable):
        await book_seat(session_factory, identity, sold_out_train.id)

    assert await seat_snapshot(sold_out_train.id) == before_counter
    assert await _all_bookings(session_factory) == before_rows


@pytest.mark.asyncio
async def test_unknown_train_is_no_seats(session_factory, test_user):
    with pytest.raises(NoSeatsAvailable):
        await book_seat(session_factory, _identity(test_user), 424242)
    assert await _all_bookings(session_factory) == []


@pytest.mark.asyncio
async def test_insert_failure_rolls_back_decrement(session_factory, test_train, seat_snapshot):
    """A failure after the decrement leaves neither the decrement nor a booking behind."""
    # user_id NULL violates NOT NULL on insert, after the UPDATE has run
    broken = Identity(user_id=None, username="ghost")

    with pytest.raises(StorageError) as excinfo:
        await book_seat(session_factory, broken, test_train.id)

    assert "NOT NULL" not in excinfo.value.message
    assert excinfo.value.code == "STORAGE_ERROR"
    assert await seat_snapshot(test_train.id) == (2, 2, 0)


@pytest.mark.asyncio
async def test_caller_timeout_rolls_back_decrement(
    monkeypatch, session_factory, test_user, test_train, seat_snapshot
):
    """A caller that gives up mid-transaction leaves no decrement and no booking."""
    async def stalled_flush(self, *args, **kwargs):
        await asyncio.sleep(5)

    identity = _identity(test_user)
    monkeypatch.setattr(AsyncSession, "flush", stalled_flush)

    with pytest.raises(asyncio.TimeoutError):
        await asyncio.wait_for(book_seat(session_factory, identity, test_train.id), 0.2)

    monkeypatch.undo()
    assert await seat_snapshot(test_train.id) == (2, 2, 0)

    # The connection went back to the pool; the next booking goes through
    await book_seat(session_factory, identity, test_train.id)
    assert await seat_snapshot(test_train.id) == (1, 2, 1)


@pytest.mark.asyncio
async def test_get_booking_is_owner_scoped(
    session_factory, db_session, test_user, other_user, test_train
):
    booking = await book_seat(session_factory, _identity(test_user), test_train.id)

    found = await get_booking(db_session, _identity(test_user), booking.id)
    assert found.id == booking.id
    assert found.train.name == "Express1"

    with pytest.raises(NotFound):
        await get_booking(db_session, _identity(other_user), booking.id)


@pytest.mark.asyncio
async def test_user_bookings_newest_first(session_factory, db_session, test_user, test_train):
    identity = _identity(test_user)
    first = await book_seat(session_factory, identity, test_train.id)
    second = await book_seat(session_factory, identity, test_train.id)

    bookings = await get_user_bookings(db_session, identity)
    assert [b.id for b in bookings] == [second.id, first.id]
