"""
Booking service: atomic seat allocation and owner-scoped booking reads.

CONCURRENCY STRATEGY: Conditional Decrement
===========================================

Problem:
  Two users try to book the last seat simultaneously.
  Both read available_seats=1, both write 0, both succeed.
  Result: Overbooking.

Solution:
  The compare-and-decrement is a single statement executed by the database:

    UPDATE trains SET available_seats = available_seats - 1
    WHERE id = :train_id AND available_seats > 0

  The database serializes concurrent UPDATEs on the same row. Under READ
  COMMITTED the second writer waits for the first to commit, then
  re-evaluates the WHERE clause against the committed row. With one seat
  left exactly one statement reports rowcount == 1; every other reports 0.

  The booking row is inserted in the same transaction as the decrement, so
  they commit or roll back together:

    available_seats + count(bookings for the train) == total_seats

  holds at every commit boundary.

  No read-modify-write in Python, no in-process lock, no retry loop. A loser
  gets a definitive NoSeatsAvailable because the seat it lost is gone.
  Because all coordination happens in the database, any number of service
  instances can run side by side.

Failure handling:
  The engine owns its transactional scope (`async with session.begin()`).
  Leaving that block by an exception, including task cancellation from a
  caller-side timeout, rolls the transaction back, and leaving the session
  block returns the connection to the pool. Storage errors are logged with
  full detail here and re-raised as an opaque StorageError.
"""

import time

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from railbook.core.exceptions import NoSeatsAvailable, NotFound, StorageError
from railbook.core.logging import get_logger
from railbook.core.metrics import booking_latency, record_booking_attempt
from railbook.core.security import Identity
from railbook.models.booking import Booking
from railbook.models.train import Train

logger = get_logger(__name__)


async def book_seat(
    session_factory: async_sessionmaker[AsyncSession],
    identity: Identity,
    train_id: int,
) -> Booking:
    """
    Claim one seat on a train for the caller.

    Returns the committed booking. Raises NoSeatsAvailable when the train is
    sold out or does not exist, StorageError on any database failure. In both
    cases nothing was written.
    """
    start = time.perf_counter()
    try:
        async with session_factory() as db:
            async with db.begin():
                result = await db.execute(
                    update(Train)
                    .where(Train.id == train_id, Train.available_seats > 0)
                    .values(available_seats=Train.available_seats - 1)
                    .execution_options(synchronize_session=False)
                )

                if result.rowcount != 1:
                    raise NoSeatsAvailable()

                booking = Booking(user_id=identity.user_id, train_id=train_id)
                db.add(booking)
                await db.flush()
                await db.refresh(booking)
            # Transaction committed on leaving db.begin()

    except NoSeatsAvailable:
        record_booking_attempt("no_seats")
        logger.info("booking_rejected_no_seats", user_id=identity.user_id, train_id=train_id)
        raise

    except (SQLAlchemyError, OSError) as e:
        # OSError: the driver failed to reach the database at all
        record_booking_attempt("error")
        logger.error(
            "booking_storage_error",
            user_id=identity.user_id,
            train_id=train_id,
            error=str(e),
            exc_info=True,
        )
        raise StorageError() from e

    finally:
        booking_latency.observe(time.perf_counter() - start)

    record_booking_attempt("success")
    logger.info(
        "booking_created",
        booking_id=booking.id,
        user_id=identity.user_id,
        train_id=train_id,
    )
    return booking


async def get_booking(db: AsyncSession, identity: Identity, booking_id: int) -> Booking:
    """
    Fetch one of the caller's bookings with its train.
    Someone else's booking is reported exactly like a missing one.
    """
    result = await db.execute(
        select(Booking).where(
            Booking.id == booking_id,
            Booking.user_id == identity.user_id,
        )
    )
    booking = result.scalar_one_or_none()

    if not booking:
        raise NotFound("Booking not found")
    return booking


async def get_user_bookings(db: AsyncSession, identity: Identity) -> list[Booking]:
    """Get all bookings for the caller, newest first."""
    result = await db.execute(
        select(Booking)
        .where(Booking.user_id == identity.user_id)
        .order_by(Booking.created_at.desc(), Booking.id.desc())
    )
    return list(result.scalars().all())
