"""
Train catalog: admin-created trains and public route lookups.

Nothing here writes available_seats after creation; see booking_service.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from railbook.core.exceptions import InvalidInput, NotFound
from railbook.core.logging import get_logger
from railbook.models.train import Train

logger = get_logger(__name__)


async def create_train(
    db: AsyncSession,
    name: str,
    source: str,
    destination: str,
    total_seats: int,
) -> Train:
    """Create a train with every seat available."""
    if not all(value and value.strip() for value in (name, source, destination)):
        raise InvalidInput("name, source and destination are required")
    if total_seats is None or total_seats < 1:
        raise InvalidInput("total_seats must be at least 1")

    train = Train(
        name=name,
        source=source,
        destination=destination,
        total_seats=total_seats,
        available_seats=total_seats,
    )
    db.add(train)
    await db.flush()
    await db.refresh(train)
    await db.commit()

    logger.info(
        "train_created",
        train_id=train.id,
        source=train.source,
        destination=train.destination,
        seats=train.total_seats,
    )
    return train


async def query_by_route(db: AsyncSession, source: str, destination: str) -> list[Train]:
    """Exact, case-sensitive match on source and destination. Uses ix_trains_route."""
    result = await db.execute(
        select(Train)
        .where(Train.source == source, Train.destination == destination)
        .order_by(Train.id.asc())
    )
    return list(result.scalars().all())


async def get_train(db: AsyncSession, train_id: int) -> Train:
    result = await db.execute(select(Train).where(Train.id == train_id))
    train = result.scalar_one_or_none()

    if not train:
        raise NotFound(f"Train {train_id} not found")
    return train
