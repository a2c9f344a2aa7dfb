"""
Train endpoints: admin creation and public route lookups.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from railbook.db.session import get_db
from railbook.schemas.train import TrainCreate, TrainResponse
from railbook.services.train_service import create_train, get_train, query_by_route
from railbook.services.cache_service import (
    get_cached_route,
    invalidate_route_cache,
    set_cached_route,
)
from railbook.core.security import require_admin
from railbook.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/trains", tags=["Trains"])


@router.post(
    "/",
    response_model=TrainResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def create_train_endpoint(
    train_data: TrainCreate,
    db: AsyncSession = Depends(get_db),
):
    """Create a train. Requires the admin key header."""
    train = await create_train(
        db,
        train_data.name,
        train_data.source,
        train_data.destination,
        train_data.total_seats,
    )
    await invalidate_route_cache()
    return train


@router.get("/", response_model=list[TrainResponse])
async def query_by_route_endpoint(
    source: str = Query(..., min_length=1),
    destination: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db),
):
    """
    Trains running from `source` to `destination` (exact match).
    Cached in Redis; the cache is dropped whenever a seat is booked.
    """
    cached = await get_cached_route(source, destination)
    if cached is not None:
        logger.info("route_cache_hit", source=source, destination=destination)
        return cached

    trains = await query_by_route(db, source, destination)
    payload = [TrainResponse.model_validate(t).model_dump(mode="json") for t in trains]
    await set_cached_route(source, destination, payload)
    return payload


@router.get("/{train_id}", response_model=TrainResponse)
async def get_train_endpoint(train_id: int, db: AsyncSession = Depends(get_db)):
    """Get a single train. Not cached, so seat counts are current."""
    return await get_train(db, train_id)
