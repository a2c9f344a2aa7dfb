"""
Booking endpoints with concurrency-safe seat reservation.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from railbook.db.session import get_db, get_session_factory
from railbook.schemas.booking import BookingCreate, BookingResponse
from railbook.services.booking_service import book_seat, get_booking, get_user_bookings
from railbook.services.cache_service import invalidate_route_cache
from railbook.core.security import Identity, get_current_identity

router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.post("/", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking_data: BookingCreate,
    identity: Identity = Depends(get_current_identity),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
):
    """
    Book one seat on a train.

    The seat counter is decremented and the booking written in one database
    transaction. When the train is full (or unknown) the request fails with
    NO_SEATS_AVAILABLE and nothing changes; there is no automatic retry.
    """
    booking = await book_seat(session_factory, identity, booking_data.train_id)
    await invalidate_route_cache()
    return booking


@router.get("/", response_model=list[BookingResponse])
async def list_user_bookings(
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    """Get all bookings for the authenticated user."""
    return await get_user_bookings(db, identity)


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking_endpoint(
    booking_id: int,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    """Get one of your bookings. Other users' bookings are reported as not found."""
    return await get_booking(db, identity, booking_id)
