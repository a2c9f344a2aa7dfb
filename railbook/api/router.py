"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from railbook.api.routes import auth, trains, bookings

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(auth.router)
api_router.include_router(trains.router)
api_router.include_router(bookings.router)
