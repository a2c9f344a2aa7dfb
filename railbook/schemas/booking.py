"""
Pydantic schemas for booking-related request/response validation.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from railbook.schemas.train import TrainSummary


class BookingCreate(BaseModel):
    train_id: int = Field(..., ge=1)


class BookingResponse(BaseModel):
    id: int
    user_id: int
    train_id: int
    created_at: datetime
    train: Optional[TrainSummary] = None

    model_config = {"from_attributes": True}
