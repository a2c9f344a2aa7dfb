"""
Pydantic schemas for train-related request/response validation.
"""

from datetime import datetime
from pydantic import BaseModel, Field


class TrainCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    source: str = Field(..., min_length=1, max_length=255)
    destination: str = Field(..., min_length=1, max_length=255)
    total_seats: int = Field(..., ge=1, le=100000)


class TrainSummary(BaseModel):
    id: int
    name: str
    source: str
    destination: str

    model_config = {"from_attributes": True}


class TrainResponse(TrainSummary):
    total_seats: int
    available_seats: int
    created_at: datetime
