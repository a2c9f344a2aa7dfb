from railbook.schemas.user import UserCreate, UserResponse, UserLogin, Token
from railbook.schemas.train import TrainCreate, TrainResponse, TrainSummary
from railbook.schemas.booking import BookingCreate, BookingResponse

__all__ = [
    "UserCreate", "UserResponse", "UserLogin", "Token",
    "TrainCreate", "TrainResponse", "TrainSummary",
    "BookingCreate", "BookingResponse",
]
