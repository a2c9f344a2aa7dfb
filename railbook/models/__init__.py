from railbook.models.user import User
from railbook.models.train import Train
from railbook.models.booking import Booking

__all__ = ["User", "Train", "Booking"]
