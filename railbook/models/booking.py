"""
Booking model: one row per seat claimed from a train's counter.

Rows are written only inside the booking engine's transaction, together with
the decrement they account for, and are never updated afterwards.
"""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, func
from sqlalchemy.orm import relationship

from railbook.db.base import Base


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    train_id = Column(Integer, ForeignKey("trains.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Display metadata for booking reads; joined so it loads without lazy IO
    train = relationship("Train", lazy="joined")

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, user={self.user_id}, train={self.train_id})>"
