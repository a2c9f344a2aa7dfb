"""
Train model with the seat counter.

Key design decisions:
- `available_seats` is the only mutable shared state in the system. It is
  changed solely by the booking engine's conditional UPDATE, never by
  loading the row and writing it back.
- CHECK constraints keep 0 <= available_seats <= total_seats even if a
  buggy writer slips through.
- Composite index on (source, destination) serves the route query.
"""

from sqlalchemy import CheckConstraint, Column, Index, Integer, String

from railbook.db.base import Base, TimestampMixin


class Train(Base, TimestampMixin):
    __tablename__ = "trains"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    source = Column(String(255), nullable=False)
    destination = Column(String(255), nullable=False)
    total_seats = Column(Integer, nullable=False)
    available_seats = Column(Integer, nullable=False)

    __table_args__ = (
        CheckConstraint("total_seats > 0", name="check_total_seats_positive"),
        CheckConstraint("available_seats >= 0", name="check_available_seats_non_negative"),
        CheckConstraint("available_seats <= total_seats", name="check_available_lte_total"),
        Index("ix_trains_route", "source", "destination"),
    )

    def __repr__(self) -> str:
        return (
            f"<Train(id={self.id}, name={self.name}, "
            f"available={self.available_seats}/{self.total_seats})>"
        )
