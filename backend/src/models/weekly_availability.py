"""
Weekly availability model representing a business's recurring opening hours.

One row per business and day of week. A missing row means the business is
closed on that weekday.
"""

from datetime import time
from sqlalchemy import Integer, Boolean, ForeignKey, Time, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.database import Base


class WeeklyAvailability(Base):
    """
    Recurring open window for one day of the week.

    ``day_of_week`` uses 0=Sunday through 6=Saturday.
    """

    __tablename__ = "weekly_availability"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    business_id: Mapped[str] = mapped_column(ForeignKey("businesses.id", ondelete="CASCADE"))

    day_of_week: Mapped[int] = mapped_column(Integer)
    """Day of week (0=Sunday, 1=Monday, ..., 6=Saturday)."""

    start_time: Mapped[time] = mapped_column(Time)
    """Opening time."""

    end_time: Mapped[time] = mapped_column(Time)
    """Closing time. Must be after start_time."""

    is_available: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    """False marks the weekday closed without deleting the configured hours."""

    business = relationship("Business", back_populates="weekly_availability")

    __table_args__ = (
        UniqueConstraint('business_id', 'day_of_week', name='uq_weekly_availability_business_day'),
        CheckConstraint('day_of_week >= 0 AND day_of_week <= 6', name='check_day_of_week_range'),
        CheckConstraint('start_time < end_time', name='check_weekly_time_range'),
    )

    def __repr__(self) -> str:
        return f"<WeeklyAvailability(business_id={self.business_id}, day_of_week={self.day_of_week}, {self.start_time}-{self.end_time})>"
