"""
Availability exception model representing a date-specific override.

Exceptions take precedence over the weekly schedule for their date: a closed
exception (holiday) removes the whole day, an open exception with hours
replaces the weekly window, and an open exception without hours falls back
to the weekly window.
"""

from datetime import date as date_type, time
from typing import Optional
from sqlalchemy import String, Boolean, ForeignKey, Date, Time, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.database import Base


class AvailabilityException(Base):
    """Date-specific override of a business's weekly availability."""

    __tablename__ = "availability_exceptions"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    business_id: Mapped[str] = mapped_column(ForeignKey("businesses.id", ondelete="CASCADE"))

    date: Mapped[date_type] = mapped_column(Date)
    """The calendar date this exception applies to."""

    is_available: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    """False closes the business for the whole date."""

    start_time: Mapped[Optional[time]] = mapped_column(Time, nullable=True)
    """Special opening time. Only meaningful when is_available is True."""

    end_time: Mapped[Optional[time]] = mapped_column(Time, nullable=True)
    """Special closing time. Only meaningful when is_available is True."""

    reason: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    """Free-form note, e.g. "Public holiday"."""

    business = relationship("Business", back_populates="availability_exceptions")

    __table_args__ = (
        UniqueConstraint('business_id', 'date', name='uq_availability_exception_business_date'),
    )

    def __repr__(self) -> str:
        return f"<AvailabilityException(business_id={self.business_id}, date={self.date}, is_available={self.is_available})>"
