"""
Appointment model representing a customer's booking of a service.

Only ``pending`` and ``confirmed`` appointments occupy the calendar. Each such
appointment owns one AppointmentSlotClaim row per minute it covers, which is
what makes overlapping bookings impossible at the database level.
"""

from datetime import date as date_type, datetime, time
from typing import Optional
from sqlalchemy import String, Integer, ForeignKey, Index, Date, Time, TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.database import Base
from models.business import generate_uuid


class Appointment(Base):
    """Appointment entity for one service at one business on one date."""

    __tablename__ = "appointments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)

    business_id: Mapped[str] = mapped_column(ForeignKey("businesses.id", ondelete="CASCADE"))

    service_id: Mapped[str] = mapped_column(ForeignKey("services.id"))

    service_price: Mapped[int] = mapped_column(Integer, default=0)
    """Price of the service in cents at booking time."""

    appointment_date: Mapped[date_type] = mapped_column(Date)

    start_time: Mapped[time] = mapped_column(Time)

    end_time: Mapped[time] = mapped_column(Time)
    """start_time plus the service duration."""

    status: Mapped[str] = mapped_column(String(20), default="pending")
    """Valid values: 'pending', 'confirmed', 'cancelled', 'completed'."""

    customer_name: Mapped[str] = mapped_column(String(255))
    customer_email: Mapped[str] = mapped_column(String(255))
    customer_phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    notes: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    """Optional customer-provided notes."""

    confirmation_number: Mapped[str] = mapped_column(String(8), unique=True)
    """8 uppercase alphanumeric characters shown to the customer."""

    cancelled_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True))
    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True))

    service = relationship("Service")
    slot_claims = relationship("AppointmentSlotClaim", back_populates="appointment", cascade="all, delete-orphan")

    __table_args__ = (
        Index('idx_appointments_business_date_status', 'business_id', 'appointment_date', 'status'),
    )

    def __repr__(self) -> str:
        return (
            f"<Appointment(id={self.id}, business_id={self.business_id}, "
            f"date={self.appointment_date}, time={self.start_time}-{self.end_time}, status='{self.status}')>"
        )
