"""
Slot claim model enforcing non-overlapping appointments per business.

An active appointment covering ``[start, end)`` owns one row for every minute
of day in that range. The unique constraint on (business_id, appointment_date,
minute) means a second overlapping appointment fails to insert, even when two
bookers passed the conflict check concurrently.
"""

from datetime import date as date_type
from sqlalchemy import String, Integer, ForeignKey, Date, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.database import Base


class AppointmentSlotClaim(Base):
    """One claimed minute of one business's calendar."""

    __tablename__ = "appointment_slot_claims"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    business_id: Mapped[str] = mapped_column(String(36))

    appointment_date: Mapped[date_type] = mapped_column(Date)

    minute: Mapped[int] = mapped_column(Integer)
    """Minute of day (0-1439) covered by the appointment."""

    appointment_id: Mapped[str] = mapped_column(ForeignKey("appointments.id", ondelete="CASCADE"), index=True)

    appointment = relationship("Appointment", back_populates="slot_claims")

    __table_args__ = (
        UniqueConstraint('business_id', 'appointment_date', 'minute', name='uq_slot_claim_business_date_minute'),
    )
