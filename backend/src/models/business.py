"""
Business model representing a tenant of the booking platform.

Every service, availability rule, exception and appointment is scoped to a
business. Inactive businesses keep their data but are skipped by cache
warming.
"""

import uuid
from datetime import datetime
from sqlalchemy import String, Boolean, TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.database import Base


def generate_uuid() -> str:
    return str(uuid.uuid4())


class Business(Base):
    """Business entity owning services, weekly hours and appointments."""

    __tablename__ = "businesses"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    """Unique identifier (UUID string)."""

    name: Mapped[str] = mapped_column(String(255))
    """Display name of the business."""

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    """Whether the business currently accepts bookings."""

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True))
    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True))

    services = relationship("Service", back_populates="business", cascade="all, delete-orphan")
    weekly_availability = relationship("WeeklyAvailability", back_populates="business", cascade="all, delete-orphan")
    availability_exceptions = relationship("AvailabilityException", back_populates="business", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<Business(id={self.id}, name='{self.name}', is_active={self.is_active})>"
