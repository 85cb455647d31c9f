"""
Service model representing a bookable offering of a business.

The service duration drives slot generation: every candidate slot is exactly
``duration`` minutes long.
"""

from datetime import datetime
from typing import Optional
from sqlalchemy import String, Integer, Boolean, ForeignKey, Index, TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.database import Base
from models.business import generate_uuid


class Service(Base):
    """Service entity with a fixed duration and price."""

    __tablename__ = "services"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)

    business_id: Mapped[str] = mapped_column(ForeignKey("businesses.id", ondelete="CASCADE"))
    """Reference to the business offering this service."""

    name: Mapped[str] = mapped_column(String(255))

    description: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)

    duration: Mapped[int] = mapped_column(Integer)
    """Duration of one appointment in minutes (positive)."""

    price: Mapped[int] = mapped_column(Integer, default=0)
    """Price in cents. Snapshotted onto appointments at booking time."""

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    """Inactive services are never bookable."""

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True))
    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True))

    business = relationship("Business", back_populates="services")

    __table_args__ = (
        Index('idx_services_business_active', 'business_id', 'is_active'),
    )

    def __repr__(self) -> str:
        return f"<Service(id={self.id}, business_id={self.business_id}, duration={self.duration})>"
