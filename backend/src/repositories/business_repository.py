"""
SQLAlchemy store for businesses, used by cache warming.
"""

import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import InfrastructureError
from models import Appointment, Business
from utils.datetime_utils import parse_date_string

logger = logging.getLogger(__name__)


class BusinessRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_active_business_ids(self) -> List[str]:
        stmt = select(Business.id).where(Business.is_active == True).order_by(Business.created_at)  # noqa: E712
        try:
            return list((await self.db.execute(stmt)).scalars().all())
        except SQLAlchemyError as e:
            logger.exception(f"Failed to load active businesses: {e}")
            raise InfrastructureError("Failed to load businesses") from e

    async def get_recently_active_business_ids(self, since_date: str) -> List[str]:
        stmt = (
            select(Business.id)
            .join(Appointment, Appointment.business_id == Business.id)
            .where(
                Business.is_active == True,  # noqa: E712
                Appointment.appointment_date >= parse_date_string(since_date),
            )
            .distinct()
            .order_by(Business.id)
        )
        try:
            return list((await self.db.execute(stmt)).scalars().all())
        except SQLAlchemyError as e:
            logger.exception(f"Failed to load recently active businesses since {since_date}: {e}")
            raise InfrastructureError("Failed to load businesses") from e
