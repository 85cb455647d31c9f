"""
SQLAlchemy store for weekly availability rules and date exceptions.
"""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import InfrastructureError
from models import AvailabilityException, WeeklyAvailability
from shared_types.availability import DateException, WeeklyRule
from utils.datetime_utils import format_date, format_time, parse_date_string

logger = logging.getLogger(__name__)


def _to_weekly_rule(row: WeeklyAvailability) -> WeeklyRule:
    return WeeklyRule(
        business_id=row.business_id,
        day_of_week=row.day_of_week,
        start_time=format_time(row.start_time),
        end_time=format_time(row.end_time),
        is_available=row.is_available,
    )


def _to_date_exception(row: AvailabilityException) -> DateException:
    return DateException(
        business_id=row.business_id,
        date=format_date(row.date),
        is_available=row.is_available,
        start_time=format_time(row.start_time) if row.start_time else None,
        end_time=format_time(row.end_time) if row.end_time else None,
        reason=row.reason,
    )


class AvailabilityRuleRepository:
    """Read-only access to a business's weekly hours and date exceptions."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_weekly_rule(self, business_id: str, day_of_week: int) -> Optional[WeeklyRule]:
        stmt = select(WeeklyAvailability).where(
            WeeklyAvailability.business_id == business_id,
            WeeklyAvailability.day_of_week == day_of_week,
        )
        try:
            row = (await self.db.execute(stmt)).scalars().first()
        except SQLAlchemyError as e:
            logger.exception(f"Failed to load weekly rule for business {business_id}, day {day_of_week}: {e}")
            raise InfrastructureError("Failed to load weekly availability") from e
        return _to_weekly_rule(row) if row else None

    async def get_weekly_rules(self, business_id: str) -> List[WeeklyRule]:
        stmt = select(WeeklyAvailability).where(
            WeeklyAvailability.business_id == business_id,
        ).order_by(WeeklyAvailability.day_of_week)
        try:
            rows = (await self.db.execute(stmt)).scalars().all()
        except SQLAlchemyError as e:
            logger.exception(f"Failed to load weekly rules for business {business_id}: {e}")
            raise InfrastructureError("Failed to load weekly availability") from e
        return [_to_weekly_rule(row) for row in rows]

    async def get_exception(self, business_id: str, date: str) -> Optional[DateException]:
        stmt = select(AvailabilityException).where(
            AvailabilityException.business_id == business_id,
            AvailabilityException.date == parse_date_string(date),
        )
        try:
            row = (await self.db.execute(stmt)).scalars().first()
        except SQLAlchemyError as e:
            logger.exception(f"Failed to load availability exception for business {business_id} on {date}: {e}")
            raise InfrastructureError("Failed to load availability exception") from e
        return _to_date_exception(row) if row else None

    async def get_exceptions_in_range(self, business_id: str, start_date: str, end_date: str) -> List[DateException]:
        stmt = select(AvailabilityException).where(
            AvailabilityException.business_id == business_id,
            AvailabilityException.date >= parse_date_string(start_date),
            AvailabilityException.date <= parse_date_string(end_date),
        ).order_by(AvailabilityException.date)
        try:
            rows = (await self.db.execute(stmt)).scalars().all()
        except SQLAlchemyError as e:
            logger.exception(
                f"Failed to load availability exceptions for business {business_id} "
                f"between {start_date} and {end_date}: {e}"
            )
            raise InfrastructureError("Failed to load availability exceptions") from e
        return [_to_date_exception(row) for row in rows]
