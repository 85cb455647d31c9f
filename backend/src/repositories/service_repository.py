"""
SQLAlchemy store for bookable services.
"""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import InfrastructureError
from models import Service
from shared_types.availability import ServiceInfo

logger = logging.getLogger(__name__)


def _to_service_info(row: Service) -> ServiceInfo:
    return ServiceInfo(
        id=row.id,
        business_id=row.business_id,
        name=row.name,
        duration=row.duration,
        price=row.price,
        is_active=row.is_active,
    )


class ServiceRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_active_service(self, business_id: str, service_id: str) -> Optional[ServiceInfo]:
        stmt = select(Service).where(
            Service.id == service_id,
            Service.business_id == business_id,
            Service.is_active == True,  # noqa: E712
        )
        try:
            row = (await self.db.execute(stmt)).scalars().first()
        except SQLAlchemyError as e:
            logger.exception(f"Failed to load service {service_id} for business {business_id}: {e}")
            raise InfrastructureError("Failed to load service") from e
        return _to_service_info(row) if row else None

    async def get_active_services(self, business_id: str) -> List[ServiceInfo]:
        stmt = select(Service).where(
            Service.business_id == business_id,
            Service.is_active == True,  # noqa: E712
        ).order_by(Service.name)
        try:
            rows = (await self.db.execute(stmt)).scalars().all()
        except SQLAlchemyError as e:
            logger.exception(f"Failed to load services for business {business_id}: {e}")
            raise InfrastructureError("Failed to load services") from e
        return [_to_service_info(row) for row in rows]
