"""Health check backed by a database write."""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_api.models.base import utcnow
from catalog_api.models.health_check import HealthCheck

logger = logging.getLogger(__name__)


class HealthService:
    """Checks that the database accepts writes."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def check(self) -> bool:
        """Insert and commit one HealthCheck row.

        Returns:
            True if the write committed, False on any database error.
        """
        try:
            self._db.add(HealthCheck(checked_at=utcnow()))
            await self._db.commit()
        except SQLAlchemyError:
            logger.warning("Health check write failed", exc_info=True)
            await self._db.rollback()
            return False
        return True
