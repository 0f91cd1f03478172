"""HealthCheck model - one row per successful health check."""

from datetime import datetime

from sqlalchemy import Integer
from sqlalchemy.orm import Mapped, mapped_column

from catalog_api.models.base import Base


class HealthCheck(Base):
    """Record of a health check that reached the database."""

    __tablename__ = "health_checks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    checked_at: Mapped[datetime] = mapped_column(nullable=False)
