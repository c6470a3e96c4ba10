"""FastAPI dependencies."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from price_updater.db.session import get_db
from price_updater.discounts.engine import PriceEngine
from price_updater.storage.repository import PriceRepository


async def get_database() -> AsyncSession:
    """Dependency for database session."""
    async for session in get_db():
        yield session
        break  # Only yield once, as FastAPI handles the session lifecycle


def get_repository(db: AsyncSession = Depends(get_database)) -> PriceRepository:
    """Dependency for the price repository (shares the global rule cache)."""
    return PriceRepository(db)


def get_price_engine(
    repository: PriceRepository = Depends(get_repository),
) -> PriceEngine:
    """Dependency for the price engine."""
    return PriceEngine(repository)
