"""Shared fixtures: in-memory SQLite database and an ASGI test client."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("RULES_CACHE_BACKEND", "memory")
os.environ.setdefault("LOG_TO_FILE", "false")

from decimal import Decimal

import httpx
import pytest
import pytest_asyncio
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from price_updater.db.models import Base, DiscountRule, Product
from price_updater.storage.cache import MemoryTTLCache
from price_updater.storage.repository import PriceRepository


@pytest_asyncio.fixture()
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture()
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture()
def rule_cache():
    return MemoryTTLCache()


@pytest_asyncio.fixture()
async def seeded_session(db_session):
    """Catalog with a perfume, a by-the-milliliter decant and a variation."""
    db_session.add_all([
        Product(id=1, name="Eau de Parfum", price=Decimal("100.00"),
                category_ids=[17], category_slugs=["perfume"]),
        Product(id=2, name="Decant", price=Decimal("40.00"), min_quantity=2,
                category_ids=[17, 23], category_slugs=["perfume", "rozpyv"]),
        Product(id=3, name="Body mist", price=Decimal("0"), product_type="variable",
                category_ids=[30], tag_ids=[5]),
        Product(id=4, name="Atomizer", price=Decimal("10.00"), tag_ids=[9]),
    ])
    await db_session.flush()
    db_session.add(
        Product(id=5, name="Body mist 100 ml", price=Decimal("200.00"),
                product_type="variation", parent_id=3)
    )
    db_session.add_all([
        DiscountRule(
            id=1,
            title="Perfume bulk",
            conditions=[{"kind": "product_category", "comparison": "include", "query": 17}],
            brackets=[
                {"from": 1, "to": 4, "type": "percentage", "value": 10},
                {"from": 5, "to": None, "type": "percentage", "value": 20},
            ],
        ),
        DiscountRule(
            id=2,
            title="Sale tag",
            conditions=[{"kind": "product_tag", "comparison": "include", "query": 5}],
            brackets=[{"from": 2, "to": 0, "type": "fixed_amount", "value": 50}],
        ),
        DiscountRule(
            id=3,
            title="Disabled",
            enabled=False,
            conditions=[{"kind": "all", "comparison": "include"}],
            brackets=[{"from": 1, "type": "percentage", "value": 90}],
        ),
    ])
    await db_session.commit()
    return db_session


@pytest.fixture()
def repository(seeded_session, rule_cache):
    return PriceRepository(seeded_session, cache=rule_cache, ttl_seconds=3600)


@pytest_asyncio.fixture()
async def client(session_factory, seeded_session, rule_cache):
    from price_updater.api.deps import get_database, get_repository
    from price_updater.main import app

    async def override_database():
        async with session_factory() as session:
            yield session

    def override_repository(db: AsyncSession = Depends(get_database)):
        return PriceRepository(db, cache=rule_cache, ttl_seconds=3600)

    app.dependency_overrides[get_database] = override_database
    app.dependency_overrides[get_repository] = override_repository

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
