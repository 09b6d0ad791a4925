"""
Test fixtures for the fulfillment core.

Provides:
- In-memory SQLite database for the reference SQLAlchemy repositories
- Seed users and catalog products
(Snapshot factories and repository doubles live in factories.py.)
"""
# IMPORTANT: Set environment variables BEFORE any other imports
import os

os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("LOG_LEVEL", "INFO")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from decimal import Decimal
from typing import AsyncGenerator, Dict

import pytest
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.pool import StaticPool

from fulfillment.app.core.database import init_models, make_engine, make_sessionmaker
from fulfillment.app.models.product import Product
from fulfillment.app.models.user import User


# Test database URL - SQLite in-memory
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


# --- Database fixtures ---

@pytest.fixture(scope="function")
async def test_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Create a fresh database session for each test.
    Each test gets its own in-memory database.
    """
    engine = make_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await init_models(engine)
    session_factory = make_sessionmaker(engine)

    async with session_factory() as session:
        yield session

    await engine.dispose()


# --- Test Data Factories ---

@pytest.fixture
async def test_users(test_session: AsyncSession) -> Dict[str, User]:
    """A customer, two sellers and an operator."""
    users = {
        "customer": User(id="c1", username="anna", full_name="Anna Tran", role="CUSTOMER"),
        "seller": User(id="s1", username="greenfarm", full_name="Green Farm", role="SELLER"),
        "other_seller": User(id="s2", username="orchard", full_name=None, role="SELLER"),
        "operator": User(id="op1", username="ops", full_name="Ops Desk", role="OPERATOR"),
    }
    test_session.add_all(users.values())
    await test_session.commit()
    return users


@pytest.fixture
async def test_products(test_session: AsyncSession) -> Dict[str, Product]:
    products = {
        "carrot": Product(id="p-carrot", seller_id="s1", name="Carrot", category="Vegetables", price=Decimal("2.00")),
        "apple": Product(id="p-apple", seller_id="s1", name="Apple", category="Fruits", price=Decimal("3.00")),
        "hoe": Product(id="p-hoe", seller_id="s2", name="Hoe", category="Farm Tools", price=Decimal("25.00")),
    }
    test_session.add_all(products.values())
    await test_session.commit()
    return products
