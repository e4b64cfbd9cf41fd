"""
Pytest configuration and shared fixtures for GobiGo tests.

Provides an in-memory SQLite DB, an ASGI test client wired to it, sample
accounts for every role, and bearer-token helpers.
"""
import os, sys
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

import pytest
from typing import AsyncGenerator

from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from database import Base, get_db
from config import settings
from middleware.auth import issue_access_token
from middleware.rate_limit import limiter

# ── Test Configuration ───────────────────────────────────────────────
# Set test-only values for settings that would normally come from .env
if not settings.jwt_secret:
    settings.jwt_secret = "test-jwt-secret-for-pytest-only"
settings.simulation_mode = True


@pytest.fixture(autouse=True)
def _reset_rate_limits():
    limiter.reset()
    yield
    limiter.reset()


# ── Database Fixtures ────────────────────────────────────────────────


@pytest.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Create an in-memory SQLite database session for each test.

    Uses StaticPool to allow in-memory SQLite with async SQLAlchemy.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session_maker = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session_maker() as session:
        yield session

    await engine.dispose()


@pytest.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTP client bound to the ASGI app with the test DB session.

    Overrides get_db so routes and fixtures share one session.
    """
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()


# ── Auth Helpers ─────────────────────────────────────────────────────


def bearer(user) -> dict:
    """Authorization header for a User row."""
    token = issue_access_token(uid=user.uid, role=user.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers():
    return bearer


# ── Test Data Fixtures ────────────────────────────────────────────────


async def _add_user(db_session: AsyncSession, **fields):
    from db_models import User

    user = User(**fields)
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def customer(db_session: AsyncSession):
    return await _add_user(
        db_session,
        uid="cust-001",
        username="bold",
        email="bold@example.mn",
        name="Bold Bat",
        role="customer",
    )


@pytest.fixture
async def restaurant(db_session: AsyncSession):
    return await _add_user(
        db_session,
        uid="biz-rest-001",
        username="khuushuur_house",
        email="kitchen@example.mn",
        name="Khuushuur House",
        role="business",
        business_name="Khuushuur House",
        business_type="restaurant",
        business_address="Peace Ave 12, Ulaanbaatar",
    )


@pytest.fixture
async def grocery(db_session: AsyncSession):
    return await _add_user(
        db_session,
        uid="biz-groc-001",
        username="nomin_market",
        email="market@example.mn",
        name="Nomin Market",
        role="business",
        business_name="Nomin Market",
        business_type="grocery",
        business_address="Seoul St 4, Ulaanbaatar",
    )


@pytest.fixture
async def driver(db_session: AsyncSession):
    return await _add_user(
        db_session,
        uid="drv-001",
        username="temuujin",
        email="driver@example.mn",
        name="Temuujin",
        role="delivery",
        vehicle_type="motorcycle",
    )


@pytest.fixture
async def burger(db_session: AsyncSession, restaurant):
    from db_models import Product

    product = Product(business_id=restaurant.uid, name="Khuushuur", price=4500.0, category="mains")
    db_session.add(product)
    await db_session.commit()
    await db_session.refresh(product)
    return product


@pytest.fixture
async def milk(db_session: AsyncSession, grocery):
    from db_models import Product

    product = Product(business_id=grocery.uid, name="Milk 1L", price=3200.0, category="dairy")
    db_session.add(product)
    await db_session.commit()
    await db_session.refresh(product)
    return product
