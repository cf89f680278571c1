"""
Pytest configuration and fixtures.
"""

from decimal import Decimal
from typing import Any

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from src.models import (
    Base,
    BookingCategory,
    BookingStatus,
    PaymentMethod,
    ServiceType,
    User,
    UserRole,
)


# Test database URL (use SQLite for tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


def booking_data(
    attendant_id: int,
    amount: str = "1000",
    payment_method: PaymentMethod = PaymentMethod.ATTENDANT_CASH,
    status: BookingStatus = BookingStatus.COMPLETED,
    **extra: Any,
) -> dict[str, Any]:
    """Fields for a completed vehicle booking, overridable."""
    data = {
        "attendant_id": attendant_id,
        "amount": Decimal(amount),
        "category": BookingCategory.VEHICLE,
        "payment_method": payment_method,
        "status": status,
        "car_registration_number": "KAA123A",
        "service_type": ServiceType.FULL_WASH,
        "vehicle_type": "Saloon",
    }
    data.update(extra)
    return data


@pytest_asyncio.fixture
async def db_engine():
    """Create test database engine (one shared in-memory connection)."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine):
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def db_session(session_factory):
    """Create test database session."""
    async with session_factory() as session:
        yield session


async def _create_user(db: AsyncSession, email: str, name: str, role: UserRole) -> User:
    user = User(
        email=email,
        name=name,
        password_hash="not-a-real-hash",
        role=role,
        is_active=True,
    )
    db.add(user)
    await db.commit()
    return user


@pytest_asyncio.fixture
async def admin(db_session):
    return await _create_user(db_session, "admin@test.local", "Admin", UserRole.ADMIN)


@pytest_asyncio.fixture
async def attendant(db_session):
    return await _create_user(db_session, "john@test.local", "John", UserRole.ATTENDANT)


@pytest_asyncio.fixture
async def other_attendant(db_session):
    return await _create_user(db_session, "mary@test.local", "Mary", UserRole.ATTENDANT)


@pytest.fixture
def make_booking():
    """Factory for booking fields (see booking_data)."""
    return booking_data
