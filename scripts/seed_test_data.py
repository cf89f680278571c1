"""
Seed test data for WashLedger.

Usage:
    python scripts/seed_test_data.py

Or with custom DATABASE_URL:
    DATABASE_URL="postgresql://..." python scripts/seed_test_data.py

This script creates:
- Test attendants (if not exist), each with a wallet
- Completed vehicle and carpet bookings across all payment methods,
  posted to the attendant wallets and the system wallet
- A few pending / cancelled bookings that do not touch the ledger
"""

import asyncio
import os
import random
import sys
from decimal import Decimal

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.db import get_db_context
from src.models import (
    BookingCategory,
    BookingStatus,
    PaymentMethod,
    ServiceType,
    User,
    UserRole,
)
from src.services.bookings import create_booking
from src.services.wallet_ledger import get_or_create_wallet
from src.auth.passwords import hash_password


# ===== TEST DATA =====

TEST_ATTENDANTS = [
    {"email": "john@washledger.local", "name": "John Kamau"},
    {"email": "mary@washledger.local", "name": "Mary Wanjiku"},
    {"email": "peter@washledger.local", "name": "Peter Otieno"},
]

TEST_PASSWORD = "attendant123"

VEHICLE_TYPES = ["Saloon", "SUV", "Pickup", "Van", "Motorbike"]
CARPET_COLORS = ["Red", "Blue", "Grey", "Beige", "Green"]
VEHICLE_PRICES = [Decimal("300"), Decimal("500"), Decimal("800"), Decimal("1000")]
CARPET_PRICES = [Decimal("250"), Decimal("450"), Decimal("700")]


async def create_test_attendants(db: AsyncSession) -> list[User]:
    """Create test attendant users with empty wallets."""
    attendants = []
    for data in TEST_ATTENDANTS:
        result = await db.execute(select(User).where(User.email == data["email"]))
        attendant = result.scalar_one_or_none()

        if not attendant:
            attendant = User(
                email=data["email"],
                name=data["name"],
                password_hash=hash_password(TEST_PASSWORD),
                role=UserRole.ATTENDANT,
                is_active=True,
            )
            db.add(attendant)
            await db.flush()
            print(f"Created test attendant: {data['email']} / {TEST_PASSWORD}")
        else:
            print(f"Test attendant already exists (id={attendant.id})")

        await get_or_create_wallet(db, attendant.id)
        attendants.append(attendant)

    await db.commit()
    return attendants


def random_booking(attendant: User, status: BookingStatus) -> dict:
    """Booking fields for one random vehicle or carpet job."""
    if random.random() < 0.7:
        return {
            "attendant_id": attendant.id,
            "amount": random.choice(VEHICLE_PRICES),
            "category": BookingCategory.VEHICLE,
            "payment_method": random.choice(list(PaymentMethod)),
            "status": status,
            "car_registration_number": f"K{random.choice('ABCD')}{random.randint(100, 999)}X",
            "service_type": random.choice(list(ServiceType)),
            "vehicle_type": random.choice(VEHICLE_TYPES),
        }
    return {
        "attendant_id": attendant.id,
        "amount": random.choice(CARPET_PRICES),
        "category": BookingCategory.CARPET,
        "payment_method": random.choice(list(PaymentMethod)),
        "status": status,
        "phone_number": f"07{random.randint(10000000, 99999999)}",
        "color": random.choice(CARPET_COLORS),
    }


async def create_test_bookings(db: AsyncSession, attendants: list[User], per_attendant: int = 6):
    """Create bookings through the booking service so the ledger is posted."""
    created = 0
    for attendant in attendants:
        for i in range(per_attendant):
            status = BookingStatus.COMPLETED
            if i == per_attendant - 1:
                status = random.choice([BookingStatus.PENDING, BookingStatus.CANCELLED])
            await create_booking(db, random_booking(attendant, status))
            created += 1
        await db.commit()
        wallet = await get_or_create_wallet(db, attendant.id)
        print(
            f"  {attendant.name}: balance {wallet.balance}, "
            f"company debt {wallet.company_debt}"
        )
    print(f"Created {created} bookings")


async def main():
    print("Seeding WashLedger test data...\n")
    async with get_db_context() as db:
        attendants = await create_test_attendants(db)
        await create_test_bookings(db, attendants)
    print("\nDone!")


if __name__ == "__main__":
    asyncio.run(main())
