"""
Repair attendant wallets by replaying their open bookings.

Usage:
    python scripts/rebuild_wallets.py              # rebuild every attendant
    python scripts/rebuild_wallets.py 3 7          # only attendants 3 and 7
    python scripts/rebuild_wallets.py --dry-run    # report drift, write nothing

Uses DATABASE_URL from the environment / .env like the application.
"""

import argparse
import asyncio
import logging
import os
import sys

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import select

from src.db import get_db_context
from src.models import User, UserRole
from src.services.concurrency import run_with_retry
from src.services.wallet_ledger import expected_figures, get_or_create_wallet, rebuild_wallet

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)


async def rebuild_all(attendant_ids: list[int], dry_run: bool = False) -> int:
    """Rebuild the selected wallets. Returns the number that had drifted."""
    drifted = 0

    async with get_db_context() as db:
        query = select(User.id, User.email).where(User.role == UserRole.ATTENDANT)
        if attendant_ids:
            query = query.where(User.id.in_(attendant_ids))
        attendants = (await db.execute(query.order_by(User.id))).all()

        print(f"Checking {len(attendants)} attendant wallet(s)...")

        for attendant_id, email in attendants:
            wallet = await get_or_create_wallet(db, attendant_id)
            before = wallet.figures()

            if dry_run:
                rebuilt, _, _ = await expected_figures(db, wallet)
            else:
                wallet = await run_with_retry(
                    db, lambda: rebuild_wallet(db, attendant_id)
                )
                rebuilt = wallet.figures()

            if rebuilt != before:
                drifted += 1
                print(
                    f"  ! {email}: balance {before['balance']} -> {rebuilt['balance']}, "
                    f"debt {before['company_debt']} -> {rebuilt['company_debt']}"
                )
            else:
                print(f"  ok {email}: balance {before['balance']}")

        if dry_run:
            await db.rollback()

    return drifted


def main():
    parser = argparse.ArgumentParser(description="Rebuild attendant wallets from bookings")
    parser.add_argument("attendant_ids", nargs="*", type=int, help="Attendant ids (default: all)")
    parser.add_argument("--dry-run", action="store_true", help="Report drift without writing")
    args = parser.parse_args()

    drifted = asyncio.run(rebuild_all(args.attendant_ids, dry_run=args.dry_run))
    print(f"\nDone: {drifted} wallet(s) drifted")


if __name__ == "__main__":
    main()
