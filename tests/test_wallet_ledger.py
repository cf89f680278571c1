"""
Tests for the attendant wallet ledger.

Covers:
- Incremental apply / reverse of booking splits
- Ledger trail entries
- Rebuild (drift repair, idempotence, adjustments)
- Tips and deductions
- Read-only date projection
- Version conflicts between concurrent sessions
"""

from datetime import date, timedelta
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from src.models import (
    AdjustmentType,
    Base,
    BookingStatus,
    LedgerEntry,
    LedgerEntryType,
    PaymentMethod,
    User,
    UserRole,
)
from src.services.bookings import create_booking, get_booking, update_booking
from src.services.concurrency import run_with_retry
from src.services.exceptions import (
    AttendantNotFound,
    InvalidLedgerOperation,
    LedgerConflictError,
    NotAnAttendant,
)
from src.services.settlement import mark_paid
from src.services.wallet_ledger import (
    adjust_wallet,
    apply_booking,
    expected_figures,
    get_attendant,
    get_or_create_wallet,
    project_wallet_for_date,
    rebuild_wallet,
    reverse_booking,
)
from src.utils.dates import day_bounds


async def _entry_count(db, attendant_id, entry_type=None) -> int:
    query = select(func.count(LedgerEntry.id)).where(LedgerEntry.attendant_id == attendant_id)
    if entry_type is not None:
        query = query.where(LedgerEntry.entry_type == entry_type)
    return await db.scalar(query)


# ── get_or_create_wallet / get_attendant ─────────────────


class TestWalletLookup:
    @pytest.mark.asyncio
    async def test_new_wallet_is_zeroed_and_paid(self, db_session, attendant):
        wallet = await get_or_create_wallet(db_session, attendant.id)
        assert wallet.balance == 0
        assert wallet.company_debt == 0
        assert wallet.is_paid is True
        assert wallet.cycle == 0

    @pytest.mark.asyncio
    async def test_wallet_is_created_once(self, db_session, attendant):
        first = await get_or_create_wallet(db_session, attendant.id)
        second = await get_or_create_wallet(db_session, attendant.id)
        assert first.id == second.id

    @pytest.mark.asyncio
    async def test_unknown_attendant(self, db_session):
        with pytest.raises(AttendantNotFound):
            await get_attendant(db_session, 9999)

    @pytest.mark.asyncio
    async def test_admin_is_not_an_attendant(self, db_session, admin):
        with pytest.raises(NotAnAttendant) as exc_info:
            await get_attendant(db_session, admin.id)
        assert exc_info.value.status_code == 400


# ── apply / reverse ───────────────────────────────────────


class TestApplyReverse:
    @pytest.mark.asyncio
    async def test_attendant_cash_booking(self, db_session, attendant):
        wallet = await apply_booking(
            db_session, attendant.id, Decimal("1000"), PaymentMethod.ATTENDANT_CASH
        )
        assert wallet.balance == Decimal("-600.00")
        assert wallet.company_debt == Decimal("600.00")
        assert wallet.total_earnings == Decimal("1000.00")
        assert wallet.total_commission == Decimal("400.00")
        assert wallet.total_company_share == Decimal("600.00")
        assert wallet.is_paid is False

    @pytest.mark.asyncio
    async def test_admin_collected_bookings_accumulate(self, db_session, attendant):
        await apply_booking(db_session, attendant.id, Decimal("250"), PaymentMethod.ADMIN_CASH)
        wallet = await apply_booking(
            db_session, attendant.id, Decimal("300"), PaymentMethod.ADMIN_TILL
        )
        assert wallet.balance == Decimal("220.00")
        assert wallet.company_debt == Decimal("0.00")
        assert wallet.total_earnings == Decimal("550.00")

    @pytest.mark.asyncio
    async def test_apply_then_reverse_restores_wallet(self, db_session, attendant):
        await apply_booking(db_session, attendant.id, Decimal("800"), PaymentMethod.ATTENDANT_CASH)
        wallet = await reverse_booking(
            db_session, attendant.id, Decimal("800"), PaymentMethod.ATTENDANT_CASH
        )
        assert wallet.balance == 0
        assert wallet.company_debt == 0
        assert wallet.total_earnings == 0
        assert wallet.is_paid is True

    @pytest.mark.asyncio
    async def test_reverse_on_empty_wallet_clamps_totals(self, db_session, attendant):
        wallet = await reverse_booking(
            db_session, attendant.id, Decimal("1000"), PaymentMethod.ATTENDANT_CASH
        )
        assert wallet.total_earnings == 0
        assert wallet.total_company_share == 0
        assert wallet.company_debt == 0
        # The balance is signed and is not clamped
        assert wallet.balance == Decimal("600.00")

    @pytest.mark.asyncio
    async def test_every_posting_writes_an_entry(self, db_session, attendant):
        await apply_booking(db_session, attendant.id, Decimal("500"), PaymentMethod.ADMIN_CASH)
        await reverse_booking(db_session, attendant.id, Decimal("500"), PaymentMethod.ADMIN_CASH)
        await db_session.flush()

        assert await _entry_count(db_session, attendant.id, LedgerEntryType.BOOKING_APPLIED) == 1
        assert await _entry_count(db_session, attendant.id, LedgerEntryType.BOOKING_REVERSED) == 1

        result = await db_session.execute(
            select(LedgerEntry)
            .where(LedgerEntry.attendant_id == attendant.id)
            .order_by(LedgerEntry.id)
        )
        applied, reversed_ = result.scalars().all()
        assert applied.balance_after == Decimal("200.00")
        assert reversed_.balance_delta == Decimal("-200.00")
        assert reversed_.balance_after == 0


# ── rebuild ───────────────────────────────────────────────


class TestRebuild:
    @pytest.mark.asyncio
    async def test_rebuild_is_idempotent(self, db_session, attendant, make_booking):
        await create_booking(db_session, make_booking(attendant.id, "1000"))
        await create_booking(
            db_session,
            make_booking(attendant.id, "250", payment_method=PaymentMethod.ADMIN_CASH),
        )
        await db_session.commit()

        wallet = await rebuild_wallet(db_session, attendant.id)
        await db_session.flush()
        figures = wallet.figures()

        wallet = await rebuild_wallet(db_session, attendant.id)
        await db_session.flush()

        assert wallet.figures() == figures
        assert wallet.balance == Decimal("-500.00")
        assert await _entry_count(db_session, attendant.id, LedgerEntryType.REBUILD) == 0

    @pytest.mark.asyncio
    async def test_rebuild_repairs_drift(self, db_session, attendant, make_booking):
        await create_booking(db_session, make_booking(attendant.id, "1000"))
        wallet = await get_or_create_wallet(db_session, attendant.id)
        wallet.balance = Decimal("999.00")
        wallet.company_debt = Decimal("0.00")
        await db_session.commit()

        wallet = await rebuild_wallet(db_session, attendant.id)
        await db_session.flush()

        assert wallet.balance == Decimal("-600.00")
        assert wallet.company_debt == Decimal("600.00")
        assert await _entry_count(db_session, attendant.id, LedgerEntryType.REBUILD) == 1

    @pytest.mark.asyncio
    async def test_rebuild_keeps_current_cycle_adjustments(self, db_session, attendant, make_booking):
        await create_booking(
            db_session,
            make_booking(attendant.id, "500", payment_method=PaymentMethod.ADMIN_TILL),
        )
        await adjust_wallet(db_session, attendant.id, AdjustmentType.TIP, Decimal("50"))
        await db_session.commit()

        wallet = await rebuild_wallet(db_session, attendant.id)
        assert wallet.balance == Decimal("250.00")

    @pytest.mark.asyncio
    async def test_rebuild_of_empty_history_zeroes_wallet(self, db_session, attendant):
        wallet = await apply_booking(
            db_session, attendant.id, Decimal("1000"), PaymentMethod.ADMIN_CASH
        )
        await db_session.commit()
        assert wallet.balance == Decimal("400.00")

        # No booking row backs that posting
        wallet = await rebuild_wallet(db_session, attendant.id)
        assert wallet.balance == 0
        assert wallet.is_paid is True


# ── adjustments ───────────────────────────────────────────


class TestAdjustWallet:
    @pytest.mark.asyncio
    async def test_tip_and_deduction(self, db_session, attendant):
        await adjust_wallet(db_session, attendant.id, AdjustmentType.TIP, Decimal("50"))
        wallet = await adjust_wallet(
            db_session, attendant.id, "deduction", Decimal("20"), reason="Broken mirror"
        )
        assert wallet.balance == Decimal("30.00")
        assert wallet.total_earnings == 0
        assert wallet.company_debt == 0

    @pytest.mark.asyncio
    async def test_adjustment_records_entry(self, db_session, attendant):
        await adjust_wallet(
            db_session,
            attendant.id,
            AdjustmentType.TIP,
            Decimal("50"),
            reason="Great job",
            actor_name="Admin",
        )
        await db_session.flush()
        assert await _entry_count(db_session, attendant.id, LedgerEntryType.ADJUSTMENT) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5")])
    async def test_non_positive_amount_rejected(self, db_session, attendant, amount):
        with pytest.raises(InvalidLedgerOperation):
            await adjust_wallet(db_session, attendant.id, AdjustmentType.TIP, amount)

    @pytest.mark.asyncio
    async def test_unknown_type_rejected(self, db_session, attendant):
        with pytest.raises(InvalidLedgerOperation):
            await adjust_wallet(db_session, attendant.id, "bonus", Decimal("10"))


# ── date projection ───────────────────────────────────────


class TestProjection:
    @pytest.mark.asyncio
    async def test_projection_for_today(self, db_session, attendant, make_booking):
        await create_booking(db_session, make_booking(attendant.id, "1000"))
        await create_booking(
            db_session,
            make_booking(attendant.id, "500", payment_method=PaymentMethod.ADMIN_CASH),
        )
        await db_session.commit()

        today = day_bounds()[0].date()
        projection = await project_wallet_for_date(db_session, attendant.id, today)
        assert projection["bookings_count"] == 2
        assert projection["balance"] == Decimal("-400.00")
        assert projection["date"] == today

    @pytest.mark.asyncio
    async def test_projection_does_not_touch_wallet(self, db_session, attendant, make_booking):
        await create_booking(db_session, make_booking(attendant.id, "1000"))
        await db_session.commit()

        other_day = day_bounds()[0].date() - timedelta(days=3)
        projection = await project_wallet_for_date(db_session, attendant.id, other_day)
        assert projection["bookings_count"] == 0
        assert projection["balance"] == 0

        wallet = await get_or_create_wallet(db_session, attendant.id)
        assert wallet.balance == Decimal("-600.00")

    @pytest.mark.asyncio
    async def test_projection_of_unknown_day_is_empty(self, db_session, attendant):
        projection = await project_wallet_for_date(db_session, attendant.id, date(2020, 1, 1))
        assert projection["total_earnings"] == 0


# ── concurrent sessions ───────────────────────────────────


@pytest_asyncio.fixture
async def file_sessions(tmp_path):
    """Session factory on a file database, so each session has its own connection."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    await engine.dispose()


async def _seed_attendant(factory) -> int:
    async with factory() as db:
        attendant = User(
            email="racer@test.local",
            name="Racer",
            password_hash="not-a-real-hash",
            role=UserRole.ATTENDANT,
            is_active=True,
        )
        db.add(attendant)
        await db.flush()
        await get_or_create_wallet(db, attendant.id)
        await db.commit()
        return attendant.id


class TestConcurrentWrites:
    @pytest.mark.asyncio
    async def test_stale_wallet_write_is_replayed(self, file_sessions, make_booking):
        attendant_id = await _seed_attendant(file_sessions)

        async with file_sessions() as first, file_sessions() as second:
            stale = await get_or_create_wallet(second, attendant_id)
            assert stale.balance == 0

            await create_booking(first, make_booking(attendant_id, "1000"))
            await first.commit()

            await run_with_retry(
                second,
                lambda: create_booking(
                    second,
                    make_booking(attendant_id, "250", payment_method=PaymentMethod.ADMIN_CASH),
                ),
                backoff_base=0,
            )

        async with file_sessions() as db:
            wallet = await get_or_create_wallet(db, attendant_id)
            assert wallet.balance == Decimal("-500.00")
            assert wallet.company_debt == Decimal("600.00")
            assert wallet.total_earnings == Decimal("1250.00")

            rebuilt, bookings_count, _ = await expected_figures(db, wallet)
            assert bookings_count == 2
            assert rebuilt == wallet.figures()

    @pytest.mark.asyncio
    async def test_conflict_after_last_attempt(self, file_sessions, make_booking):
        attendant_id = await _seed_attendant(file_sessions)

        async with file_sessions() as first, file_sessions() as second:
            await get_or_create_wallet(second, attendant_id)

            await create_booking(first, make_booking(attendant_id, "1000"))
            await first.commit()

            with pytest.raises(LedgerConflictError) as exc_info:
                await run_with_retry(
                    second,
                    lambda: create_booking(second, make_booking(attendant_id, "250")),
                    attempts=1,
                    backoff_base=0,
                )
            assert exc_info.value.status_code == 409

        async with file_sessions() as db:
            wallet = await get_or_create_wallet(db, attendant_id)
            assert wallet.balance == Decimal("-600.00")

    @pytest.mark.asyncio
    async def test_stale_booking_edit_is_replayed(self, file_sessions, make_booking):
        attendant_id = await _seed_attendant(file_sessions)
        async with file_sessions() as db:
            booking = await create_booking(
                db, make_booking(attendant_id, "1000", status=BookingStatus.PENDING)
            )
            await db.commit()
            booking_id = booking.id

        async with file_sessions() as first, file_sessions() as second:
            stale = await get_booking(second, booking_id)
            assert stale.status == BookingStatus.PENDING

            await update_booking(first, booking_id, {"status": BookingStatus.COMPLETED})
            await first.commit()

            await run_with_retry(
                second,
                lambda: update_booking(second, booking_id, {"amount": Decimal("500")}),
                backoff_base=0,
            )

        async with file_sessions() as db:
            booking = await get_booking(db, booking_id)
            assert booking.amount == Decimal("500.00")
            assert booking.status == BookingStatus.COMPLETED

            wallet = await get_or_create_wallet(db, attendant_id)
            assert wallet.balance == Decimal("-300.00")
            assert wallet.company_debt == Decimal("300.00")

    @pytest.mark.asyncio
    async def test_settlement_invalidates_stale_booking_reads(self, file_sessions, make_booking):
        attendant_id = await _seed_attendant(file_sessions)
        async with file_sessions() as db:
            booking = await create_booking(db, make_booking(attendant_id, "1000"))
            await db.commit()
            booking_id = booking.id

        async with file_sessions() as first, file_sessions() as second:
            stale = await get_booking(second, booking_id)
            assert stale.attendant_paid is False

            await mark_paid(first, attendant_id)

            await run_with_retry(
                second,
                lambda: update_booking(second, booking_id, {"amount": Decimal("500")}),
                backoff_base=0,
            )

        async with file_sessions() as db:
            wallet = await get_or_create_wallet(db, attendant_id)
            assert wallet.balance == 0
            assert wallet.company_debt == 0
