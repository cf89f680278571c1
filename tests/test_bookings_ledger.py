"""
Tests for booking lifecycle postings.

Covers:
- Create / update / delete keeping wallets in step
- Status transitions into and out of completed
- Attendant reassignment
- System wallet pairing for admin-collected bookings
"""

from decimal import Decimal

import pytest
from sqlalchemy import func, select

from src.models import BookingCategory, BookingStatus, LedgerEntry, PaymentMethod
from src.services.bookings import create_booking, delete_booking, update_booking
from src.services.exceptions import BookingNotFound, InvalidLedgerOperation, NotAnAttendant
from src.services.system_wallet import get_or_create_system_wallet
from src.services.wallet_ledger import get_or_create_wallet


async def _wallet(db, attendant_id):
    return await get_or_create_wallet(db, attendant_id)


async def _entries(db) -> int:
    return await db.scalar(select(func.count(LedgerEntry.id)))


# ── create ────────────────────────────────────────────────


class TestCreateBooking:
    @pytest.mark.asyncio
    async def test_completed_booking_is_posted(self, db_session, attendant, make_booking):
        booking = await create_booking(db_session, make_booking(attendant.id, "1000"))
        assert booking.id is not None
        assert booking.attendant_paid is False

        wallet = await _wallet(db_session, attendant.id)
        assert wallet.balance == Decimal("-600.00")
        assert wallet.company_debt == Decimal("600.00")

    @pytest.mark.asyncio
    async def test_pending_booking_is_not_posted(self, db_session, attendant, make_booking):
        await create_booking(
            db_session, make_booking(attendant.id, "1000", status=BookingStatus.PENDING)
        )
        wallet = await _wallet(db_session, attendant.id)
        assert wallet.balance == 0
        assert await _entries(db_session) == 0

    @pytest.mark.asyncio
    async def test_attendant_paid_flag_is_ignored_on_create(
        self, db_session, attendant, make_booking
    ):
        booking = await create_booking(
            db_session, make_booking(attendant.id, "500", attendant_paid=True)
        )
        assert booking.attendant_paid is False

    @pytest.mark.asyncio
    async def test_booking_for_admin_rejected(self, db_session, admin, make_booking):
        with pytest.raises(NotAnAttendant):
            await create_booking(db_session, make_booking(admin.id, "500"))


# ── update ────────────────────────────────────────────────


class TestUpdateBooking:
    @pytest.mark.asyncio
    async def test_amount_edit_reposts(self, db_session, attendant, make_booking):
        booking = await create_booking(db_session, make_booking(attendant.id, "1000"))
        await update_booking(db_session, booking.id, {"amount": Decimal("500")})

        wallet = await _wallet(db_session, attendant.id)
        assert wallet.balance == Decimal("-300.00")
        assert wallet.company_debt == Decimal("300.00")
        assert wallet.total_earnings == Decimal("500.00")

    @pytest.mark.asyncio
    async def test_payment_method_edit(self, db_session, attendant, make_booking):
        booking = await create_booking(db_session, make_booking(attendant.id, "1000"))
        await update_booking(
            db_session, booking.id, {"payment_method": PaymentMethod.ADMIN_TILL}
        )

        wallet = await _wallet(db_session, attendant.id)
        assert wallet.balance == Decimal("400.00")
        assert wallet.company_debt == 0

    @pytest.mark.asyncio
    async def test_entering_completed_applies(self, db_session, attendant, make_booking):
        booking = await create_booking(
            db_session, make_booking(attendant.id, "250", status=BookingStatus.IN_PROGRESS,
                                     payment_method=PaymentMethod.ADMIN_CASH)
        )
        await update_booking(db_session, booking.id, {"status": BookingStatus.COMPLETED})

        wallet = await _wallet(db_session, attendant.id)
        assert wallet.balance == Decimal("100.00")

    @pytest.mark.asyncio
    async def test_leaving_completed_reverses(self, db_session, attendant, make_booking):
        booking = await create_booking(db_session, make_booking(attendant.id, "1000"))
        await update_booking(db_session, booking.id, {"status": BookingStatus.CANCELLED})

        wallet = await _wallet(db_session, attendant.id)
        assert wallet.balance == 0
        assert wallet.company_debt == 0
        assert wallet.is_paid is True

    @pytest.mark.asyncio
    async def test_reassignment_moves_contribution(
        self, db_session, attendant, other_attendant, make_booking
    ):
        booking = await create_booking(db_session, make_booking(attendant.id, "1000"))
        await update_booking(db_session, booking.id, {"attendant_id": other_attendant.id})

        old_wallet = await _wallet(db_session, attendant.id)
        new_wallet = await _wallet(db_session, other_attendant.id)
        assert old_wallet.balance == 0
        assert old_wallet.company_debt == 0
        assert new_wallet.balance == Decimal("-600.00")
        assert new_wallet.company_debt == Decimal("600.00")

    @pytest.mark.asyncio
    async def test_customer_detail_edit_has_no_ledger_effect(
        self, db_session, attendant, make_booking
    ):
        booking = await create_booking(db_session, make_booking(attendant.id, "1000"))
        await db_session.flush()
        before = await _entries(db_session)

        await update_booking(db_session, booking.id, {"note": "Left keys at desk"})
        assert await _entries(db_session) == before

    @pytest.mark.asyncio
    async def test_paid_booking_edit_has_no_ledger_effect(
        self, db_session, attendant, make_booking
    ):
        booking = await create_booking(db_session, make_booking(attendant.id, "1000"))
        booking.attendant_paid = True
        await db_session.flush()
        wallet = await _wallet(db_session, attendant.id)
        balance = wallet.balance

        await update_booking(db_session, booking.id, {"amount": Decimal("2000")})
        assert wallet.balance == balance

    @pytest.mark.asyncio
    async def test_category_switch_needs_new_category_fields(
        self, db_session, attendant, make_booking
    ):
        booking = await create_booking(db_session, make_booking(attendant.id, "1000"))
        await db_session.commit()
        before = await _entries(db_session)

        with pytest.raises(InvalidLedgerOperation, match="color is required"):
            await update_booking(
                db_session, booking.id, {"category": BookingCategory.CARPET}
            )
        await db_session.rollback()

        assert await _entries(db_session) == before
        wallet = await _wallet(db_session, attendant.id)
        assert wallet.balance == Decimal("-600.00")

    @pytest.mark.asyncio
    async def test_category_switch_drops_old_fields(self, db_session, attendant, make_booking):
        booking = await create_booking(db_session, make_booking(attendant.id, "1000"))

        booking = await update_booking(
            db_session,
            booking.id,
            {"category": BookingCategory.CARPET, "color": "Blue"},
        )
        assert booking.color == "Blue"
        assert booking.car_registration_number is None
        assert booking.service_type is None
        assert booking.vehicle_type is None

    @pytest.mark.asyncio
    async def test_clearing_a_required_field_is_rejected(
        self, db_session, attendant, make_booking
    ):
        booking = await create_booking(db_session, make_booking(attendant.id, "1000"))
        with pytest.raises(InvalidLedgerOperation):
            await update_booking(db_session, booking.id, {"vehicle_type": ""})

    @pytest.mark.asyncio
    async def test_unknown_booking(self, db_session):
        with pytest.raises(BookingNotFound):
            await update_booking(db_session, 9999, {"note": "x"})


# ── delete ────────────────────────────────────────────────


class TestDeleteBooking:
    @pytest.mark.asyncio
    async def test_delete_reverses(self, db_session, attendant, make_booking):
        booking = await create_booking(db_session, make_booking(attendant.id, "1000"))
        await delete_booking(db_session, booking.id)

        wallet = await _wallet(db_session, attendant.id)
        assert wallet.balance == 0
        assert wallet.total_earnings == 0

    @pytest.mark.asyncio
    async def test_delete_pending_booking(self, db_session, attendant, make_booking):
        booking = await create_booking(
            db_session, make_booking(attendant.id, "1000", status=BookingStatus.PENDING)
        )
        await delete_booking(db_session, booking.id)
        assert await _entries(db_session) == 0


# ── system wallet pairing ─────────────────────────────────


class TestSystemWalletPairing:
    @pytest.mark.asyncio
    async def test_admin_collected_booking_credits_company(
        self, db_session, attendant, make_booking
    ):
        await create_booking(
            db_session,
            make_booking(attendant.id, "250", payment_method=PaymentMethod.ADMIN_CASH),
        )
        system_wallet = await get_or_create_system_wallet(db_session)
        assert system_wallet.total_revenue == Decimal("250.00")
        assert system_wallet.total_admin_collections == Decimal("250.00")
        assert system_wallet.total_company_share == Decimal("150.00")
        assert system_wallet.current_balance == Decimal("250.00")

    @pytest.mark.asyncio
    async def test_attendant_cash_moves_no_company_cash(
        self, db_session, attendant, make_booking
    ):
        await create_booking(db_session, make_booking(attendant.id, "1000"))
        system_wallet = await get_or_create_system_wallet(db_session)
        assert system_wallet.current_balance == 0
        assert system_wallet.total_revenue == 0
        assert system_wallet.total_company_share == Decimal("600.00")

    @pytest.mark.asyncio
    async def test_delete_reverses_company_credit(self, db_session, attendant, make_booking):
        booking = await create_booking(
            db_session,
            make_booking(attendant.id, "300", payment_method=PaymentMethod.ADMIN_TILL),
        )
        await delete_booking(db_session, booking.id)

        system_wallet = await get_or_create_system_wallet(db_session)
        assert system_wallet.total_revenue == 0
        assert system_wallet.total_admin_collections == 0
        assert system_wallet.total_company_share == 0
