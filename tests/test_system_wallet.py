"""
Tests for the company system wallet model.
"""

from decimal import Decimal

from src.models import CollectionSource, SystemWallet


def _wallet() -> SystemWallet:
    return SystemWallet.empty()


class TestSystemWallet:
    def test_admin_collection_credit(self):
        wallet = _wallet()
        wallet.credit(Decimal("250.00"), CollectionSource.ADMIN_COLLECTION)
        assert wallet.total_revenue == Decimal("250.00")
        assert wallet.current_balance == Decimal("250.00")
        assert wallet.total_admin_collections == Decimal("250.00")
        assert wallet.total_attendant_collections == 0

    def test_attendant_submission_credit(self):
        wallet = _wallet()
        wallet.credit(Decimal("600.00"), "attendant_submission")
        assert wallet.total_attendant_collections == Decimal("600.00")
        assert wallet.total_admin_collections == 0

    def test_reverse_clamps_at_zero(self):
        wallet = _wallet()
        wallet.credit(Decimal("100.00"), CollectionSource.ADMIN_COLLECTION)
        wallet.reverse(Decimal("300.00"), CollectionSource.ADMIN_COLLECTION)
        assert wallet.total_revenue == 0
        assert wallet.current_balance == 0
        assert wallet.total_admin_collections == 0

    def test_company_share_clamps_at_zero(self):
        wallet = _wallet()
        wallet.track_company_share(Decimal("150.00"))
        wallet.track_company_share(Decimal("-400.00"))
        assert wallet.total_company_share == 0

    def test_payout(self):
        wallet = _wallet()
        wallet.credit(Decimal("550.00"), CollectionSource.ADMIN_COLLECTION)
        wallet.record_payout(Decimal("220.00"))
        assert wallet.total_attendant_payments == Decimal("220.00")
        assert wallet.current_balance == Decimal("330.00")

    def test_payout_never_overdraws(self):
        wallet = _wallet()
        wallet.record_payout(Decimal("50.00"))
        assert wallet.current_balance == 0
        assert wallet.total_attendant_payments == Decimal("50.00")
