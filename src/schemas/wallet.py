"""
Wallet, ledger and settlement schemas.

Attendant details are filled in explicitly by ``wallet_response`` rather
than read from the ORM relationship, which async sessions cannot lazy-load.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from src.models import LedgerEntryType, User, Wallet
from src.models.wallet import AdjustmentType


class WalletResponse(BaseModel):
    """Attendant wallet."""

    id: int
    attendant_id: int
    attendant_name: Optional[str] = None
    attendant_email: Optional[str] = None

    balance: Decimal
    total_earnings: Decimal
    total_commission: Decimal
    total_company_share: Decimal
    company_debt: Decimal
    is_paid: bool
    last_payment_date: Optional[datetime] = None
    cycle: int

    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


def wallet_response(wallet: Wallet, attendant: Optional[User] = None) -> WalletResponse:
    """Snapshot a wallet (and its attendant) into a response model."""
    response = WalletResponse.model_validate(wallet)
    if attendant is not None:
        response.attendant_name = attendant.name
        response.attendant_email = attendant.email
    return response


class DateBalance(BaseModel):
    """Open-booking figures for a single day (read-only projection)."""

    date: date
    balance: Decimal
    total_earnings: Decimal
    total_commission: Decimal
    total_company_share: Decimal
    company_debt: Decimal
    bookings_count: int


class MyWalletResponse(BaseModel):
    """Wallet with an optional point-in-time view."""

    wallet: WalletResponse
    date: date
    date_balance: Optional[DateBalance] = None


class DatedWallet(BaseModel):
    """Wallet as listed, with the figures of the requested day if any."""

    wallet: WalletResponse
    date_balance: Optional[DateBalance] = None


class WalletListResponse(BaseModel):
    results: int
    wallets: List[DatedWallet]
    date: date


class AdjustmentRequest(BaseModel):
    """Tip or deduction (admin only)."""

    type: AdjustmentType
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    reason: Optional[str] = Field(None, max_length=500)


class AdjustmentResponse(BaseModel):
    message: str
    wallet: WalletResponse


class SettleRequest(BaseModel):
    """Batch settlement request."""

    attendant_ids: List[int] = Field(..., min_length=1)


class SettledWallet(BaseModel):
    attendant_id: int
    attendant_name: str
    attendant_email: str
    amount_settled: Decimal = Field(description="Balance before settlement")
    bookings_updated: int
    wallet: WalletResponse


class SettleResponse(BaseModel):
    message: str
    settled: List[SettledWallet]
    errors: List[str] = Field(default_factory=list)


class MarkPaidResponse(BaseModel):
    message: str
    wallet: WalletResponse
    bookings_updated: int


class DebtSummary(BaseModel):
    attendant_name: str
    attendant_email: str
    company_debt: Decimal
    attendant_balance: Decimal
    total_earnings: Decimal
    total_commission: Decimal
    total_company_share: Decimal


class AttendantDebtResponse(BaseModel):
    wallet: WalletResponse
    debt_summary: DebtSummary


class DebtListResponse(BaseModel):
    results: int
    wallets: List[WalletResponse]
    total_debt: Decimal


class LedgerEntryResponse(BaseModel):
    """One row of the wallet trail."""

    id: int
    wallet_id: int
    attendant_id: int
    booking_id: Optional[int] = None
    entry_type: LedgerEntryType
    amount: Decimal
    balance_delta: Decimal
    debt_delta: Decimal
    balance_after: Decimal
    created_by_id: Optional[int] = None
    note: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class SystemWalletResponse(BaseModel):
    """Company-wide wallet."""

    total_revenue: Decimal
    total_company_share: Decimal
    total_attendant_payments: Decimal
    total_admin_collections: Decimal
    total_attendant_collections: Decimal
    current_balance: Decimal
    last_updated: datetime

    model_config = {"from_attributes": True}


class SystemWalletSummaryResponse(BaseModel):
    system_wallet: SystemWalletResponse
    total_attendant_debts: Decimal
    net_company_balance: Decimal
