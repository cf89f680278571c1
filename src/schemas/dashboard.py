"""Wallet reporting and revenue stats schemas."""

from datetime import date
from decimal import Decimal
from typing import List

from pydantic import BaseModel


class WalletSummaryResponse(BaseModel):
    """Totals across all attendant wallets."""

    total_wallets: int
    unpaid_wallets: int
    paid_wallets: int
    total_balance: Decimal
    total_earnings: Decimal
    total_commission: Decimal
    total_company_share: Decimal


class DailyAttendantSummary(BaseModel):
    """One attendant's open bookings for a day."""

    attendant_id: int
    attendant_name: str
    attendant_email: str
    total_bookings: int
    total_amount: Decimal
    total_commission: Decimal
    total_company_share: Decimal
    attendant_cash_bookings: int
    attendant_cash_amount: Decimal
    company_debt: Decimal


class DailySummaryResponse(BaseModel):
    date: date
    total_attendants: int
    total_bookings: int
    total_amount: Decimal
    total_commission: Decimal
    total_company_share: Decimal
    attendants: List[DailyAttendantSummary]


class StatsResponse(BaseModel):
    """Revenue stats (company share of completed bookings)."""

    total_revenue: Decimal
    today_revenue: Decimal
    today_total_bookings: int
