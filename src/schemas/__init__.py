"""Pydantic schemas for request/response validation."""

from src.schemas.auth import LoginRequest, LoginResponse, TokenPayload
from src.schemas.booking import BookingCreate, BookingResponse, BookingUpdate
from src.schemas.dashboard import (
    DailyAttendantSummary,
    DailySummaryResponse,
    StatsResponse,
    WalletSummaryResponse,
)
from src.schemas.user import AttendantCreate, AttendantResponse, UserBrief
from src.schemas.wallet import (
    AdjustmentRequest,
    LedgerEntryResponse,
    SettleRequest,
    SettleResponse,
    SystemWalletResponse,
    WalletResponse,
    wallet_response,
)

__all__ = [
    # Auth
    "LoginRequest",
    "LoginResponse",
    "TokenPayload",
    # Users
    "AttendantCreate",
    "AttendantResponse",
    "UserBrief",
    # Bookings
    "BookingCreate",
    "BookingUpdate",
    "BookingResponse",
    # Wallets
    "WalletResponse",
    "wallet_response",
    "AdjustmentRequest",
    "SettleRequest",
    "SettleResponse",
    "LedgerEntryResponse",
    "SystemWalletResponse",
    # Reporting
    "WalletSummaryResponse",
    "DailyAttendantSummary",
    "DailySummaryResponse",
    "StatsResponse",
]
