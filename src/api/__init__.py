"""API router aggregation."""

from fastapi import APIRouter

from src.api.attendants import router as attendants_router
from src.api.auth import router as auth_router
from src.api.bookings import router as bookings_router
from src.api.health import router as health_router
from src.api.stats import router as stats_router
from src.api.wallets import router as wallets_router

# Main API router (for /api/* endpoints)
api_router = APIRouter(prefix="/api")

api_router.include_router(health_router)
api_router.include_router(auth_router)
api_router.include_router(attendants_router)
api_router.include_router(bookings_router)
api_router.include_router(wallets_router)
api_router.include_router(stats_router)

__all__ = ["api_router"]
