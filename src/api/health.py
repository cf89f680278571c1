"""
Health check endpoints.

``/ready`` only passes once the database answers and the company system
wallet exists; every booking posting depends on it.
"""

import logging

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.db import get_db
from src.models import SYSTEM_WALLET_ID, SystemWallet

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["Health"])

SERVICE_NAME = "washledger"


@router.get("")
async def health_check():
    return {"status": "healthy", "service": SERVICE_NAME}


@router.get("/ready")
async def readiness_check(response: Response, db: AsyncSession = Depends(get_db)):
    """
    Database connectivity and ledger bootstrap state.

    Answers 503 while the database is unreachable or the system wallet
    has not been created yet (startup seeding has not run).
    """
    try:
        system_wallet = await db.get(SystemWallet, SYSTEM_WALLET_ID)
    except SQLAlchemyError as e:
        logger.error(f"Readiness check failed: {e}")
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return {"status": "not_ready", "database": "unavailable", "system_wallet": None}

    if system_wallet is None:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return {"status": "not_ready", "database": "connected", "system_wallet": "missing"}

    return {
        "status": "ready",
        "database": "connected",
        "system_wallet": "present",
        "system_balance": str(system_wallet.current_balance),
    }


@router.get("/live")
async def liveness_check():
    """Process is up; no dependencies checked."""
    return {"status": "alive"}
