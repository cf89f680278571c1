"""
WashLedger - car-wash attendant wallet and commission ledger

Main FastAPI application with:
- Role-based authentication (admin/attendant)
- Booking management with automatic wallet postings
- Attendant wallets, settlement and the company system wallet
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import select

from src.api import api_router
from src.config import settings
from src.db import get_db_context
from src.models import User, UserRole
from src.services.exceptions import LedgerError
from src.services.system_wallet import get_or_create_system_wallet
from src.auth.passwords import hash_password, normalize_email

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup:
    - Creates the admin account if no admin exists
    - Creates the system wallet
    """
    logger.info("Starting WashLedger...")

    async with get_db_context() as db:
        result = await db.execute(
            select(User).where(User.role == UserRole.ADMIN).limit(1)
        )
        admin = result.scalar_one_or_none()

        if not admin:
            logger.info("Creating admin account...")
            admin = User(
                email=normalize_email(settings.admin_email),
                name=settings.admin_name,
                password_hash=hash_password(settings.admin_password),
                role=UserRole.ADMIN,
                is_active=True,
            )
            db.add(admin)
            logger.info(f"Admin account created: {settings.admin_email}")

        await get_or_create_system_wallet(db)
        await db.commit()

    logger.info("WashLedger started successfully!")

    yield

    logger.info("Shutting down WashLedger...")


# Create FastAPI application
app = FastAPI(
    title="WashLedger",
    description="Car-wash attendant wallet and commission ledger",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
)


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    """Render service errors with their HTTP status."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


app.include_router(api_router)  # /api/* endpoints


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=8000,
        reload=not settings.is_production,
    )
