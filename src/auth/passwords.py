"""
Account credentials: bcrypt hashing and email/password lookup.
"""

from typing import Optional

from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models import User

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
)


def normalize_email(email: str) -> str:
    """Emails are stored and looked up lowercased."""
    return email.strip().lower()


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(
        select(User).where(User.email == normalize_email(email))
    )
    return result.scalar_one_or_none()


async def authenticate(db: AsyncSession, email: str, password: str) -> Optional[User]:
    """
    Look up an account by email and check its password.

    Returns:
        The user, or None when the email is unknown or the password is
        wrong. Disabled accounts are returned; the caller decides.
    """
    user = await get_user_by_email(db, email)
    if user is None or not verify_password(password, user.password_hash):
        return None
    return user
