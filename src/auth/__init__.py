"""Authentication module."""

from src.auth.dependencies import get_current_user, require_admin, require_attendant
from src.auth.jwt import create_access_token, verify_token
from src.auth.passwords import authenticate, hash_password, verify_password

__all__ = [
    "authenticate",
    "hash_password",
    "verify_password",
    "create_access_token",
    "verify_token",
    "get_current_user",
    "require_admin",
    "require_attendant",
]
