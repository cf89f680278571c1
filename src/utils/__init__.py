"""Utility functions."""

from src.utils.audit import AuditContext, get_client_ip
from src.utils.dates import day_bounds

__all__ = [
    "AuditContext",
    "get_client_ip",
    "day_bounds",
]
