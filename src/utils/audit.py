"""
Audit trail for ledger-moving admin actions.

Routes capture an ``AuditContext`` from the request before any unit of
work starts; services then record the audit row inside that same unit of
work, so a replayed or rolled-back write never leaves an orphaned (or
missing) audit entry.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from src.models.audit import AuditAction, AuditLog

if TYPE_CHECKING:
    from fastapi import Request

    from src.models.user import User


def get_client_ip(request: "Request") -> Optional[str]:
    """Client IP, honouring the first X-Forwarded-For hop."""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    if request.client:
        return request.client.host
    return None


def _jsonable(value: Any) -> Any:
    # Money goes into the JSON column as its exact string form
    if isinstance(value, Decimal):
        return str(value)
    return value


@dataclass(frozen=True)
class AuditContext:
    """Who is acting, captured as plain values that survive a rollback."""

    actor_id: Optional[int]
    ip_address: Optional[str] = None

    @classmethod
    def from_request(cls, request: "Request", user: Optional["User"]) -> "AuditContext":
        return cls(
            actor_id=user.id if user is not None else None,
            ip_address=get_client_ip(request),
        )

    async def record(
        self,
        db: AsyncSession,
        action: AuditAction,
        target_type: Optional[str] = None,
        target_id: Optional[int] = None,
        **metadata: Any,
    ) -> Optional[AuditLog]:
        """
        Add an audit row to the current transaction.

        Actions without an acting user (maintenance scripts) are not
        recorded.

        Args:
            db: Session of the unit of work being audited
            action: What was done
            target_type: "booking", "wallet" or "attendant"
            target_id: ID of the affected row
            **metadata: Extra context; Decimal values are stored as strings
        """
        if self.actor_id is None:
            return None

        log_entry = AuditLog(
            user_id=self.actor_id,
            action=action,
            target_type=target_type,
            target_id=target_id,
            action_metadata={k: _jsonable(v) for k, v in metadata.items()} or None,
            ip_address=self.ip_address,
        )
        db.add(log_entry)
        return log_entry


SYSTEM = AuditContext(actor_id=None)
