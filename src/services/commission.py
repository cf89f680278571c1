"""
Commission policy for completed bookings.

Rules:
- Attendant earns 40% of the booking amount, the company keeps 60%
- Admin-collected payments (cash or till): the company holds the money and
  owes the attendant their commission
- Attendant-collected cash: the attendant holds the money and owes the
  company its share (company debt)
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from src.models.booking import PaymentMethod

COMMISSION_RATE = Decimal("0.40")     # attendant
COMPANY_SHARE_RATE = Decimal("0.60")  # business
CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    """Quantize a value to cents."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class CommissionSplit:
    """Wallet deltas produced by one booking."""

    amount: Decimal
    commission: Decimal
    company_share: Decimal
    balance_delta: Decimal
    debt_delta: Decimal

    def reversed(self) -> "CommissionSplit":
        """Additive inverse, used when a booking stops contributing."""
        return CommissionSplit(
            amount=-self.amount,
            commission=-self.commission,
            company_share=-self.company_share,
            balance_delta=-self.balance_delta,
            debt_delta=-self.debt_delta,
        )


def split_booking(amount: Decimal, payment_method: PaymentMethod) -> CommissionSplit:
    """Split a completed booking's amount into attendant and company parts.

    The company share is derived as ``amount - commission`` so the two
    parts always add up to the booking amount after rounding to cents.

    Args:
        amount: Booking amount (positive, validated by the caller)
        payment_method: Who collected the money

    Returns:
        CommissionSplit with the balance and company debt deltas to apply
    """
    amount = to_money(amount)
    commission = to_money(amount * COMMISSION_RATE)
    company_share = amount - commission

    if PaymentMethod(payment_method).collected_by_attendant:
        balance_delta = -company_share
        debt_delta = company_share
    else:
        balance_delta = commission
        debt_delta = Decimal("0.00")

    return CommissionSplit(
        amount=amount,
        commission=commission,
        company_share=company_share,
        balance_delta=balance_delta,
        debt_delta=debt_delta,
    )


def reverse_split(amount: Decimal, payment_method: PaymentMethod) -> CommissionSplit:
    """Inverse of :func:`split_booking`."""
    return split_booking(amount, payment_method).reversed()
