"""Credit limit engine - borrowing ceiling from blacklist flag and repayment history"""

from decimal import Decimal
from typing import Iterable, Optional
from lendbook.config import settings
from lendbook.domain.models import Client, CreditLimit, Loan, LoanStatus

BLACKLISTED = "Blacklisted"
STARTER = "Starter"
MAX_VIP = "MAX VIP"


def count_paid_loans(client_id: str, loans: Iterable[Loan]) -> int:
    """Number of loans this client has repaid in full"""
    return sum(1 for l in loans if l.client_id == client_id and l.status == LoanStatus.PAID)


def compute_limit(
    client: Client,
    loans: Iterable[Loan],
    base_limit: Optional[Decimal] = None,
    tier_increment: Optional[Decimal] = None,
    max_loan_cap: Optional[Decimal] = None,
) -> CreditLimit:
    """
    Map a client's history to a credit limit and tier.

    Tiers:
    - Blacklisted: 0, regardless of history
    - Starter:     base limit, no paid loans yet
    - Level N:     base + N * increment for N paid loans
    - MAX VIP:     clamped at the portfolio-wide cap

    Limits are not cached on the client; call this on every loan request.
    """
    if client.is_blacklisted:
        return CreditLimit(limit=Decimal(0), tier_label=BLACKLISTED)

    base_limit = settings.base_limit if base_limit is None else base_limit
    tier_increment = settings.tier_increment if tier_increment is None else tier_increment
    max_loan_cap = settings.max_loan_cap if max_loan_cap is None else max_loan_cap

    past_loans = count_paid_loans(client.id, loans)

    if past_loans > 0:
        limit = base_limit + past_loans * tier_increment
        label = f"Level {past_loans}"
    else:
        limit = base_limit
        label = STARTER

    if limit > max_loan_cap:
        return CreditLimit(limit=max_loan_cap, tier_label=MAX_VIP)

    return CreditLimit(limit=limit, tier_label=label)
