"""Repayment schedule generation for flat-interest loans"""

from datetime import date
from decimal import Decimal
from typing import Dict, List
from lendbook.domain.models import Frequency, Installment, RepaymentSchedule
from lendbook.domain.exceptions import ValidationError
from lendbook.utils.date_utils import add_days, add_months
from lendbook.utils.money import as_decimal, floor_cents

MAX_TERMS: Dict[Frequency, int] = {
    Frequency.DAILY: 26,
    Frequency.WEEKLY: 26,
    Frequency.MONTHLY: 6,
}


def max_term_for(frequency: Frequency) -> int:
    """Longest schedule allowed for a repayment frequency"""
    return MAX_TERMS[Frequency(frequency)]


def due_date_for(start_date: date, frequency: Frequency, period: int) -> date:
    """Due date of the period-th installment, counted from the start date"""
    frequency = Frequency(frequency)
    if frequency == Frequency.DAILY:
        return add_days(start_date, period)
    if frequency == Frequency.WEEKLY:
        return add_days(start_date, 7 * period)
    # Always offset from the start so Jan 31 -> Feb 29 -> Mar 31
    return add_months(start_date, period)


def compute_schedule(
    principal,
    rate_percent,
    term: int,
    frequency: Frequency,
    start_date: date,
) -> RepaymentSchedule:
    """
    Build a flat-interest repayment schedule.

    Requirements:
    - Interest charged once on the principal: total = P + P * R / 100
    - `term` equal installments, first one period after start_date
    - Every installment but the last is rounded down to the cent; the last
      absorbs the remainder so amounts sum to the total exactly. When the
      total itself is not a whole cent (e.g. 100.01 at 3.33%), the final
      installment carries those sub-cent digits

    Example:
        15000 at 10% over 6 months → total 16500, 6 x 2750.00
        100 at 0% over 3 → [33.33, 33.33, 33.34]
    """
    principal = as_decimal(principal)
    rate_percent = as_decimal(rate_percent)

    if principal <= 0:
        raise ValidationError("Principal must be greater than zero")
    if rate_percent < 0:
        raise ValidationError("Interest rate cannot be negative")
    if term <= 0:
        raise ValidationError("Term must be at least one installment")

    total_repayable = principal + principal * rate_percent / Decimal(100)

    base_amount = floor_cents(total_repayable / term)
    if base_amount <= 0:
        raise ValidationError(f"Amount {total_repayable} is too small to split into {term} installments")

    installments: List[Installment] = []
    for period in range(1, term + 1):
        # Last installment absorbs remainder to ensure exact total
        if period == term:
            amount = total_repayable - base_amount * (term - 1)
        else:
            amount = base_amount

        installments.append(
            Installment(due_date=due_date_for(start_date, frequency, period), amount=amount)
        )

    return RepaymentSchedule(total_repayable=total_repayable, installments=installments)
