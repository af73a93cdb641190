"""Loan lifecycle rules - issuance, top-up restructuring, repayment and settlement"""

from datetime import date
from decimal import Decimal
from typing import Optional
from lendbook.config import settings
from lendbook.domain.models import Dataset, Frequency, Loan, LoanStatus, new_id
from lendbook.domain.credit_limit import compute_limit
from lendbook.domain.schedule import compute_schedule, max_term_for
from lendbook.domain.exceptions import (
    ClientNotFoundError,
    InvalidAmountError,
    LimitExceededError,
    LoanNotActiveError,
    LoanNotFoundError,
    TermExceededError,
)
from lendbook.utils.money import as_decimal


def _require_active_loan(dataset: Dataset, loan_id) -> Loan:
    loan = dataset.find_loan(loan_id)
    if loan is None:
        raise LoanNotFoundError(f"Loan {loan_id} not found")
    if not loan.is_active:
        raise LoanNotActiveError(f"Loan {loan.id} is {loan.status.value}")
    return loan


def issue_loan(
    dataset: Dataset,
    client_id,
    principal,
    rate_percent,
    term: int,
    frequency: Frequency,
    start_date: date,
    top_up_of_loan_id=None,
    limits: Optional[dict] = None,
) -> Loan:
    """
    Validate and create a loan, optionally folding in an active loan (top-up).

    Flow:
    1. Resolve client and top-up target
    2. exposure = principal (+ old balance) must fit the credit limit
    3. term must fit the frequency's maximum
    4. Restructure the old loan and append the new one

    Nothing is mutated unless every check passes. `limits` forwards
    overrides (base_limit, tier_increment, max_loan_cap) to the limit engine.
    """
    client = dataset.find_client(client_id)
    if client is None:
        raise ClientNotFoundError("Please select a valid client")

    principal = as_decimal(principal)
    if principal <= 0:
        raise InvalidAmountError("Loan amount must be greater than zero")

    frequency = Frequency(frequency)

    old_loan = None
    exposure = principal
    if top_up_of_loan_id is not None:
        old_loan = _require_active_loan(dataset, top_up_of_loan_id)
        if old_loan.client_id != client.id:
            raise LoanNotActiveError(f"Loan {old_loan.id} belongs to another client")
        exposure = principal + old_loan.balance

    credit = compute_limit(client, dataset.loans, **(limits or {}))
    if exposure > credit.limit:
        raise LimitExceededError(exposure, credit.limit, credit.tier_label)

    max_term = max_term_for(frequency)
    if term > max_term:
        raise TermExceededError(term, max_term, frequency.value)

    schedule = compute_schedule(exposure, rate_percent, term, frequency, start_date)

    loan = Loan(
        id=new_id(),
        client_id=client.id,
        principal=exposure,
        rate_percent=as_decimal(rate_percent),
        total_repayable=schedule.total_repayable,
        balance=schedule.total_repayable,
        term=term,
        frequency=frequency,
        start_date=start_date,
        schedule=schedule.installments,
    )

    if old_loan is not None:
        old_loan.balance = Decimal(0)
        old_loan.status = LoanStatus.RESTRUCTURED
        loan.restructured_from = old_loan.id

    dataset.loans.append(loan)
    return loan


def settle_installments(loan: Loan, tolerance: Optional[Decimal] = None) -> None:
    """
    Prefix settlement: mark installments paid in schedule order while the
    running total of installment amounts is covered by what has been paid.

    A payment that does not fully cover the next installment leaves it (and
    everything after it) unpaid.
    """
    tolerance = settings.payment_tolerance if tolerance is None else tolerance
    paid_so_far = loan.total_repayable - loan.balance

    running = Decimal(0)
    for installment in loan.schedule:
        running += installment.amount
        if running > paid_so_far + tolerance:
            break
        installment.paid = True


def apply_payment(loan: Loan, amount, tolerance: Optional[Decimal] = None) -> Loan:
    """Reduce balance, close the loan when it reaches zero, and settle installments"""
    tolerance = settings.payment_tolerance if tolerance is None else tolerance
    amount = as_decimal(amount)

    loan.balance -= amount

    # Overpayment or rounding dust both close the loan
    if loan.balance <= tolerance:
        loan.balance = Decimal(0)
        loan.status = LoanStatus.PAID

    settle_installments(loan, tolerance)
    return loan


def record_payment(dataset: Dataset, loan_id, amount, tolerance: Optional[Decimal] = None) -> Loan:
    """Apply a repayment to an active loan in the dataset"""
    amount = as_decimal(amount)
    if amount <= 0:
        raise InvalidAmountError("Please enter a valid amount")

    loan = _require_active_loan(dataset, loan_id)
    return apply_payment(loan, amount, tolerance)
