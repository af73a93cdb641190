"""Portfolio reporting - outstanding balance, net profit and portfolio at risk"""

from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional
from lendbook.config import settings
from lendbook.domain.models import Client, Expense, Installment, Loan, LoanStatus, PortfolioSnapshot
from lendbook.utils.date_utils import days_past


def overdue_installments(loan: Loan, as_of: date, threshold_days: int) -> List[Installment]:
    """Unpaid installments due more than threshold_days before as_of"""
    return [
        inst for inst in loan.schedule
        if not inst.paid and days_past(inst.due_date, as_of) > threshold_days
    ]


def portfolio_at_risk(loans: Iterable[Loan], as_of: date, threshold_days: int) -> Decimal:
    """
    Sum of whole balances of loans with any installment overdue past the threshold.

    All-or-nothing per loan: one late installment puts the entire balance at risk.
    """
    return sum(
        (
            l.balance for l in loans
            if l.balance > 0 and overdue_installments(l, as_of, threshold_days)
        ),
        Decimal(0),
    )


def report(
    clients: List[Client],
    loans: List[Loan],
    expenses: List[Expense],
    as_of: date,
    threshold_days: Optional[int] = None,
) -> PortfolioSnapshot:
    """
    Aggregate portfolio health.

    Net profit recognises interest on issuance: it counts the interest margin
    of every loan, whatever its status, minus recorded expenses.
    """
    threshold_days = settings.par_threshold_days if threshold_days is None else threshold_days

    outstanding = sum((l.balance for l in loans if l.balance > 0), Decimal(0))
    expense_total = sum((e.amount for e in expenses), Decimal(0))
    gross_interest = sum((l.interest for l in loans), Decimal(0))

    return PortfolioSnapshot(
        as_of=as_of,
        outstanding=outstanding,
        expense_total=expense_total,
        net_profit=gross_interest - expense_total,
        par=portfolio_at_risk(loans, as_of, threshold_days),
        total_lent=sum((l.principal for l in loans), Decimal(0)),
        client_count=len(clients),
        active_loan_count=sum(1 for l in loans if l.status == LoanStatus.ACTIVE),
    )
