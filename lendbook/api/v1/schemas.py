"""Pydantic schemas for API request/response validation"""

import datetime as dt
from decimal import Decimal
from pydantic import BaseModel, Field
from typing import Dict, List, Optional

from lendbook.domain.models import (
    Client,
    CreditLimit,
    Expense,
    Frequency,
    Installment,
    Loan,
    PortfolioSnapshot,
)
from lendbook.utils.money import format_money


class ClientCreateRequest(BaseModel):
    """Request body for POST /v1/clients"""

    name: str = Field(..., min_length=1, description="Client name")
    phone: str = ""
    address: str = ""


class ClientResponse(BaseModel):
    """Client with its current credit limit"""

    client_id: str
    name: str
    phone: str
    address: str
    is_blacklisted: bool
    credit_limit: float
    tier_label: str

    @classmethod
    def from_domain(cls, client: Client, credit: CreditLimit) -> "ClientResponse":
        return cls(
            client_id=client.id,
            name=client.name,
            phone=client.phone,
            address=client.address,
            is_blacklisted=client.is_blacklisted,
            credit_limit=float(credit.limit),
            tier_label=credit.tier_label,
        )


class CreditLimitResponse(BaseModel):
    """Response for GET /v1/clients/{client_id}/limit"""

    client_id: str
    credit_limit: float
    tier_label: str


class LoanRequest(BaseModel):
    """Request body for POST /v1/loans"""

    client_id: str = Field(..., description="Borrowing client")
    principal: Decimal = Field(..., description="Requested amount, excluding any topped-up balance")
    rate_percent: Decimal = Field(..., description="Flat interest rate in percent")
    term: int = Field(..., description="Number of installments")
    frequency: Frequency = Frequency.MONTHLY
    start_date: dt.date = Field(default_factory=dt.date.today)
    top_up_of_loan_id: Optional[str] = Field(None, description="Active loan to fold into this one")


class ScheduleQuoteRequest(BaseModel):
    """Request body for POST /v1/loans/quote"""

    principal: Decimal
    rate_percent: Decimal
    term: int
    frequency: Frequency = Frequency.MONTHLY
    start_date: dt.date = Field(default_factory=dt.date.today)


class InstallmentSchema(BaseModel):
    """Single installment in a repayment schedule"""

    due_date: dt.date
    amount: float
    paid: bool = False

    @classmethod
    def from_domain(cls, installment: Installment) -> "InstallmentSchema":
        return cls(due_date=installment.due_date, amount=float(installment.amount), paid=installment.paid)


class ScheduleQuoteResponse(BaseModel):
    """Schedule preview; nothing is stored"""

    total_repayable: float
    max_term: int
    installments: List[InstallmentSchema]


class LoanResponse(BaseModel):
    """Loan with its repayment schedule"""

    loan_id: str
    client_id: str
    client_name: str
    principal: float
    rate_percent: float
    total_repayable: float
    interest: float
    balance: float
    term: int
    frequency: Frequency
    start_date: dt.date
    maturity_date: Optional[dt.date]
    status: str
    restructured_from: Optional[str] = None
    installments: List[InstallmentSchema]

    @classmethod
    def from_domain(cls, loan: Loan, client_name: str) -> "LoanResponse":
        return cls(
            loan_id=loan.id,
            client_id=loan.client_id,
            client_name=client_name,
            principal=float(loan.principal),
            rate_percent=float(loan.rate_percent),
            total_repayable=float(loan.total_repayable),
            interest=float(loan.interest),
            balance=float(loan.balance),
            term=loan.term,
            frequency=loan.frequency,
            start_date=loan.start_date,
            maturity_date=loan.maturity_date,
            status=loan.status.value,
            restructured_from=loan.restructured_from,
            installments=[InstallmentSchema.from_domain(i) for i in loan.schedule],
        )


class PaymentRequest(BaseModel):
    """Request body for POST /v1/loans/{loan_id}/payments"""

    amount: Decimal


class ExpenseCreateRequest(BaseModel):
    """Request body for POST /v1/expenses"""

    date: dt.date = Field(default_factory=dt.date.today)
    category: str
    amount: Decimal
    note: str = ""


class ExpenseResponse(BaseModel):
    expense_id: str
    date: dt.date
    category: str
    amount: float
    note: str

    @classmethod
    def from_domain(cls, expense: Expense) -> "ExpenseResponse":
        return cls(
            expense_id=expense.id,
            date=expense.date,
            category=expense.category,
            amount=float(expense.amount),
            note=expense.note,
        )


class PortfolioResponse(BaseModel):
    """Response for GET /v1/portfolio"""

    as_of: dt.date
    outstanding: float
    expense_total: float
    net_profit: float
    par: float
    total_lent: float
    client_count: int
    active_loan_count: int
    display: Dict[str, str]

    @classmethod
    def from_domain(cls, snapshot: PortfolioSnapshot) -> "PortfolioResponse":
        money = {
            "outstanding": snapshot.outstanding,
            "expense_total": snapshot.expense_total,
            "net_profit": snapshot.net_profit,
            "par": snapshot.par,
            "total_lent": snapshot.total_lent,
        }
        return cls(
            as_of=snapshot.as_of,
            client_count=snapshot.client_count,
            active_loan_count=snapshot.active_loan_count,
            display={key: format_money(value) for key, value in money.items()},
            **{key: float(value) for key, value in money.items()},
        )


class RestoreResponse(BaseModel):
    """Response for POST /v1/backup/restore"""

    restored: bool
    timestamp: str
