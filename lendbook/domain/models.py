"""Domain models - pure Python dataclasses representing business entities"""

import copy
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional


def new_id() -> str:
    """Generate a canonical string identifier"""
    return uuid.uuid4().hex


class LoanStatus(str, Enum):
    ACTIVE = "Active"
    PAID = "Paid"
    RESTRUCTURED = "Restructured"


class Frequency(str, Enum):
    DAILY = "Daily"
    WEEKLY = "Weekly"
    MONTHLY = "Monthly"


@dataclass
class Client:
    """Borrower registered with the business"""

    id: str
    name: str
    phone: str = ""
    address: str = ""
    is_blacklisted: bool = False


@dataclass
class Installment:
    """Single payment in a repayment schedule"""

    due_date: date
    amount: Decimal
    paid: bool = False


@dataclass
class Loan:
    """Issued loan with its flat-interest repayment schedule"""

    id: str
    client_id: str
    principal: Decimal
    rate_percent: Decimal
    total_repayable: Decimal
    balance: Decimal
    term: int
    frequency: Frequency
    start_date: date
    schedule: List[Installment] = field(default_factory=list)
    status: LoanStatus = LoanStatus.ACTIVE
    restructured_from: Optional[str] = None  # Loan folded in by a top-up

    @property
    def interest(self) -> Decimal:
        return self.total_repayable - self.principal

    @property
    def maturity_date(self) -> Optional[date]:
        return self.schedule[-1].due_date if self.schedule else None

    @property
    def is_active(self) -> bool:
        return self.status == LoanStatus.ACTIVE


@dataclass
class Expense:
    """Operating expense charged against interest income"""

    id: str
    date: date
    category: str
    amount: Decimal
    note: str = ""


@dataclass
class RepaymentSchedule:
    """Output of the schedule calculator"""

    total_repayable: Decimal
    installments: List[Installment]


@dataclass
class CreditLimit:
    """Borrowing ceiling for a client"""

    limit: Decimal
    tier_label: str


@dataclass
class PortfolioSnapshot:
    """Portfolio health figures, recomputed on demand and never stored"""

    as_of: date
    outstanding: Decimal
    expense_total: Decimal
    net_profit: Decimal
    par: Decimal
    total_lent: Decimal
    client_count: int
    active_loan_count: int


@dataclass
class Dataset:
    """Whole application state: the three collections kept by the store"""

    clients: List[Client] = field(default_factory=list)
    loans: List[Loan] = field(default_factory=list)
    expenses: List[Expense] = field(default_factory=list)
    last_updated: Optional[datetime] = None

    def find_client(self, client_id) -> Optional[Client]:
        client_id = str(client_id)
        return next((c for c in self.clients if c.id == client_id), None)

    def find_loan(self, loan_id) -> Optional[Loan]:
        loan_id = str(loan_id)
        return next((l for l in self.loans if l.id == loan_id), None)

    def find_expense(self, expense_id) -> Optional[Expense]:
        expense_id = str(expense_id)
        return next((e for e in self.expenses if e.id == expense_id), None)

    def loans_for(self, client_id) -> List[Loan]:
        client_id = str(client_id)
        return [l for l in self.loans if l.client_id == client_id]

    def copy(self) -> "Dataset":
        return copy.deepcopy(self)
