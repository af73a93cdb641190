"""Pydantic records for the stored dataset document and backup files"""

import datetime as dt
from decimal import Decimal
from typing import Annotated, Any, Dict, List, Optional
from pydantic import AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel

from lendbook.domain.models import (
    Client,
    Dataset,
    Expense,
    Frequency,
    Installment,
    Loan,
    LoanStatus,
)
from lendbook.domain.lifecycle import settle_installments
from lendbook.domain.schedule import compute_schedule


class Record(BaseModel):
    """camelCase on the wire, snake_case in Python"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _canonical_id(value: Any) -> Any:
    # Older exports used numeric timestamps as ids
    return str(value) if isinstance(value, (int, float)) else value


Identifier = Annotated[str, BeforeValidator(_canonical_id)]


class ClientRecord(Record):
    id: Identifier
    name: str
    phone: str = ""
    address: str = ""
    is_blacklisted: bool = False

    @classmethod
    def from_domain(cls, client: Client) -> "ClientRecord":
        return cls(
            id=client.id,
            name=client.name,
            phone=client.phone,
            address=client.address,
            is_blacklisted=client.is_blacklisted,
        )

    def to_domain(self) -> Client:
        return Client(
            id=self.id,
            name=self.name,
            phone=self.phone,
            address=self.address,
            is_blacklisted=self.is_blacklisted,
        )


class InstallmentRecord(Record):
    due_date: dt.date
    amount: Decimal
    paid: bool = False


class LoanRecord(Record):
    id: Identifier
    client_id: Identifier
    principal: Decimal = Field(validation_alias=AliasChoices("principal", "amount"))
    rate_percent: Optional[Decimal] = None
    total_repayable: Decimal
    balance: Decimal
    term: int
    frequency: Frequency = Frequency.MONTHLY
    start_date: dt.date
    schedule: List[InstallmentRecord] = Field(default_factory=list)
    status: LoanStatus = LoanStatus.ACTIVE
    restructured_from: Optional[Identifier] = None

    @classmethod
    def from_domain(cls, loan: Loan) -> "LoanRecord":
        return cls(
            id=loan.id,
            client_id=loan.client_id,
            principal=loan.principal,
            rate_percent=loan.rate_percent,
            total_repayable=loan.total_repayable,
            balance=loan.balance,
            term=loan.term,
            frequency=loan.frequency,
            start_date=loan.start_date,
            schedule=[
                InstallmentRecord(due_date=i.due_date, amount=i.amount, paid=i.paid)
                for i in loan.schedule
            ],
            status=loan.status,
            restructured_from=loan.restructured_from,
        )

    def to_domain(self) -> Loan:
        rate_percent = self.rate_percent
        if rate_percent is None:
            # Legacy records only kept the totals
            rate_percent = (self.total_repayable - self.principal) * 100 / self.principal

        loan = Loan(
            id=self.id,
            client_id=self.client_id,
            principal=self.principal,
            rate_percent=rate_percent,
            total_repayable=self.total_repayable,
            balance=self.balance,
            term=self.term,
            frequency=self.frequency,
            start_date=self.start_date,
            schedule=[
                Installment(due_date=i.due_date, amount=i.amount, paid=i.paid)
                for i in self.schedule
            ],
            status=self.status,
            restructured_from=self.restructured_from,
        )

        if not loan.schedule:
            # Rebuild the schedule and settle it against what was already repaid
            loan.schedule = compute_schedule(
                loan.principal, rate_percent, loan.term, loan.frequency, loan.start_date
            ).installments
            settle_installments(loan)

        return loan


class ExpenseRecord(Record):
    id: Identifier
    date: dt.date
    category: str
    amount: Decimal
    note: str = ""

    @classmethod
    def from_domain(cls, expense: Expense) -> "ExpenseRecord":
        return cls(
            id=expense.id,
            date=expense.date,
            category=expense.category,
            amount=expense.amount,
            note=expense.note,
        )

    def to_domain(self) -> Expense:
        return Expense(
            id=self.id,
            date=self.date,
            category=self.category,
            amount=self.amount,
            note=self.note,
        )


class DatasetDocument(Record):
    """Whole-dataset document held by the persistence store"""

    clients: List[ClientRecord] = Field(default_factory=list)
    loans: List[LoanRecord] = Field(default_factory=list)
    expenses: List[ExpenseRecord] = Field(default_factory=list)
    last_updated: Optional[dt.datetime] = None

    def to_domain(self) -> Dataset:
        return Dataset(
            clients=[c.to_domain() for c in self.clients],
            loans=[l.to_domain() for l in self.loans],
            expenses=[e.to_domain() for e in self.expenses],
            last_updated=self.last_updated,
        )


class BackupDocument(Record):
    """Backup file contents; clients and loans are mandatory"""

    timestamp: Optional[str] = None
    clients: List[ClientRecord]
    loans: List[LoanRecord]
    expenses: List[ExpenseRecord] = Field(default_factory=list)

    def to_domain(self) -> Dataset:
        return Dataset(
            clients=[c.to_domain() for c in self.clients],
            loans=[l.to_domain() for l in self.loans],
            expenses=[e.to_domain() for e in self.expenses],
        )


def encode_dataset(dataset: Dataset) -> Dict[str, Any]:
    """Serialize a dataset to a JSON-compatible dict (decimals as strings)"""
    document = DatasetDocument(
        clients=[ClientRecord.from_domain(c) for c in dataset.clients],
        loans=[LoanRecord.from_domain(l) for l in dataset.loans],
        expenses=[ExpenseRecord.from_domain(e) for e in dataset.expenses],
        last_updated=dataset.last_updated,
    )
    return document.model_dump(mode="json", by_alias=True)


def decode_dataset(payload: Optional[Dict[str, Any]]) -> Dataset:
    """Parse a stored document; a missing document is an empty dataset"""
    if not payload:
        return Dataset()
    return DatasetDocument.model_validate(payload).to_domain()
