"""Pytest fixtures for testing"""

import pytest
from datetime import date
from decimal import Decimal
from typing import Generator, List, Optional
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from lendbook.api.main import create_app
from lendbook.domain.models import Client, Dataset, Frequency, Installment, Loan, LoanStatus
from lendbook.infrastructure.database.models import Base
from lendbook.infrastructure.database.session import build_engine
from lendbook.infrastructure.persistence import DocumentStore
from lendbook.service import LoanBookService


@pytest.fixture
def session_factory() -> Generator[sessionmaker, None, None]:
    """Fresh in-memory SQLite database per test"""
    engine = build_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    try:
        yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def sleeps() -> List[float]:
    """Backoff delays requested by the store, recorded instead of slept"""
    return []


@pytest.fixture
def store(session_factory: sessionmaker, sleeps: List[float]) -> DocumentStore:
    return DocumentStore(session_factory, max_retries=3, backoff_base=0.5, sleep=sleeps.append)


@pytest.fixture
def loanbook(store: DocumentStore) -> LoanBookService:
    service = LoanBookService(store)
    service.load()
    yield service
    service.close()


@pytest.fixture
def client(loanbook: LoanBookService) -> TestClient:
    """FastAPI test client backed by the in-memory loan book"""
    return TestClient(create_app(loanbook))


@pytest.fixture
def borrower() -> Client:
    return Client(id="c1", name="Amina Njeri", phone="0700 000 001", address="Market St 4")


def make_loan(
    client_id: str = "c1",
    loan_id: str = "l1",
    principal: str = "3000",
    amounts: tuple = ("1100", "1100", "1100"),
    status: LoanStatus = LoanStatus.ACTIVE,
    balance: Optional[str] = None,
    due_dates: tuple = (date(2024, 2, 1), date(2024, 3, 1), date(2024, 4, 1)),
    paid: tuple = (False, False, False),
) -> Loan:
    """Hand-built loan for reporting and limit tests"""
    schedule = [
        Installment(due_date=d, amount=Decimal(a), paid=p)
        for d, a, p in zip(due_dates, amounts, paid)
    ]
    total = sum((i.amount for i in schedule), Decimal(0))
    return Loan(
        id=loan_id,
        client_id=client_id,
        principal=Decimal(principal),
        rate_percent=Decimal("10"),
        total_repayable=total,
        balance=total if balance is None else Decimal(balance),
        term=len(schedule),
        frequency=Frequency.MONTHLY,
        start_date=date(2024, 1, 1),
        schedule=schedule,
        status=status,
    )


@pytest.fixture
def loan_factory():
    return make_loan


@pytest.fixture
def dataset(borrower: Client) -> Dataset:
    return Dataset(clients=[borrower])
