"""Application state owner - runs every mutation against the dataset and persists it"""

import logging
import threading
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Optional

from lendbook.config import settings
from lendbook.domain import lifecycle
from lendbook.domain.credit_limit import compute_limit
from lendbook.domain.exceptions import (
    ClientNotFoundError,
    ExpenseNotFoundError,
    InvalidAmountError,
    LoanNotFoundError,
    ValidationError,
)
from lendbook.domain.models import (
    Client,
    CreditLimit,
    Dataset,
    Expense,
    Frequency,
    Loan,
    PortfolioSnapshot,
    new_id,
)
from lendbook.domain.reporting import report
from lendbook.infrastructure.backup import dump_backup, load_backup
from lendbook.infrastructure.persistence import DocumentStore
from lendbook.utils.money import as_decimal

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "Unknown Client"


class LoanBookService:
    """
    Owns the in-memory dataset.

    Mutations are serialised by a lock and applied to a working copy. The copy
    is saved through the store; the store's change notification then replaces
    `state`. A failed save leaves `state` exactly as it was before the call.
    """

    def __init__(self, store: DocumentStore, tolerance: Optional[Decimal] = None, limits: Optional[dict] = None):
        self.store = store
        self.tolerance = settings.payment_tolerance if tolerance is None else tolerance
        self.limits = limits or {}
        self.state = Dataset()
        self.connected = True
        self._lock = threading.RLock()
        self._unsubscribe = store.subscribe(self._on_data, self._on_error)

    def load(self) -> Dataset:
        """Replace in-memory state with whatever the store holds"""
        with self._lock:
            self.state = self.store.load()
            self.connected = True
            return self.state

    def close(self) -> None:
        self._unsubscribe()

    def _on_data(self, dataset: Dataset) -> None:
        self.state = dataset
        self.connected = True

    def _on_error(self, error: Exception) -> None:
        self.connected = False
        logger.error(f"Persistence unavailable: {error}", extra={"step": "persistence_error"})

    def _commit(self, mutate: Callable[[Dataset], object]):
        with self._lock:
            working = self.state.copy()
            result = mutate(working)
            self.store.save(working)
            return result

    # Clients

    def register_client(self, name: str, phone: str = "", address: str = "") -> Client:
        if not name or not name.strip():
            raise ValidationError("Client name is required")

        client = Client(id=new_id(), name=name.strip(), phone=phone.strip(), address=address.strip())

        def mutate(dataset: Dataset) -> Client:
            dataset.clients.append(client)
            return client

        return self._commit(mutate)

    def toggle_blacklist(self, client_id, blacklisted: Optional[bool] = None) -> Client:
        """Flip the blacklist flag, or set it explicitly when `blacklisted` is given"""

        def mutate(dataset: Dataset) -> Client:
            client = dataset.find_client(client_id)
            if client is None:
                raise ClientNotFoundError(f"Client {client_id} not found")
            client.is_blacklisted = (not client.is_blacklisted) if blacklisted is None else blacklisted
            return client

        return self._commit(mutate)

    def get_client(self, client_id) -> Client:
        client = self.state.find_client(client_id)
        if client is None:
            raise ClientNotFoundError(f"Client {client_id} not found")
        return client

    def quote_limit(self, client_id) -> CreditLimit:
        state = self.state
        client = state.find_client(client_id)
        if client is None:
            raise ClientNotFoundError(f"Client {client_id} not found")
        return compute_limit(client, state.loans, **self.limits)

    def client_name(self, loan: Loan) -> str:
        client = self.state.find_client(loan.client_id)
        return client.name if client is not None else UNKNOWN_CLIENT

    # Loans

    def issue_loan(
        self,
        client_id,
        principal,
        rate_percent,
        term: int,
        frequency: Frequency,
        start_date: date,
        top_up_of_loan_id=None,
    ) -> Loan:
        return self._commit(
            lambda dataset: lifecycle.issue_loan(
                dataset,
                client_id,
                principal,
                rate_percent,
                term,
                frequency,
                start_date,
                top_up_of_loan_id=top_up_of_loan_id,
                limits=self.limits,
            )
        )

    def record_payment(self, loan_id, amount) -> Loan:
        return self._commit(
            lambda dataset: lifecycle.record_payment(dataset, loan_id, amount, self.tolerance)
        )

    def get_loan(self, loan_id) -> Loan:
        loan = self.state.find_loan(loan_id)
        if loan is None:
            raise LoanNotFoundError(f"Loan {loan_id} not found")
        return loan

    # Expenses

    def add_expense(self, expense_date: date, category: str, amount, note: str = "") -> Expense:
        amount = as_decimal(amount)
        if amount <= 0:
            raise InvalidAmountError("Expense amount must be greater than zero")
        if not category or not category.strip():
            raise ValidationError("Expense category is required")

        expense = Expense(id=new_id(), date=expense_date, category=category.strip(), amount=amount, note=note)

        def mutate(dataset: Dataset) -> Expense:
            dataset.expenses.append(expense)
            return expense

        return self._commit(mutate)

    def delete_expense(self, expense_id) -> None:
        def mutate(dataset: Dataset) -> None:
            expense = dataset.find_expense(expense_id)
            if expense is None:
                raise ExpenseNotFoundError(f"Expense {expense_id} not found")
            dataset.expenses.remove(expense)

        self._commit(mutate)

    # Reporting

    def portfolio(self, as_of: Optional[date] = None) -> PortfolioSnapshot:
        state = self.state
        return report(
            state.clients,
            state.loans,
            state.expenses,
            as_of or date.today(),
        )

    # Data management

    def clear_data(self) -> None:
        """Wipe clients, loans and expenses"""

        def mutate(dataset: Dataset) -> None:
            dataset.clients.clear()
            dataset.loans.clear()
            dataset.expenses.clear()

        self._commit(mutate)

    def export_backup(self, now: Optional[datetime] = None) -> str:
        return dump_backup(self.state, now)

    def restore_backup(self, text: str, confirm: Callable[[str], bool]) -> bool:
        """
        Replace live data with a backup after the caller confirms.

        `confirm` receives the backup's timestamp ("unknown date" when absent).
        The file is fully validated before confirmation is asked; a FormatError
        leaves live data untouched.
        """
        restored, timestamp = load_backup(text)
        if not confirm(timestamp or "unknown date"):
            return False

        def mutate(dataset: Dataset) -> None:
            dataset.clients = restored.clients
            dataset.loans = restored.loans
            dataset.expenses = restored.expenses

        self._commit(mutate)
        return True
