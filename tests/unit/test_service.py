"""Unit tests for the loan book application state"""

import json
import pytest
from datetime import date
from decimal import Decimal
from unittest.mock import patch
from sqlalchemy.exc import OperationalError
from lendbook.domain.exceptions import (
    ClientNotFoundError,
    ExpenseNotFoundError,
    FormatError,
    InvalidAmountError,
    LimitExceededError,
    PersistenceError,
    ValidationError,
)
from lendbook.domain.models import Frequency
from lendbook.service import UNKNOWN_CLIENT, LoanBookService

REPLACE = "lendbook.infrastructure.database.repositories.DocumentRepository.replace_document"


def db_down(*args, **kwargs):
    raise OperationalError("UPDATE dataset_document", {}, Exception("disk I/O error"))


def test_register_client_persists(loanbook, store):
    client = loanbook.register_client("  Amina  ", "0700", "Market St")

    assert client.name == "Amina"
    assert loanbook.state.find_client(client.id) == client
    assert store.load().clients == [client]


def test_register_client_requires_name(loanbook):
    with pytest.raises(ValidationError):
        loanbook.register_client("   ")
    assert loanbook.state.clients == []


def test_toggle_blacklist(loanbook):
    client = loanbook.register_client("Amina")

    assert loanbook.toggle_blacklist(client.id).is_blacklisted is True
    assert loanbook.quote_limit(client.id).limit == Decimal(0)
    assert loanbook.toggle_blacklist(client.id).is_blacklisted is False
    assert loanbook.toggle_blacklist(client.id, blacklisted=False).is_blacklisted is False


def test_toggle_blacklist_unknown_client(loanbook):
    with pytest.raises(ClientNotFoundError):
        loanbook.toggle_blacklist("nobody")


def test_issue_and_repay_through_service(loanbook, store):
    client = loanbook.register_client("Amina")
    loan = loanbook.issue_loan(client.id, "15000", "10", 6, Frequency.MONTHLY, date(2024, 1, 1))

    loanbook.record_payment(loan.id, Decimal("5500"))

    stored = store.load().find_loan(loan.id)
    assert stored.balance == Decimal("11000")
    assert [i.paid for i in stored.schedule] == [True, True, False, False, False, False]
    assert loanbook.get_loan(loan.id).balance == Decimal("11000")


def test_rejected_loan_mutates_nothing(loanbook, store):
    client = loanbook.register_client("Amina")

    with pytest.raises(LimitExceededError):
        loanbook.issue_loan(client.id, "50000", "10", 6, Frequency.MONTHLY, date(2024, 1, 1))

    assert loanbook.state.loans == []
    assert store.load().loans == []


def test_limit_recomputed_after_payoff(loanbook):
    client = loanbook.register_client("Amina")
    loan = loanbook.issue_loan(client.id, "1000", "10", 2, Frequency.WEEKLY, date(2024, 1, 1))
    assert loanbook.quote_limit(client.id).tier_label == "Starter"

    loanbook.record_payment(loan.id, loan.total_repayable)

    credit = loanbook.quote_limit(client.id)
    assert credit.tier_label == "Level 1"
    assert credit.limit == Decimal("25000")


def test_failed_save_rolls_back_in_memory_state(loanbook):
    client = loanbook.register_client("Amina")
    loan = loanbook.issue_loan(client.id, "1000", "10", 2, Frequency.WEEKLY, date(2024, 1, 1))

    with patch(REPLACE, db_down):
        with pytest.raises(PersistenceError):
            loanbook.record_payment(loan.id, Decimal("550"))

    current = loanbook.get_loan(loan.id)
    assert current.balance == Decimal("1100")
    assert not any(i.paid for i in current.schedule)
    assert loanbook.connected is False

    loanbook.record_payment(loan.id, Decimal("550"))
    assert loanbook.connected is True


def test_client_name_for_dangling_reference(loanbook, loan_factory):
    assert loanbook.client_name(loan_factory(client_id="ghost")) == UNKNOWN_CLIENT


def test_expenses(loanbook):
    expense = loanbook.add_expense(date(2024, 1, 2), "Rent", "250", "January")

    assert loanbook.state.expenses == [expense]

    loanbook.delete_expense(expense.id)
    assert loanbook.state.expenses == []


def test_expense_validation(loanbook):
    with pytest.raises(InvalidAmountError):
        loanbook.add_expense(date(2024, 1, 2), "Rent", "0")
    with pytest.raises(ValidationError):
        loanbook.add_expense(date(2024, 1, 2), " ", "10")
    with pytest.raises(ExpenseNotFoundError):
        loanbook.delete_expense("missing")


def test_portfolio(loanbook):
    client = loanbook.register_client("Amina")
    loanbook.issue_loan(client.id, "15000", "10", 6, Frequency.MONTHLY, date(2024, 1, 1))
    loanbook.add_expense(date(2024, 1, 2), "Rent", "500")

    snapshot = loanbook.portfolio(date(2024, 4, 15))

    assert snapshot.outstanding == Decimal("16500")
    assert snapshot.net_profit == Decimal("1000")
    # Feb 1 installment is 74 days late
    assert snapshot.par == Decimal("16500")


def test_clear_data(loanbook, store):
    client = loanbook.register_client("Amina")
    loanbook.issue_loan(client.id, "1000", "10", 2, Frequency.WEEKLY, date(2024, 1, 1))

    loanbook.clear_data()

    assert loanbook.state.clients == []
    assert loanbook.state.loans == []
    assert store.load().loans == []


def test_backup_round_trip_requires_confirmation(loanbook):
    client = loanbook.register_client("Amina")
    text = loanbook.export_backup()
    loanbook.clear_data()
    prompts = []

    declined = loanbook.restore_backup(text, lambda ts: prompts.append(ts) or False)
    assert declined is False
    assert loanbook.state.clients == []

    accepted = loanbook.restore_backup(text, lambda ts: True)
    assert accepted is True
    assert loanbook.state.clients == [client]
    assert len(prompts) == 1


def test_restore_prompt_for_undated_backup(loanbook):
    prompts = []
    loanbook.restore_backup(json.dumps({"clients": [], "loans": []}), lambda ts: prompts.append(ts) or False)

    assert prompts == ["unknown date"]


def test_restore_bad_file_leaves_data(loanbook):
    client = loanbook.register_client("Amina")

    with pytest.raises(FormatError):
        loanbook.restore_backup(json.dumps({"clients": []}), lambda ts: True)

    assert loanbook.state.clients == [client]


def test_second_service_sees_saved_data(store):
    writer = LoanBookService(store)
    writer.register_client("Amina")

    reader = LoanBookService(store)
    reader.load()

    assert [c.name for c in reader.state.clients] == ["Amina"]
