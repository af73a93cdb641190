"""Unit tests for loan issuance, top-ups and repayment settlement"""

import pytest
from datetime import date
from decimal import Decimal
from lendbook.domain.exceptions import (
    ClientNotFoundError,
    InvalidAmountError,
    LimitExceededError,
    LoanNotActiveError,
    LoanNotFoundError,
    TermExceededError,
)
from lendbook.domain.lifecycle import issue_loan, record_payment, settle_installments
from lendbook.domain.models import Client, Frequency, LoanStatus

START = date(2024, 1, 15)


def issue(dataset, principal="15000", rate="10", term=6, frequency=Frequency.MONTHLY, **kwargs):
    return issue_loan(dataset, "c1", Decimal(principal), Decimal(rate), term, frequency, START, **kwargs)


def test_issue_loan_end_to_end_example(dataset):
    """Starter client, 15000 at 10% for 6 months"""
    loan = issue(dataset)

    assert loan.status == LoanStatus.ACTIVE
    assert loan.principal == Decimal("15000")
    assert loan.total_repayable == Decimal("16500")
    assert loan.balance == Decimal("16500")
    assert [i.amount for i in loan.schedule] == [Decimal("2750")] * 6
    assert loan.schedule[0].due_date == date(2024, 2, 15)
    assert loan.maturity_date == date(2024, 7, 15)
    assert dataset.loans == [loan]


def test_issue_loan_unknown_client(dataset):
    with pytest.raises(ClientNotFoundError):
        issue_loan(dataset, "nobody", Decimal("100"), Decimal("10"), 3, Frequency.MONTHLY, START)
    assert dataset.loans == []


def test_issue_loan_rejects_non_positive_principal(dataset):
    with pytest.raises(InvalidAmountError):
        issue(dataset, principal="0")


def test_issue_loan_over_limit(dataset):
    with pytest.raises(LimitExceededError) as exc:
        issue(dataset, principal="20000.01")

    assert exc.value.limit == Decimal("20000")
    assert exc.value.tier_label == "Starter"
    assert dataset.loans == []


def test_issue_loan_at_limit_is_allowed(dataset):
    loan = issue(dataset, principal="20000")
    assert loan.principal == Decimal("20000")


def test_blacklisted_client_fails_limit_check(dataset):
    dataset.clients[0].is_blacklisted = True

    with pytest.raises(LimitExceededError) as exc:
        issue(dataset, principal="1")
    assert exc.value.tier_label == "Blacklisted"


@pytest.mark.parametrize(
    "frequency,term",
    [(Frequency.MONTHLY, 7), (Frequency.WEEKLY, 27), (Frequency.DAILY, 27)],
)
def test_issue_loan_term_exceeded(dataset, frequency, term):
    with pytest.raises(TermExceededError) as exc:
        issue(dataset, principal="1000", term=term, frequency=frequency)

    assert exc.value.max_term == term - 1
    assert dataset.loans == []


def test_issue_loan_at_max_term(dataset):
    loan = issue(dataset, principal="2600", term=26, frequency=Frequency.WEEKLY)
    assert len(loan.schedule) == 26


def test_top_up_restructures_old_loan(dataset):
    old = issue(dataset, principal="10000")
    record_payment(dataset, old.id, Decimal("5000"))  # balance 6000

    new = issue(dataset, principal="4000", top_up_of_loan_id=old.id)

    assert old.status == LoanStatus.RESTRUCTURED
    assert old.balance == Decimal(0)
    assert new.principal == Decimal("10000")
    assert new.total_repayable == Decimal("11000")
    assert new.restructured_from == old.id
    assert new.status == LoanStatus.ACTIVE


def test_top_up_exposure_counts_old_balance(dataset):
    old = issue(dataset, principal="15000")  # balance 16500

    with pytest.raises(LimitExceededError):
        issue(dataset, principal="4000", top_up_of_loan_id=old.id)

    assert old.status == LoanStatus.ACTIVE
    assert old.balance == Decimal("16500")
    assert len(dataset.loans) == 1


def test_top_up_term_failure_leaves_old_loan_untouched(dataset):
    old = issue(dataset, principal="1000")

    with pytest.raises(TermExceededError):
        issue(dataset, principal="1000", term=12, top_up_of_loan_id=old.id)

    assert old.status == LoanStatus.ACTIVE
    assert len(dataset.loans) == 1


def test_top_up_requires_active_loan(dataset):
    old = issue(dataset, principal="1000")
    record_payment(dataset, old.id, old.total_repayable)

    with pytest.raises(LoanNotActiveError):
        issue(dataset, principal="1000", top_up_of_loan_id=old.id)


def test_top_up_unknown_loan(dataset):
    with pytest.raises(LoanNotFoundError):
        issue(dataset, principal="1000", top_up_of_loan_id="missing")


def test_top_up_of_another_clients_loan(dataset):
    dataset.clients.append(Client(id="c2", name="Other"))
    other = issue_loan(dataset, "c2", Decimal("1000"), Decimal("10"), 3, Frequency.MONTHLY, START)

    with pytest.raises(LoanNotActiveError):
        issue(dataset, principal="1000", top_up_of_loan_id=other.id)


def test_payments_summing_to_total_close_loan(dataset):
    loan = issue(dataset, principal="1000", rate="10", term=3)  # 1100 total

    for amount in ("300", "450.50", "349.50"):
        record_payment(dataset, loan.id, Decimal(amount))

    assert loan.status == LoanStatus.PAID
    assert loan.balance == Decimal(0)
    assert all(i.paid for i in loan.schedule)


def test_prefix_settlement_two_of_three(dataset):
    """Paying exactly 2A marks installments 1 and 2, never 1 and 3"""
    loan = issue(dataset, principal="3000", rate="0", term=3)

    record_payment(dataset, loan.id, Decimal("2000"))

    assert [i.paid for i in loan.schedule] == [True, True, False]
    assert loan.balance == Decimal("1000")
    assert loan.status == LoanStatus.ACTIVE


def test_partial_payment_leaves_next_installment_unpaid(dataset):
    loan = issue(dataset, principal="3000", rate="0", term=3)

    record_payment(dataset, loan.id, Decimal("999"))
    assert [i.paid for i in loan.schedule] == [False, False, False]

    record_payment(dataset, loan.id, Decimal("1"))
    assert [i.paid for i in loan.schedule] == [True, False, False]


def test_rounding_remainder_within_tolerance_settles(dataset):
    loan = issue(dataset, principal="100", rate="0", term=3)  # 33.33, 33.33, 33.34

    record_payment(dataset, loan.id, Decimal("33.33"))
    record_payment(dataset, loan.id, Decimal("33.33"))
    record_payment(dataset, loan.id, Decimal("33.33"))

    assert loan.status == LoanStatus.PAID
    assert loan.balance == Decimal(0)
    assert all(i.paid for i in loan.schedule)


def test_overpayment_floors_balance(dataset):
    loan = issue(dataset, principal="1000", term=2)

    record_payment(dataset, loan.id, Decimal("5000"))

    assert loan.balance == Decimal(0)
    assert loan.status == LoanStatus.PAID
    assert all(i.paid for i in loan.schedule)


@pytest.mark.parametrize("amount", ["0", "-10"])
def test_record_payment_rejects_non_positive_amount(dataset, amount):
    loan = issue(dataset, principal="1000")

    with pytest.raises(InvalidAmountError):
        record_payment(dataset, loan.id, Decimal(amount))
    assert loan.balance == loan.total_repayable


def test_record_payment_unknown_loan(dataset):
    with pytest.raises(LoanNotFoundError):
        record_payment(dataset, "missing", Decimal("10"))


def test_record_payment_on_restructured_loan_rejected(dataset):
    old = issue(dataset, principal="1000")
    issue(dataset, principal="1000", top_up_of_loan_id=old.id)

    with pytest.raises(LoanNotActiveError):
        record_payment(dataset, old.id, Decimal("10"))
    assert old.status == LoanStatus.RESTRUCTURED


def test_paid_loans_raise_the_next_limit(dataset):
    first = issue(dataset, principal="20000")
    record_payment(dataset, first.id, first.total_repayable)

    second = issue(dataset, principal="25000")

    assert second.principal == Decimal("25000")


def test_settle_installments_is_idempotent(dataset):
    loan = issue(dataset, principal="3000", rate="0", term=3)
    record_payment(dataset, loan.id, Decimal("1500"))

    settle_installments(loan)
    settle_installments(loan)

    assert [i.paid for i in loan.schedule] == [True, False, False]
