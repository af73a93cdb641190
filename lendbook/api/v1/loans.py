"""Loan issuance, schedule quotes, lookups and repayments"""

import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Request, status

from lendbook.api.v1.schemas import (
    InstallmentSchema,
    LoanRequest,
    LoanResponse,
    PaymentRequest,
    ScheduleQuoteRequest,
    ScheduleQuoteResponse,
)
from lendbook.api.dependencies import get_loanbook, get_request_id
from lendbook.domain.exceptions import (
    ClientNotFoundError,
    LimitExceededError,
    LoanNotActiveError,
    LoanNotFoundError,
    PersistenceError,
    TermExceededError,
    ValidationError,
)
from lendbook.domain.models import LoanStatus
from lendbook.domain.schedule import compute_schedule, max_term_for
from lendbook.infrastructure.observability.logging import log_loan_issued, log_payment, log_rejection
from lendbook.infrastructure.observability.metrics import (
    loan_rejections_counter,
    loans_paid_off_counter,
    payments_counter,
    record_loan_issued,
)
from lendbook.service import LoanBookService

router = APIRouter()


def _reject(request_id: str, reason: str, status_code: int, detail) -> HTTPException:
    loan_rejections_counter.labels(reason=reason).inc()
    log_rejection(request_id, reason, str(detail))
    return HTTPException(status_code=status_code, detail=detail)


@router.post("/loans", response_model=LoanResponse, status_code=status.HTTP_201_CREATED)
def issue_loan(
    request_body: LoanRequest,
    request: Request,
    loanbook: LoanBookService = Depends(get_loanbook),
):
    """
    Issue a loan, or top up an active one.

    Flow:
    1. Resolve the client and recompute their credit limit
    2. Check exposure (principal + topped-up balance) against the limit
    3. Check term against the frequency's maximum
    4. Build the flat-interest schedule and persist
    """
    request_id = get_request_id(request)

    try:
        loan = loanbook.issue_loan(
            client_id=request_body.client_id,
            principal=request_body.principal,
            rate_percent=request_body.rate_percent,
            term=request_body.term,
            frequency=request_body.frequency,
            start_date=request_body.start_date,
            top_up_of_loan_id=request_body.top_up_of_loan_id,
        )

    except ClientNotFoundError as e:
        raise _reject(request_id, "not_found", 404, str(e))

    except LoanNotFoundError as e:
        raise _reject(request_id, "not_found", 404, str(e))

    except LoanNotActiveError as e:
        raise _reject(request_id, "not_active", 409, str(e))

    except LimitExceededError as e:
        raise _reject(
            request_id,
            "limit_exceeded",
            422,
            {
                "field": e.field,
                "message": str(e),
                "credit_limit": float(e.limit),
                "tier_label": e.tier_label,
            },
        )

    except TermExceededError as e:
        raise _reject(
            request_id,
            "term_exceeded",
            422,
            {"field": e.field, "message": str(e), "max_term": e.max_term},
        )

    except ValidationError as e:
        raise _reject(request_id, "validation", 400, str(e))

    except PersistenceError as e:
        logging.error(f"Loan not saved: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Storage unavailable")

    # Record metrics and logs
    record_loan_issued(loan.frequency.value, loan.principal, top_up=loan.restructured_from is not None)
    log_loan_issued(request_id, loan.id, loan.client_id, loan.principal, loan.total_repayable, loan.restructured_from)
    return LoanResponse.from_domain(loan, loanbook.client_name(loan))


@router.post("/loans/quote", response_model=ScheduleQuoteResponse)
def quote_schedule(request_body: ScheduleQuoteRequest):
    """Preview a repayment schedule without creating anything"""
    max_term = max_term_for(request_body.frequency)
    if request_body.term > max_term:
        e = TermExceededError(request_body.term, max_term, request_body.frequency.value)
        raise HTTPException(
            status_code=422,
            detail={"field": e.field, "message": str(e), "max_term": e.max_term},
        )

    try:
        schedule = compute_schedule(
            request_body.principal,
            request_body.rate_percent,
            request_body.term,
            request_body.frequency,
            request_body.start_date,
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return ScheduleQuoteResponse(
        total_repayable=float(schedule.total_repayable),
        max_term=max_term,
        installments=[InstallmentSchema.from_domain(i) for i in schedule.installments],
    )


@router.get("/loans", response_model=List[LoanResponse])
def list_loans(loanbook: LoanBookService = Depends(get_loanbook)):
    """All loans, any status"""
    return [LoanResponse.from_domain(l, loanbook.client_name(l)) for l in loanbook.state.loans]


@router.get("/loans/{loan_id}", response_model=LoanResponse)
def get_loan(loan_id: str, loanbook: LoanBookService = Depends(get_loanbook)):
    """Loan details with installment settlement"""
    try:
        loan = loanbook.get_loan(loan_id)
    except LoanNotFoundError:
        raise HTTPException(status_code=404, detail="Loan not found")

    return LoanResponse.from_domain(loan, loanbook.client_name(loan))


@router.post("/loans/{loan_id}/payments", response_model=LoanResponse)
def record_payment(
    loan_id: str,
    request_body: PaymentRequest,
    request: Request,
    loanbook: LoanBookService = Depends(get_loanbook),
):
    """
    Record a repayment.

    Installments settle strictly in schedule order; overpayment closes the loan.
    """
    request_id = get_request_id(request)

    try:
        loan = loanbook.record_payment(loan_id, request_body.amount)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except LoanNotFoundError:
        raise HTTPException(status_code=404, detail="Loan not found")
    except LoanNotActiveError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except PersistenceError as e:
        logging.error(f"Payment not saved: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Storage unavailable")

    payments_counter.inc()
    if loan.status == LoanStatus.PAID:
        loans_paid_off_counter.inc()
    log_payment(request_id, loan.id, request_body.amount, loan.balance, loan.status.value)

    return LoanResponse.from_domain(loan, loanbook.client_name(loan))
