"""Expense entry, listing and deletion"""

import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from lendbook.api.v1.schemas import ExpenseCreateRequest, ExpenseResponse
from lendbook.api.dependencies import get_loanbook, get_request_id
from lendbook.domain.exceptions import ExpenseNotFoundError, PersistenceError, ValidationError
from lendbook.service import LoanBookService

router = APIRouter()


@router.post("/expenses", response_model=ExpenseResponse, status_code=status.HTTP_201_CREATED)
def add_expense(
    request_body: ExpenseCreateRequest,
    request: Request,
    loanbook: LoanBookService = Depends(get_loanbook),
):
    request_id = get_request_id(request)
    try:
        expense = loanbook.add_expense(
            request_body.date,
            request_body.category,
            request_body.amount,
            request_body.note,
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PersistenceError as e:
        logging.error(f"Expense not saved: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Storage unavailable")

    return ExpenseResponse.from_domain(expense)


@router.get("/expenses", response_model=List[ExpenseResponse])
def list_expenses(loanbook: LoanBookService = Depends(get_loanbook)):
    return [ExpenseResponse.from_domain(e) for e in loanbook.state.expenses]


@router.delete("/expenses/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_expense(
    expense_id: str,
    request: Request,
    loanbook: LoanBookService = Depends(get_loanbook),
):
    request_id = get_request_id(request)
    try:
        loanbook.delete_expense(expense_id)
    except ExpenseNotFoundError:
        raise HTTPException(status_code=404, detail="Expense not found")
    except PersistenceError as e:
        logging.error(f"Expense deletion not saved: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Storage unavailable")

    return Response(status_code=status.HTTP_204_NO_CONTENT)
