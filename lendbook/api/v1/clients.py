"""Client registration, listing, credit limits and blacklist"""

import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Request, status

from lendbook.api.v1.schemas import ClientCreateRequest, ClientResponse, CreditLimitResponse
from lendbook.api.dependencies import get_loanbook, get_request_id
from lendbook.domain.exceptions import ClientNotFoundError, PersistenceError, ValidationError
from lendbook.service import LoanBookService

router = APIRouter()


@router.post("/clients", response_model=ClientResponse, status_code=status.HTTP_201_CREATED)
def register_client(
    request_body: ClientCreateRequest,
    request: Request,
    loanbook: LoanBookService = Depends(get_loanbook),
):
    """Register a new client; starts at the Starter tier"""
    request_id = get_request_id(request)
    try:
        client = loanbook.register_client(request_body.name, request_body.phone, request_body.address)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PersistenceError as e:
        logging.error(f"Client not saved: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Storage unavailable")

    logging.info("Client registered", extra={"request_id": request_id, "client_id": client.id})
    return ClientResponse.from_domain(client, loanbook.quote_limit(client.id))


@router.get("/clients", response_model=List[ClientResponse])
def list_clients(loanbook: LoanBookService = Depends(get_loanbook)):
    """All clients with their current limits"""
    return [
        ClientResponse.from_domain(c, loanbook.quote_limit(c.id))
        for c in loanbook.state.clients
    ]


@router.get("/clients/{client_id}/limit", response_model=CreditLimitResponse)
def get_credit_limit(client_id: str, loanbook: LoanBookService = Depends(get_loanbook)):
    """
    Current borrowing ceiling.

    Recomputed on every call from the client's paid-loan history.
    """
    try:
        credit = loanbook.quote_limit(client_id)
    except ClientNotFoundError:
        raise HTTPException(status_code=404, detail="Client not found")

    return CreditLimitResponse(client_id=client_id, credit_limit=float(credit.limit), tier_label=credit.tier_label)


@router.post("/clients/{client_id}/blacklist", response_model=ClientResponse)
def toggle_blacklist(
    client_id: str,
    request: Request,
    loanbook: LoanBookService = Depends(get_loanbook),
):
    """Flip the client's blacklist flag"""
    request_id = get_request_id(request)
    try:
        client = loanbook.toggle_blacklist(client_id)
    except ClientNotFoundError:
        raise HTTPException(status_code=404, detail="Client not found")
    except PersistenceError as e:
        logging.error(f"Blacklist change not saved: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Storage unavailable")

    logging.info(
        "Blacklist toggled",
        extra={"request_id": request_id, "client_id": client.id, "is_blacklisted": client.is_blacklisted},
    )
    return ClientResponse.from_domain(client, loanbook.quote_limit(client.id))
