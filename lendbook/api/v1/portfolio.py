"""GET /v1/portfolio - Portfolio health dashboard figures"""

from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query

from lendbook.api.v1.schemas import PortfolioResponse
from lendbook.api.dependencies import get_loanbook
from lendbook.infrastructure.observability.metrics import record_portfolio
from lendbook.service import LoanBookService

router = APIRouter()


@router.get("/portfolio", response_model=PortfolioResponse)
def get_portfolio(
    as_of: Optional[date] = Query(None, description="Report date, defaults to today"),
    loanbook: LoanBookService = Depends(get_loanbook),
):
    """
    Outstanding balance, expenses, net profit and portfolio at risk (>30 days).

    Net profit counts interest on issuance, not on collection.
    """
    snapshot = loanbook.portfolio(as_of)
    record_portfolio(snapshot.outstanding, snapshot.par)
    return PortfolioResponse.from_domain(snapshot)
