"""Dependency injection for FastAPI endpoints"""

from fastapi import Request
from lendbook.service import LoanBookService


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_loanbook(request: Request) -> LoanBookService:
    """Provide the application's loan book, created once by the app factory"""
    return request.app.state.loanbook
