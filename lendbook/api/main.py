"""FastAPI application factory"""

from typing import Optional
from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from lendbook.api.middleware import RequestIDMiddleware, MetricsMiddleware
from lendbook.api.v1 import backup, clients, expenses, loans, portfolio
from lendbook.infrastructure.database.models import Base
from lendbook.infrastructure.database.session import SessionLocal, engine
from lendbook.infrastructure.observability.logging import setup_logging
from lendbook.infrastructure.persistence import DocumentStore
from lendbook.service import LoanBookService
from lendbook.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def build_loanbook() -> LoanBookService:
    """Wire the default store against the configured database and load it"""
    Base.metadata.create_all(bind=engine)
    loanbook = LoanBookService(DocumentStore(SessionLocal))
    loanbook.load()
    return loanbook


def create_app(loanbook: Optional[LoanBookService] = None) -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="LendBook",
        description="Small-business loan book: clients, loans, repayments, expenses and portfolio health",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.state.loanbook = loanbook or build_loanbook()

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {
            "status": "ok",
            "service": settings.service_name,
            "persistence": "connected" if app.state.loanbook.connected else "disconnected",
        }

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(clients.router, prefix="/v1", tags=["clients"])
    app.include_router(loans.router, prefix="/v1", tags=["loans"])
    app.include_router(expenses.router, prefix="/v1", tags=["expenses"])
    app.include_router(portfolio.router, prefix="/v1", tags=["portfolio"])
    app.include_router(backup.router, prefix="/v1", tags=["backup"])

    return app
