"""Prometheus metrics for monitoring loan issuance, repayments, persistence and portfolio health"""

from decimal import Decimal
from prometheus_client import Counter, Histogram, Gauge

# Loan metrics
loans_issued_counter = Counter(
    "lendbook_loans_issued_total",
    "Total loans issued",
    ["frequency", "kind"],  # kind: new | top_up
)

loan_rejections_counter = Counter(
    "lendbook_loan_rejections_total",
    "Loan requests rejected before creation",
    ["reason"],  # validation | limit_exceeded | term_exceeded | not_found | not_active
)

principal_issued_histogram = Histogram(
    "lendbook_principal_issued",
    "Principal of issued loans",
    buckets=[1000, 5000, 10000, 20000, 30000, 50000],
)

# Repayment metrics
payments_counter = Counter(
    "lendbook_payments_total",
    "Repayments recorded",
)

loans_paid_off_counter = Counter(
    "lendbook_loans_paid_off_total",
    "Loans that reached a zero balance",
)

# Persistence metrics
persistence_latency_histogram = Histogram(
    "lendbook_persistence_save_seconds",
    "Document save time including retries",
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

persistence_failure_counter = Counter(
    "lendbook_persistence_failures_total",
    "Failed document save attempts",
)

# Portfolio gauges
outstanding_gauge = Gauge(
    "lendbook_outstanding_balance",
    "Outstanding balance at the last portfolio report",
)

par_gauge = Gauge(
    "lendbook_portfolio_at_risk",
    "Portfolio at risk (>30 days) at the last portfolio report",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_loan_issued(frequency: str, principal: Decimal, top_up: bool) -> None:
    """Record issuance metrics by frequency and kind"""
    kind = "top_up" if top_up else "new"
    loans_issued_counter.labels(frequency=frequency, kind=kind).inc()
    principal_issued_histogram.observe(float(principal))


def record_portfolio(outstanding: Decimal, par: Decimal) -> None:
    outstanding_gauge.set(float(outstanding))
    par_gauge.set(float(par))
