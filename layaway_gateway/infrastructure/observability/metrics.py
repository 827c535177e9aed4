"""Prometheus metrics for layaway plans, payments, and concurrency conflicts"""

from prometheus_client import Counter, Histogram

from layaway_gateway.domain.models import PaymentMethod, PlanStatus

# Plan metrics
plans_created_counter = Counter(
    "layaway_plans_created_total",
    "Installment plans created",
    ["cadence"],  # daily | weekly | monthly
)

status_transition_counter = Counter(
    "layaway_plan_status_transitions_total",
    "Plan status changes",
    ["status"],  # completed | overdue | active | cancelled
)

# Payment metrics
payments_counter = Counter(
    "layaway_payments_total",
    "Payments recorded against installment plans",
    ["method"],
)

payment_amount_histogram = Histogram(
    "layaway_payment_amount_cents",
    "Recorded payment amounts in minor units",
    buckets=[1_000, 10_000, 50_000, 100_000, 500_000, 1_000_000, 5_000_000, 10_000_000],
)

# Concurrency
conflict_counter = Counter(
    "layaway_conflicts_total",
    "Optimistic concurrency conflicts on plan writes",
    ["operation"],
)

# Identity API metrics
identity_failures_counter = Counter(
    "identity_fetch_failures_total",
    "Failed identity API calls",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_payment_metrics(method: PaymentMethod, amount_cents: int) -> None:
    """Record payment count by channel and amount distribution"""
    payments_counter.labels(method=PaymentMethod(method).value).inc()
    payment_amount_histogram.observe(amount_cents)


def record_status_change(status: PlanStatus) -> None:
    status_transition_counter.labels(status=PlanStatus(status).value).inc()
