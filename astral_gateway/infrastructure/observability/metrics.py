"""Prometheus metrics for plan volume, commits, payments, delinquency and advisory calls"""

from prometheus_client import Counter, Histogram, Gauge

# Plan metrics
plans_computed_counter = Counter(
    "astral_plans_computed_total",
    "Financing and leasing plans computed",
    ["plan_type"],  # Financing | Leasing
)

loans_committed_counter = Counter(
    "astral_loans_committed_total",
    "Plans committed as active loans",
    ["plan_type", "outcome"],  # created | duplicate
)

# Payment metrics
payments_applied_counter = Counter(
    "astral_payments_applied_total",
    "Payment submissions by outcome",
    ["plan_type", "outcome"],  # applied | rejected | conflict
)

payment_amount_histogram = Histogram(
    "astral_payment_amount_dollars",
    "Accepted payment amounts",
    buckets=[50, 100, 250, 500, 750, 1000, 2500, 5000, 10000],
)

loans_off_track_gauge = Gauge(
    "astral_loans_off_track",
    "Loans flagged off-track in the most recent listing",
)

# Advisory service metrics
advisory_latency_histogram = Histogram(
    "advisory_latency_seconds",
    "Advisory service response time",
    buckets=[0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 20.0],
)

advisory_failure_counter = Counter(
    "advisory_failures_total",
    "Failed advisory service calls",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_payment(plan_type: str, outcome: str, amount: float | None = None) -> None:
    """Count a payment submission; accepted amounts also feed the size histogram"""
    payments_applied_counter.labels(plan_type=plan_type, outcome=outcome).inc()
    if outcome == "applied" and amount is not None:
        payment_amount_histogram.observe(amount)
