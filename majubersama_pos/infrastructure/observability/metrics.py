"""Prometheus metrics for monitoring sales, credit exposure and request latency"""

from prometheus_client import Counter, Histogram

# Ledger metrics
debt_recorded_counter = Counter(
    "pos_debt_recorded_total",
    "Debt records created",
)

debt_amount_histogram = Histogram(
    "pos_debt_amount_rupiah",
    "Principal of recorded debts",
    buckets=[50_000, 100_000, 250_000, 500_000, 1_000_000, 2_500_000, 5_000_000],
)

debt_payment_counter = Counter(
    "pos_debt_payment_total",
    "Debt payment attempts",
    ["outcome"],  # applied | rejected
)

debt_limit_rejections_counter = Counter(
    "pos_debt_limit_rejections_total",
    "Debts refused because the customer limit would be exceeded",
)

# Sales metrics
sale_counter = Counter(
    "pos_sale_total",
    "Completed checkouts",
    ["payment_type"],  # cash | debt
)

sale_revenue_counter = Counter(
    "pos_sale_revenue_rupiah_total",
    "Revenue from completed checkouts",
    ["payment_type"],
)

purchase_counter = Counter(
    "pos_purchase_total",
    "Supplier purchases recorded",
)

login_counter = Counter(
    "pos_login_total",
    "Cashier PIN login attempts",
    ["outcome"],  # accepted | rejected
)

restore_counter = Counter(
    "pos_restore_total",
    "Store snapshots restored",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_sale(payment_type: str, total: int) -> None:
    """Record checkout metrics by payment type"""
    sale_counter.labels(payment_type=payment_type).inc()
    sale_revenue_counter.labels(payment_type=payment_type).inc(total)


def record_debt(amount: int) -> None:
    debt_recorded_counter.inc()
    debt_amount_histogram.observe(amount)
