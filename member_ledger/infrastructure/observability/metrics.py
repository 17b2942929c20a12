"""Prometheus metrics for monitoring accrual runs, generated returns and request latency"""

from prometheus_client import Counter, Histogram

# Accrual metrics
accrual_counter = Counter(
    "ledger_accrual_total",
    "Interest accrual engine runs",
    ["window"],  # current | next | custom
)

skipped_records_counter = Counter(
    "ledger_skipped_records_total",
    "Deposit/withdrawal records dropped for unreadable dates",
)

# Monthly returns metrics
returns_generated_counter = Counter(
    "ledger_returns_generated_total",
    "Monthly returns persisted",
)

returns_amount_counter = Counter(
    "ledger_returns_amount_total",
    "Sum of monthly return amounts persisted",
)

monthly_run_counter = Counter(
    "ledger_monthly_run_total",
    "Monthly returns runs by outcome",
    ["outcome"],  # calculated | skipped_not_anchor_day | already_calculated
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_accrual(window_kind: str, skipped_records: int) -> None:
    """Count an engine run and any records it had to skip"""
    accrual_counter.labels(window=window_kind).inc()
    if skipped_records:
        skipped_records_counter.inc(skipped_records)


def record_monthly_run(outcome: str, members_calculated: int = 0, total_returns: float = 0.0) -> None:
    """Record outcome of a monthly returns run"""
    monthly_run_counter.labels(outcome=outcome).inc()
    if members_calculated:
        returns_generated_counter.inc(members_calculated)
    if total_returns > 0:
        returns_amount_counter.inc(total_returns)
