"""Prometheus metrics for expense writes, advice calls and HTTP latency"""

from prometheus_client import Counter, Histogram

# Expense metrics
expense_records_written_counter = Counter(
    "finance_expense_records_written_total",
    "Expense records written by add/update",
    ["kind"],  # single | installment
)

expense_records_deleted_counter = Counter(
    "finance_expense_records_deleted_total",
    "Expense records removed by update/delete",
)

income_records_written_counter = Counter(
    "finance_income_records_written_total",
    "Income records written by add/update",
)

# Advice metrics
advice_latency_histogram = Histogram(
    "advice_latency_seconds",
    "Advice model response time",
    buckets=[0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 30.0],
)

advice_failure_counter = Counter(
    "advice_failures_total",
    "Failed advice requests",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_expense_write(record_count: int, removed_count: int = 0) -> None:
    """Count written records by kind and any records removed in the same operation"""
    kind = "installment" if record_count > 1 else "single"
    expense_records_written_counter.labels(kind=kind).inc(record_count)
    if removed_count:
        expense_records_deleted_counter.inc(removed_count)
