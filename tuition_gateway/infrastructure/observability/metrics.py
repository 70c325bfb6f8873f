"""Prometheus metrics for monitoring tuition payments, plan completion and store health"""

from prometheus_client import Counter, Histogram

# Payment metrics
payment_initiated_counter = Counter(
    "tuition_payment_initiated_total",
    "Payments handed to the gateway SDK",
    ["kind"],  # application_fee | tuition_fees
)

payment_recorded_counter = Counter(
    "tuition_payment_recorded_total",
    "Successful payments written to the application document",
    ["plan"],  # application_fee | upfront | sixMonths | tenMonths
)

payment_rejected_counter = Counter(
    "tuition_payment_rejected_total",
    "Gateway callbacks not recorded",
    ["reason"],  # failed | unverified | stale_token | cancelled
)

plan_completed_counter = Counter(
    "tuition_plan_completed_total",
    "Payment plans that reached fully paid",
    ["plan"],
)

# Gateway verification
verification_latency_histogram = Histogram(
    "payment_verification_latency_seconds",
    "Gateway verification response time",
    ["gateway"],
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

verification_failure_counter = Counter(
    "payment_verification_failures_total",
    "Failed gateway verification calls",
    ["gateway"],
)

# Document store
store_retry_counter = Counter(
    "document_store_failed_attempts_total",
    "Failed document store attempts (each retry counts)",
    ["error"],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_payment_metric(plan: str, completed: bool) -> None:
    """Record a written payment and, when it finished the plan, the completion"""
    payment_recorded_counter.labels(plan=plan).inc()
    if completed:
        plan_completed_counter.labels(plan=plan).inc()
