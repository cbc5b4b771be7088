"""Prometheus metrics for SolarDesk.

Defines and exposes operational metrics for monitoring and alerting.
"""

from prometheus_client import Counter, Histogram

# Audit trail metrics
audit_records_total = Counter(
    "solardesk_audit_records_total",
    "Audit records written",
    ["action_family", "outcome"]  # action_family: customer.get, outcome: ok|not_found
)

audit_write_failures_total = Counter(
    "solardesk_audit_write_failures_total",
    "Audit records that could not be written synchronously",
    ["action"]
)

audit_retry_total = Counter(
    "solardesk_audit_retry_total",
    "Audit records handled by the retry queue",
    ["status"]  # status: enqueued|enqueue_failed|persisted|duplicate|failed
)

# Tenant isolation metrics
tenant_isolation_violations_total = Counter(
    "solardesk_tenant_isolation_violations_total",
    "Writes rejected because they targeted rows outside the bound organization",
    ["operation"]  # operation: insert|update|delete|bulk_update|bulk_delete
)

# Service outcome metrics
service_outcomes_total = Counter(
    "solardesk_service_outcomes_total",
    "Resource service outcomes",
    ["resource", "operation", "outcome"]  # outcome: ok|not_found|conflict
)

# HTTP metrics
http_request_duration_seconds = Histogram(
    "solardesk_http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "status_code"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0]
)
