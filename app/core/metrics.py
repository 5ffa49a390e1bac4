"""Prometheus metrics for monitoring."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# HTTP Request metrics
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0],
)

http_requests_in_progress = Gauge(
    "http_requests_in_progress",
    "Number of HTTP requests in progress",
    ["method", "endpoint"],
)

# Replenishment run metrics
replenishment_runs_total = Counter(
    "replenishment_runs_total",
    "Total replenishment computations",
    ["kind"],  # kind: order_sheet, delivery, low_stock, vendor_reminders
)

replenishment_run_duration_seconds = Histogram(
    "replenishment_run_duration_seconds",
    "Replenishment computation duration",
    ["kind"],
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0],
)

low_stock_alerts_total = Counter(
    "low_stock_alerts_total",
    "Total low-stock alerts reported",
    ["priority"],  # priority: critical, warning, watch
)

# Data quality
data_quality_issues_total = Counter(
    "data_quality_issues_total",
    "Input data problems tolerated during computation",
    ["issue"],  # issue: malformed_deadline, negative_stock
)

invalid_frequency_total = Counter(
    "invalid_frequency_total",
    "Rejected order frequencies",
)

# System metrics
app_uptime_seconds = Gauge(
    "app_uptime_seconds",
    "Application uptime in seconds",
)

app_info = Gauge(
    "app_info",
    "Application info",
    ["version", "environment"],
)

# Error metrics
errors_total = Counter(
    "errors_total",
    "Total errors by type",
    ["error_type", "component"],
)
