"""
Metrics definitions for dspolicy.

This module defines Prometheus metrics for monitoring
delivery-service policy evaluation.
"""

from prometheus_client import Counter, Histogram, Gauge

# Counters
bypass_decisions = Counter(
    "ds_bypass_decisions_total",
    "Failure-bypass decisions taken per delivery service",
    ["deliveryservice", "kind", "result", "details"]
)

transaction_tokens = Counter(
    "ds_transaction_tokens_total",
    "Transaction-info tokens requested, by outcome",
    ["mode", "outcome"]
)

config_warnings = Counter(
    "ds_config_warnings_total",
    "Delivery-service configuration values that fell back to a default",
    ["field"]
)

config_rejected = Counter(
    "ds_config_rejected_total",
    "Delivery-service documents rejected during a config publish"
)

availability_updates = Counter(
    "ds_availability_updates_total",
    "Availability state pushes applied",
    ["deliveryservice"]
)

geo_blocked = Counter(
    "ds_geo_blocked_total",
    "Client locations rejected by a delivery service allow-list",
    ["deliveryservice"]
)

# Histograms
uri_build_seconds = Histogram(
    "ds_uri_build_duration_seconds",
    "Time spent composing redirect URIs",
    buckets=[0.00001, 0.00005, 0.0001, 0.0005, 0.001, 0.005]
)

# Gauges
policies_published = Gauge(
    "ds_policies_published",
    "Delivery-service policies in the current config generation"
)

config_generation = Gauge(
    "ds_config_generation",
    "Sequence number of the current config generation"
)

uptime_seconds = Gauge(
    "uptime_seconds",
    "Service uptime in seconds"
)
