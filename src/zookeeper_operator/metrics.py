"""Prometheus metrics for the ZooKeeper Operator."""

from prometheus_client import Counter, Gauge, Histogram

# Reconciliation metrics
reconcile_total = Counter(
    "zookeeper_operator_reconcile_total",
    "Total number of reconciliations",
    ["kind", "result"],
)

reconcile_duration_seconds = Histogram(
    "zookeeper_operator_reconcile_duration_seconds",
    "Duration of reconciliations in seconds",
    ["kind"],
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0],
)

error_total = Counter(
    "zookeeper_operator_error_total",
    "Total number of reconciliation errors",
    ["kind", "error_type"],
)

# Child resource operations
child_operations_total = Counter(
    "zookeeper_operator_child_operations_total",
    "Total number of child resource operations",
    ["kind", "operation", "result"],
)

# Event pipeline metrics
events_total = Counter(
    "zookeeper_operator_events_total",
    "Total number of lifecycle events pushed onto the pipeline",
    ["type"],
)

pipeline_depth = Gauge(
    "zookeeper_operator_pipeline_depth",
    "Number of lifecycle events waiting in the pipeline",
)

# Controller state
registration_state = Gauge(
    "zookeeper_operator_registration_established",
    "1 when the custom resource type is established, 0 otherwise",
)

watcher_up = Gauge(
    "zookeeper_operator_watcher_up",
    "1 while the resource watcher is running, 0 otherwise",
)

# API call metrics
api_call_total = Counter(
    "zookeeper_operator_api_call_total",
    "Total number of API calls",
    ["api_type", "operation", "result"],
)

api_call_duration_seconds = Histogram(
    "zookeeper_operator_api_call_duration_seconds",
    "Duration of API calls in seconds",
    ["api_type", "operation"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0],
)

api_retry_total = Counter(
    "zookeeper_operator_api_retry_total",
    "Total number of retried API calls",
    ["operation"],
)

rate_limit_hits_total = Counter(
    "zookeeper_operator_rate_limit_hits_total",
    "Total number of rate limit hits",
    ["api_type"],
)
