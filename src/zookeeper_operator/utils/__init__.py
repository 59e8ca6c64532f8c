"""Utility functions for the ZooKeeper Operator."""

from .context import (
    get_context_dict,
    get_correlation_id,
    new_correlation_id,
    set_correlation_id,
    with_correlation_id,
)
from .rate_limit import call_with_retry, is_transient_error, rate_limit_k8s

__all__ = [
    "call_with_retry",
    "is_transient_error",
    "rate_limit_k8s",
    "new_correlation_id",
    "set_correlation_id",
    "get_correlation_id",
    "with_correlation_id",
    "get_context_dict",
]
