"""Rate limiting and retry utilities for Kubernetes API calls."""

from __future__ import annotations

import logging
import os
import threading
import time
from functools import wraps
from typing import Any, Callable, TypeVar

from kubernetes.client.exceptions import ApiException
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)
from urllib3.exceptions import HTTPError

from .. import metrics

logger = logging.getLogger(__name__)

_F = TypeVar("_F", bound=Callable[..., Any])

# Rate limit configuration
_K8S_RATE_LIMIT_PER_SECOND = float(os.getenv("K8S_RATE_LIMIT_PER_SECOND", "10.0"))

# Retry configuration for transient API failures
MAX_ATTEMPTS = 3
RETRY_MIN_WAIT_SECONDS = 0.5
RETRY_MAX_WAIT_SECONDS = 4.0

# Track last call time
_k8s_last_call_time: float = 0.0
_k8s_lock = threading.Lock()


def rate_limit_k8s(func: _F) -> _F:
    """Decorator to rate limit Kubernetes API calls.

    Spaces calls at least ``1 / K8S_RATE_LIMIT_PER_SECOND`` seconds apart to
    avoid overwhelming the Kubernetes API server.
    """
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        global _k8s_last_call_time
        with _k8s_lock:
            current_time = time.time()
            min_interval = 1.0 / _K8S_RATE_LIMIT_PER_SECOND

            time_since_last_call = current_time - _k8s_last_call_time
            if time_since_last_call < min_interval:
                sleep_time = min_interval - time_since_last_call
                metrics.rate_limit_hits_total.labels(api_type="k8s").inc()
                time.sleep(sleep_time)

            _k8s_last_call_time = time.time()
        return func(*args, **kwargs)

    return wrapper  # type: ignore


def is_transient_error(e: BaseException) -> bool:
    """Check whether an API failure is worth retrying.

    Throttling (429), server-side errors (5xx) and connection failures are
    transient. Everything else, including 404 and 409, is returned to the caller.
    """
    if isinstance(e, ApiException):
        return e.status == 429 or (e.status is not None and e.status >= 500)
    return isinstance(e, (HTTPError, ConnectionError))


def call_with_retry(operation: str, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """Call ``func`` retrying transient failures with exponential backoff.

    Args:
        operation: Operation name used in metrics and logs
        func: Callable to invoke
        *args: Positional arguments for ``func``
        **kwargs: Keyword arguments for ``func``

    Returns:
        Whatever ``func`` returns

    Raises:
        Exception: The last error once attempts are exhausted, or any
            non-transient error immediately
    """
    def _before_sleep(retry_state: RetryCallState) -> None:
        metrics.api_retry_total.labels(operation=operation).inc()
        logger.warning(
            f"Retrying {operation} after attempt {retry_state.attempt_number}: "
            f"{retry_state.outcome.exception() if retry_state.outcome else 'unknown error'}"
        )

    retrying = Retrying(
        stop=stop_after_attempt(MAX_ATTEMPTS),
        wait=wait_exponential(multiplier=RETRY_MIN_WAIT_SECONDS, max=RETRY_MAX_WAIT_SECONDS),
        retry=retry_if_exception(is_transient_error),
        before_sleep=_before_sleep,
        reraise=True,
    )
    return retrying(func, *args, **kwargs)
