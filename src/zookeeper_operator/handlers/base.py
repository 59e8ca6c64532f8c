"""Base handler class with common functionality for reconcilers."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, TypeVar

from .. import metrics
from ..constants import CONTROLLER_NAME
from ..logging import log_resource_event
from ..models import ClusterSpec

_T = TypeVar("_T")


class BaseHandler:
    """Base class for reconcilers with structured logging and metrics."""

    def __init__(self, kind: str):
        """Initialize base handler.

        Args:
            kind: The Kubernetes resource kind (e.g., "ZookeeperCluster")
        """
        self.kind = kind
        self.logger = logging.getLogger(__name__)

    def _log(
        self,
        level: int,
        cluster: ClusterSpec,
        message: str,
        event: str,
        reason: str,
        **kwargs: Any,
    ) -> None:
        log_resource_event(
            self.logger,
            controller=CONTROLLER_NAME,
            resource_kind=self.kind,
            resource_name=cluster.name,
            namespace=cluster.namespace,
            event=event,
            reason=reason,
            message=message,
            level=level,
            **kwargs,
        )

    def log_info(
        self,
        cluster: ClusterSpec,
        message: str,
        event: str = "info",
        reason: str = "Info",
        **kwargs: Any,
    ) -> None:
        """Log an info-level structured log message.

        Args:
            cluster: Cluster the message is about
            message: Log message
            event: Event type (default: "info")
            reason: Reason for the event (default: "Info")
            **kwargs: Additional fields to include in the log
        """
        self._log(logging.INFO, cluster, message, event, reason, **kwargs)

    def log_warning(
        self,
        cluster: ClusterSpec,
        message: str,
        event: str = "warning",
        reason: str = "Warning",
        **kwargs: Any,
    ) -> None:
        """Log a warning-level structured log message."""
        self._log(logging.WARNING, cluster, message, event, reason, **kwargs)

    def log_error(
        self,
        cluster: ClusterSpec,
        message: str,
        error: Exception | None = None,
        event: str = "error",
        reason: str = "Error",
        **kwargs: Any,
    ) -> None:
        """Log an error-level structured log message.

        Args:
            cluster: Cluster the message is about
            message: Log message
            error: Optional exception to include in the record
            event: Event type (default: "error")
            reason: Reason for the event (default: "Error")
            **kwargs: Additional fields to include in the log
        """
        log_data = kwargs.copy()
        if error is not None:
            log_data["error"] = str(error)
            log_data["error_type"] = type(error).__name__
        self._log(logging.ERROR, cluster, message, event, reason, **log_data)

    def reconcile_with_metrics(
        self,
        cluster: ClusterSpec,
        operation: str,
        reconcile_fn: Callable[[], _T],
    ) -> _T:
        """Execute a reconciliation step with metrics and error logging.

        Args:
            cluster: Cluster being reconciled
            operation: "converge" or "teardown"
            reconcile_fn: Function to execute for reconciliation

        Returns:
            Whatever ``reconcile_fn`` returns
        """
        self.log_info(cluster, f"{operation.capitalize()} started", event=operation, reason="ReconcileStarted")
        metrics.reconcile_total.labels(kind=self.kind, result="started").inc()

        start_time = time.time()
        try:
            result = reconcile_fn()
            metrics.reconcile_total.labels(kind=self.kind, result="success").inc()
            self.log_info(
                cluster, f"{operation.capitalize()} succeeded", event=operation, reason="ReconcileSucceeded"
            )
            return result
        except Exception as e:
            metrics.error_total.labels(kind=self.kind, error_type=type(e).__name__).inc()
            self.log_error(
                cluster, f"{operation.capitalize()} failed", error=e, event=operation, reason="ReconcileFailed"
            )
            metrics.reconcile_total.labels(kind=self.kind, result="error").inc()
            raise
        finally:
            duration = time.time() - start_time
            metrics.reconcile_duration_seconds.labels(kind=self.kind).observe(duration)
