"""Single consumer loop that serializes reconciliation of lifecycle events."""

from __future__ import annotations

import collections
import logging
import queue
import threading
from typing import Optional

from . import metrics
from .constants import KIND_CLUSTER
from .errors import OperatorError, ReconcileError
from .handlers.cluster import ClusterReconciler
from .models import Deleted, LifecycleEvent
from .pipeline import EventPipeline
from .utils.context import with_correlation_id

logger = logging.getLogger(__name__)


class Processor:
    """Drains the event pipeline one event at a time.

    The loop waits on three inputs: the event pipeline, the error-report
    queue and the control flag. Setting the control flag stops the loop;
    events still pipelined are left undrained.
    """

    def __init__(
        self,
        pipeline: EventPipeline,
        reconciler: ClusterReconciler,
        errors: "Optional[queue.Queue[BaseException]]" = None,
        control: Optional[threading.Event] = None,
        poll_interval: float = 0.1,
    ) -> None:
        self.pipeline = pipeline
        self.reconciler = reconciler
        self.errors: "queue.Queue[BaseException]" = errors if errors is not None else queue.Queue()
        self.control = control if control is not None else threading.Event()
        self.poll_interval = poll_interval
        self.reported_errors: "collections.deque[BaseException]" = collections.deque(maxlen=100)

    def report_error(self, error: BaseException) -> None:
        """Submit an asynchronously detected failure; safe from any thread."""
        self.errors.put(error)

    def shutdown(self) -> None:
        """Ask the loop to stop after the event currently being processed."""
        self.control.set()

    def run(self) -> None:
        """Process events until shutdown is requested."""
        logger.info("Running processor")
        while not self.control.is_set():
            self._drain_errors()

            try:
                event = self.pipeline.get(timeout=self.poll_interval)
            except queue.Empty:
                continue

            try:
                self.process_event(event)
            except Exception as e:
                # Teardown failures and unexpected errors end this event only.
                # An external resync resubmits the deletion.
                self._record_error(e)
        logger.warning("Processor received shutdown signal, stopping")

    def process_event(self, event: LifecycleEvent) -> None:
        """Reconcile one event.

        Converge failures are logged and recorded; processing continues with
        the next event. Teardown failures are recorded and re-raised.

        Raises:
            ReconcileError: If tearing down the cluster failed
        """
        cluster = event.cluster
        with with_correlation_id() as corr_id:
            logger.info(
                f"Received {event.type} event for {KIND_CLUSTER} {cluster.key} (correlation_id={corr_id})"
            )
            try:
                self.reconciler.handle(event)
            except ReconcileError as e:
                if isinstance(event, Deleted):
                    raise
                self._record_error(e)

    def _drain_errors(self) -> None:
        while True:
            try:
                error = self.errors.get_nowait()
            except queue.Empty:
                return
            self._record_error(error)

    def _record_error(self, error: BaseException) -> None:
        self.reported_errors.append(error)
        error_type = type(error).__name__
        if not isinstance(error, OperatorError):
            error_type = f"Unexpected{error_type}"
        metrics.error_total.labels(kind=KIND_CLUSTER, error_type=error_type).inc()
        logger.error(f"Received error through error channel: {error_type}: {error}")
