"""Resource watcher turning ZookeeperCluster lifecycle changes into pipeline events."""

from __future__ import annotations

import asyncio
import logging
import queue
import threading
from typing import Any, Callable, Optional

import kopf

from . import metrics
from .constants import API_GROUP, API_GROUP_VERSION, KIND_CLUSTER, PLURAL_CLUSTER
from .errors import StreamBroken, WatchError
from .models import Added, ClusterSpec, Deleted, LifecycleEvent, RegistrationState, Updated
from .pipeline import EventPipeline

logger = logging.getLogger(__name__)

# Seconds a handler waits for a free pipeline slot before kopf redelivers the change
DEFAULT_PUT_TIMEOUT = 30.0
REDELIVERY_DELAY = 5.0


def configure_settings(settings: kopf.OperatorSettings) -> kopf.OperatorSettings:
    """Apply the operator's kopf settings."""
    # Use annotations for progress and diff-base so status stays free for users
    settings.persistence.progress_storage = kopf.AnnotationsProgressStorage(prefix=API_GROUP)
    settings.persistence.diffbase_storage = kopf.AnnotationsDiffBaseStorage(prefix=API_GROUP)

    settings.posting.enabled = False
    settings.networking.request_timeout = 30.0
    settings.watching.server_timeout = 300
    settings.watching.reconnect_backoff = 1.0
    settings.execution.max_workers = 4
    return settings


class StopHandle:
    """One-shot cooperative stop for a running watcher."""

    def __init__(self, stop_flag: threading.Event, thread: threading.Thread, join_timeout: float = 10.0):
        self._stop_flag = stop_flag
        self._thread = thread
        self._join_timeout = join_timeout
        self._lock = threading.Lock()
        self._stopped = False

    @property
    def stopped(self) -> bool:
        return self._stopped

    def stop(self) -> None:
        """Stop producing events and release the watch connection.

        Calling it again is a no-op. Events already pipelined stay pipelined.
        """
        with self._lock:
            if self._stopped:
                return
            self._stopped = True
        logger.info("Stopping resource watcher")
        self._stop_flag.set()
        if self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join(self._join_timeout)


class ResourceWatcher:
    """Observes ZookeeperCluster resources through kopf and feeds the pipeline.

    kopf preserves per-object ordering: changes of one object are handled
    sequentially, so their events reach the pipeline in platform order.
    Ordering across objects is not guaranteed.
    """

    def __init__(
        self,
        registration: RegistrationState,
        pipeline: EventPipeline,
        namespace: Optional[str] = None,
        error_reporter: Optional[Callable[[BaseException], None]] = None,
        settings: Optional[kopf.OperatorSettings] = None,
        put_timeout: Optional[float] = DEFAULT_PUT_TIMEOUT,
    ) -> None:
        """Initialize the watcher.

        Args:
            registration: Result of the registration step; must be ESTABLISHED
            pipeline: Pipeline receiving lifecycle events
            namespace: Namespace to watch; None watches all namespaces
            error_reporter: Callback receiving WatchError on stream failure
            settings: kopf settings; defaults to ``configure_settings``
            put_timeout: Seconds to block on a full pipeline before redelivery

        Raises:
            WatchError: If the custom resource type is not established
        """
        if registration is not RegistrationState.ESTABLISHED:
            raise WatchError(f"Cannot watch before registration is established (state: {registration.value})")
        self.pipeline = pipeline
        self.namespace = namespace
        self.error_reporter = error_reporter
        self.settings = settings or configure_settings(kopf.OperatorSettings())
        self.put_timeout = put_timeout
        self.registry = kopf.OperatorRegistry()
        self._register_handlers()
        self._stop_flag = threading.Event()
        self.ready_flag = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._handle: Optional[StopHandle] = None
        self._broken = False

    def _register_handlers(self) -> None:
        resource = (API_GROUP_VERSION, KIND_CLUSTER)
        kopf.on.login(registry=self.registry)(kopf.login_via_client)
        kopf.on.resume(*resource, registry=self.registry)(self.on_added)
        kopf.on.create(*resource, registry=self.registry)(self.on_added)
        kopf.on.update(*resource, registry=self.registry)(self.on_updated)
        kopf.on.delete(*resource, registry=self.registry)(self.on_deleted)

    def _push(self, event: LifecycleEvent) -> None:
        try:
            self.pipeline.put(event, timeout=self.put_timeout)
        except queue.Full:
            logger.warning(f"Event pipeline full, redelivering {event.type} for {event.cluster.key} later")
            raise kopf.TemporaryError("Event pipeline is full", delay=REDELIVERY_DELAY)

    def on_added(self, name: str, namespace: str, spec: Any, **_: Any) -> None:
        """Emit Added for a new object or one found at startup."""
        self._push(Added(ClusterSpec.from_spec(name, namespace, spec)))

    def on_updated(self, name: str, namespace: str, old: Any, new: Any, **_: Any) -> None:
        """Emit Updated carrying both the previous and the new snapshot."""
        old_spec = (old or {}).get("spec")
        new_spec = (new or {}).get("spec")
        self._push(
            Updated(
                ClusterSpec.from_spec(name, namespace, old_spec),
                ClusterSpec.from_spec(name, namespace, new_spec),
            )
        )

    def on_deleted(self, name: str, namespace: str, spec: Any, **_: Any) -> None:
        """Emit Deleted for an object being removed."""
        self._push(Deleted(ClusterSpec.from_spec(name, namespace, spec)))

    def observe(self) -> tuple[EventPipeline, StopHandle]:
        """Start the watch in a background thread.

        Returns:
            The event pipeline and the handle that stops the watch

        Raises:
            RuntimeError: If the watcher was already started
        """
        if self._thread is not None:
            raise RuntimeError("Resource watcher already started")
        self._thread = threading.Thread(target=self._run, name="resource-watcher", daemon=True)
        self._handle = StopHandle(self._stop_flag, self._thread)
        metrics.watcher_up.set(1)
        self._thread.start()
        scope = f"namespace {self.namespace}" if self.namespace else "all namespaces"
        logger.info(f"Watching {PLURAL_CLUSTER}.{API_GROUP} in {scope}")
        return self.pipeline, self._handle

    def is_alive(self) -> bool:
        """Liveness of the watch: started, running and not broken."""
        return self._thread is not None and self._thread.is_alive() and not self._broken

    def _run(self) -> None:
        failure: Optional[BaseException] = None
        try:
            asyncio.run(
                kopf.operator(
                    registry=self.registry,
                    settings=self.settings,
                    standalone=True,
                    clusterwide=self.namespace is None,
                    namespaces=[self.namespace] if self.namespace else [],
                    stop_flag=self._stop_flag,
                    ready_flag=self.ready_flag,
                )
            )
        except Exception as e:
            failure = e

        metrics.watcher_up.set(0)
        if self._stop_flag.is_set():
            logger.info("Resource watcher stopped")
            return

        self._broken = True
        error = StreamBroken(f"Watch on {PLURAL_CLUSTER}.{API_GROUP} stopped unexpectedly: {failure or 'exited'}")
        logger.error(str(error))
        if self.error_reporter is not None:
            self.error_reporter(error)


def observe(
    registration: RegistrationState,
    pipeline: EventPipeline,
    namespace: Optional[str] = None,
    error_reporter: Optional[Callable[[BaseException], None]] = None,
) -> tuple[ResourceWatcher, EventPipeline, StopHandle]:
    """Create a watcher and start observing.

    Returns:
        The watcher (for liveness checks), the pipeline and the stop handle
    """
    watcher = ResourceWatcher(registration, pipeline, namespace=namespace, error_reporter=error_reporter)
    events, handle = watcher.observe()
    return watcher, events, handle
