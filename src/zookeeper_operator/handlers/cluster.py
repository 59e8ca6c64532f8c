"""Reconciler that converges ZookeeperCluster resources into child resources."""

from __future__ import annotations

from typing import Any

from .. import metrics
from ..builders.cluster import translate
from ..constants import DEFAULT_IMAGE, KIND_CLUSTER
from ..errors import (
    ChildResourceCreateFailed,
    ChildResourceDeleteFailed,
    ChildResourceUpdateFailed,
)
from ..models import Added, ChildKind, ClusterSpec, Deleted, LifecycleEvent, Updated
from .base import BaseHandler


def _identity(manifest: dict[str, Any]) -> tuple[str, str]:
    meta = manifest["metadata"]
    return meta["name"], meta["namespace"]


class ClusterReconciler(BaseHandler):
    """Applies the child resources of a cluster against the platform.

    All calls happen on the caller's thread; the processor guarantees one event
    at a time.
    """

    def __init__(self, client: Any, image: str = DEFAULT_IMAGE) -> None:
        """Initialize the reconciler.

        Args:
            client: Platform client (see ``services.kubernetes.KubeClient``)
            image: ZooKeeper server image for the stateful set
        """
        super().__init__(kind=KIND_CLUSTER)
        self.client = client
        self.image = image

    def handle(self, event: LifecycleEvent) -> None:
        """Dispatch a lifecycle event.

        Raises:
            ReconcileError: If converging or tearing down failed
            TypeError: If ``event`` is not a lifecycle event
        """
        if isinstance(event, (Added, Updated)):
            self.converge(event.cluster)
        elif isinstance(event, Deleted):
            self.teardown(event.cluster)
        else:
            raise TypeError(f"Unknown lifecycle event: {event!r}")

    def converge(self, cluster: ClusterSpec) -> None:
        """Create or update the service, config map and stateful set, in that order.

        The first failure aborts the remaining steps.

        Raises:
            TranslationInvalid: If the specification is malformed
            ChildResourceCreateFailed: If a create call failed
            ChildResourceUpdateFailed: If an existence check or update failed
        """
        def _converge() -> None:
            children = translate(cluster, self.image)
            for kind, manifest in children.apply_order():
                self._apply(cluster, kind, manifest)

        self.reconcile_with_metrics(cluster, "converge", _converge)

    def teardown(self, cluster: ClusterSpec) -> None:
        """Delete the stateful set, config map and service, in that order.

        The stateful set is scaled to zero before it is deleted. Absent
        resources are skipped.

        Raises:
            TranslationInvalid: If the specification is malformed
            ChildResourceDeleteFailed: If an existence check or delete failed
        """
        def _teardown() -> None:
            children = translate(cluster, self.image)
            for kind, manifest in children.teardown_order():
                self._remove(cluster, kind, manifest)

        self.reconcile_with_metrics(cluster, "teardown", _teardown)

    def _apply(self, cluster: ClusterSpec, kind: ChildKind, manifest: dict[str, Any]) -> None:
        name, namespace = _identity(manifest)

        try:
            exists = self.client.exists(kind, name, namespace)
        except Exception as e:
            metrics.child_operations_total.labels(kind=kind.value, operation="get", result="error").inc()
            raise ChildResourceUpdateFailed(kind.value, name, namespace, cause=e, cluster=cluster) from e

        if not exists:
            try:
                self.client.create(kind, manifest)
            except Exception as e:
                metrics.child_operations_total.labels(kind=kind.value, operation="create", result="error").inc()
                raise ChildResourceCreateFailed(kind.value, name, namespace, cause=e, cluster=cluster) from e
            metrics.child_operations_total.labels(kind=kind.value, operation="create", result="success").inc()
            self.log_info(cluster, f"Created {kind.value} {name}", event="create", reason="ChildCreated")
            return

        if kind is ChildKind.SERVICE:
            # Updating an allocated service fails on clusterIP/resourceVersion; leave it as is.
            metrics.child_operations_total.labels(kind=kind.value, operation="update", result="skipped").inc()
            return

        try:
            self.client.update(kind, manifest)
        except Exception as e:
            metrics.child_operations_total.labels(kind=kind.value, operation="update", result="error").inc()
            raise ChildResourceUpdateFailed(kind.value, name, namespace, cause=e, cluster=cluster) from e
        metrics.child_operations_total.labels(kind=kind.value, operation="update", result="success").inc()
        self.log_info(cluster, f"Updated {kind.value} {name}", event="update", reason="ChildUpdated")

    def _remove(self, cluster: ClusterSpec, kind: ChildKind, manifest: dict[str, Any]) -> None:
        name, namespace = _identity(manifest)

        try:
            if not self.client.exists(kind, name, namespace):
                metrics.child_operations_total.labels(kind=kind.value, operation="delete", result="absent").inc()
                return
            if kind is ChildKind.STATEFUL_SET:
                self._scale_to_zero(cluster, name, namespace)
            self.client.delete(kind, name, namespace)
        except Exception as e:
            metrics.child_operations_total.labels(kind=kind.value, operation="delete", result="error").inc()
            raise ChildResourceDeleteFailed(kind.value, name, namespace, cause=e, cluster=cluster) from e

        metrics.child_operations_total.labels(kind=kind.value, operation="delete", result="success").inc()
        self.log_info(cluster, f"Deleted {kind.value} {name}", event="delete", reason="ChildDeleted")

    def _scale_to_zero(self, cluster: ClusterSpec, name: str, namespace: str) -> None:
        """Scale a stateful set down before deleting it.

        Deleting a running stateful set directly can orphan its pods. A failed
        scale is logged and the delete still goes ahead.
        """
        kind = ChildKind.STATEFUL_SET
        try:
            self.client.scale_stateful_set(name, namespace, 0)
        except Exception as e:
            metrics.child_operations_total.labels(kind=kind.value, operation="scale", result="error").inc()
            self.log_warning(
                cluster, f"Could not scale {kind.value} {name} to zero: {e}", event="scale", reason="ScaleFailed"
            )
            return
        metrics.child_operations_total.labels(kind=kind.value, operation="scale", result="success").inc()
        self.log_info(cluster, f"Scaled {kind.value} {name} to zero", event="scale", reason="ChildScaled")
