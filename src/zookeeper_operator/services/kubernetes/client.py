"""Kubernetes client for the resources managed by the operator."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional

from kubernetes import client, config

from ... import metrics
from ...constants import CRD_NAME, FIELD_MANAGER
from ...models import ChildKind
from ...utils.rate_limit import call_with_retry, rate_limit_k8s

logger = logging.getLogger(__name__)


def load_kube_config(kubeconfig: str | None = None) -> None:
    """Load in-cluster configuration, falling back to a kubeconfig file."""
    try:
        config.load_incluster_config()
    except config.ConfigException:
        config.load_kube_config(config_file=kubeconfig)


class KubeClient:
    """Thin wrapper over the Kubernetes API for services, config maps,
    stateful sets and custom resource definitions.

    Transient failures are retried; everything else propagates as
    ``kubernetes.client.exceptions.ApiException``.
    """

    def __init__(
        self,
        core_api: Optional[client.CoreV1Api] = None,
        apps_api: Optional[client.AppsV1Api] = None,
        extensions_api: Optional[client.ApiextensionsV1Api] = None,
    ) -> None:
        self.core_api = core_api or client.CoreV1Api()
        self.apps_api = apps_api or client.AppsV1Api()
        self.extensions_api = extensions_api or client.ApiextensionsV1Api()

    @classmethod
    def from_config(cls, kubeconfig: str | None = None) -> "KubeClient":
        """Create a client after loading cluster credentials.

        Args:
            kubeconfig: Optional kubeconfig path used when not running in a pod
        """
        load_kube_config(kubeconfig)
        return cls()

    def _call(self, operation: str, func: Callable[..., Any], **kwargs: Any) -> Any:
        """Invoke an API method with rate limiting, retries and metrics."""
        start_time = time.time()
        try:
            result = call_with_retry(operation, rate_limit_k8s(func), **kwargs)
            metrics.api_call_total.labels(api_type="k8s", operation=operation, result="success").inc()
            return result
        except Exception:
            metrics.api_call_total.labels(api_type="k8s", operation=operation, result="error").inc()
            raise
        finally:
            duration = time.time() - start_time
            metrics.api_call_duration_seconds.labels(api_type="k8s", operation=operation).observe(duration)

    def _methods(self, kind: ChildKind) -> dict[str, Callable[..., Any]]:
        if kind is ChildKind.SERVICE:
            return {
                "read": self.core_api.read_namespaced_service,
                "create": self.core_api.create_namespaced_service,
                "replace": self.core_api.replace_namespaced_service,
                "delete": self.core_api.delete_namespaced_service,
            }
        if kind is ChildKind.CONFIG_MAP:
            return {
                "read": self.core_api.read_namespaced_config_map,
                "create": self.core_api.create_namespaced_config_map,
                "replace": self.core_api.replace_namespaced_config_map,
                "delete": self.core_api.delete_namespaced_config_map,
            }
        if kind is ChildKind.STATEFUL_SET:
            return {
                "read": self.apps_api.read_namespaced_stateful_set,
                "create": self.apps_api.create_namespaced_stateful_set,
                "replace": self.apps_api.replace_namespaced_stateful_set,
                "delete": self.apps_api.delete_namespaced_stateful_set,
            }
        raise ValueError(f"Unsupported child kind: {kind}")

    def exists(self, kind: ChildKind, name: str, namespace: str) -> bool:
        """Check whether a child resource exists.

        Returns:
            True if found, False on 404

        Raises:
            client.exceptions.ApiException: For any other API error
        """
        try:
            self._call(f"read_{kind.value}", self._methods(kind)["read"], name=name, namespace=namespace)
        except client.exceptions.ApiException as e:
            if e.status == 404:
                logger.debug(f"{kind.value} {namespace}/{name} does not exist")
                return False
            raise
        return True

    def create(self, kind: ChildKind, manifest: dict[str, Any]) -> None:
        """Create a child resource from its manifest."""
        meta = manifest["metadata"]
        self._call(
            f"create_{kind.value}",
            self._methods(kind)["create"],
            namespace=meta["namespace"],
            body=manifest,
            field_manager=FIELD_MANAGER,
        )

    def update(self, kind: ChildKind, manifest: dict[str, Any]) -> None:
        """Replace a child resource with its manifest.

        The current resourceVersion is read first so the replace is accepted.
        """
        meta = manifest["metadata"]
        methods = self._methods(kind)
        current = self._call(
            f"read_{kind.value}", methods["read"], name=meta["name"], namespace=meta["namespace"]
        )
        body = dict(manifest)
        body["metadata"] = dict(meta, resourceVersion=current.metadata.resource_version)
        self._call(
            f"replace_{kind.value}",
            methods["replace"],
            name=meta["name"],
            namespace=meta["namespace"],
            body=body,
            field_manager=FIELD_MANAGER,
        )

    def delete(self, kind: ChildKind, name: str, namespace: str) -> None:
        """Delete a child resource; an absent resource is not an error.

        Stateful sets are deleted with foreground propagation so their pods go
        first.
        """
        kwargs: dict[str, Any] = {"name": name, "namespace": namespace}
        if kind is ChildKind.STATEFUL_SET:
            kwargs["body"] = client.V1DeleteOptions(propagation_policy="Foreground")
        try:
            self._call(f"delete_{kind.value}", self._methods(kind)["delete"], **kwargs)
        except client.exceptions.ApiException as e:
            if e.status == 404:
                logger.debug(f"{kind.value} {namespace}/{name} already deleted")
                return
            raise

    def scale_stateful_set(self, name: str, namespace: str, replicas: int) -> None:
        """Set the replica count of a stateful set."""
        self._call(
            "scale_StatefulSet",
            self.apps_api.patch_namespaced_stateful_set_scale,
            name=name,
            namespace=namespace,
            body={"spec": {"replicas": replicas}},
        )

    def create_crd(self, body: dict[str, Any]) -> None:
        """Submit a custom resource definition."""
        self._call("create_crd", self.extensions_api.create_custom_resource_definition, body=body)

    def read_crd_conditions(self, name: str = CRD_NAME) -> list[dict[str, Any]]:
        """Read the status conditions of a custom resource definition.

        Returns:
            Conditions as ``{"type", "status", "reason", "message"}`` dicts
        """
        crd = self._call("read_crd", self.extensions_api.read_custom_resource_definition, name=name)
        status = crd.status
        conditions = (status.conditions if status is not None else None) or []
        return [
            {
                "type": cond.type,
                "status": cond.status,
                "reason": cond.reason,
                "message": cond.message,
            }
            for cond in conditions
        ]

    def delete_crd(self, name: str = CRD_NAME) -> None:
        """Delete a custom resource definition; absent is not an error."""
        try:
            self._call("delete_crd", self.extensions_api.delete_custom_resource_definition, name=name)
        except client.exceptions.ApiException as e:
            if e.status == 404:
                return
            raise
