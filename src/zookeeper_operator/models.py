"""Data model shared by the watcher, pipeline and reconciler."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Iterator, Mapping, Optional, Union

from .constants import DEFAULT_REPLICAS, EVENT_ADDED, EVENT_DELETED, EVENT_UPDATED


class ChildKind(str, enum.Enum):
    """Kinds of child resources derived from a cluster."""

    SERVICE = "Service"
    CONFIG_MAP = "ConfigMap"
    STATEFUL_SET = "StatefulSet"


class RegistrationState(str, enum.Enum):
    """Lifecycle of the custom resource type registration."""

    NOT_REGISTERED = "NotRegistered"
    IN_FLIGHT = "InFlight"
    ESTABLISHED = "Established"
    FAILED = "Failed"


@dataclass(frozen=True)
class ClusterSpec:
    """Desired state of one ZooKeeper cluster, snapshotted from its resource."""

    name: str
    namespace: str
    replicas: int = DEFAULT_REPLICAS
    cpu: Optional[str] = None
    memory: Optional[str] = None

    @classmethod
    def from_spec(cls, name: str, namespace: str, spec: Mapping[str, Any] | None) -> "ClusterSpec":
        """Build a snapshot from a name, namespace and the resource's spec block.

        Values are copied as-is; validation happens during translation.
        """
        spec = spec or {}
        resources = spec.get("resources") or {}
        replicas = spec.get("replicas")
        return cls(
            name=name or "",
            namespace=namespace or "",
            replicas=DEFAULT_REPLICAS if replicas is None else replicas,
            cpu=resources.get("cpu") or None,
            memory=resources.get("memory") or None,
        )

    @classmethod
    def from_body(cls, body: Mapping[str, Any]) -> "ClusterSpec":
        """Build a snapshot from a full resource body."""
        meta = body.get("metadata") or {}
        return cls.from_spec(meta.get("name", ""), meta.get("namespace", ""), body.get("spec"))

    @property
    def key(self) -> str:
        return f"{self.namespace}/{self.name}"


@dataclass(frozen=True)
class Added:
    object: ClusterSpec

    type = EVENT_ADDED

    @property
    def cluster(self) -> ClusterSpec:
        return self.object


@dataclass(frozen=True)
class Updated:
    """Carries both snapshots; the reconciler only acts on ``new_object``."""

    old_object: ClusterSpec
    new_object: ClusterSpec

    type = EVENT_UPDATED

    @property
    def cluster(self) -> ClusterSpec:
        return self.new_object


@dataclass(frozen=True)
class Deleted:
    object: ClusterSpec

    type = EVENT_DELETED

    @property
    def cluster(self) -> ClusterSpec:
        return self.object


LifecycleEvent = Union[Added, Updated, Deleted]


@dataclass(frozen=True)
class ChildResourceSet:
    """The three child manifests derived from a cluster.

    Manifests are plain dicts accepted by the kubernetes client.
    """

    service: dict[str, Any]
    config_map: dict[str, Any]
    stateful_set: dict[str, Any]

    def apply_order(self) -> Iterator[tuple[ChildKind, dict[str, Any]]]:
        """Yield children in dependency order: service, config map, workload."""
        yield ChildKind.SERVICE, self.service
        yield ChildKind.CONFIG_MAP, self.config_map
        yield ChildKind.STATEFUL_SET, self.stateful_set

    def teardown_order(self) -> Iterator[tuple[ChildKind, dict[str, Any]]]:
        """Yield children in reverse dependency order."""
        return reversed(list(self.apply_order()))
