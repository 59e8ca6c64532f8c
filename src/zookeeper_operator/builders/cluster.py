"""Builder for the child resources of a ZooKeeper cluster."""

from __future__ import annotations

from typing import Any

from kubernetes.utils import parse_quantity

from ..constants import (
    ANNOTATION_POD_INITIALIZED,
    CONFIG_MAP_SUFFIX,
    CONTAINER_NAME,
    CONTROLLER_NAME,
    DATA_MOUNT_PATH,
    DATA_VOLUME_NAME,
    DEFAULT_CPU,
    DEFAULT_IMAGE,
    DEFAULT_MEMORY,
    HEADLESS_SERVICE_SUFFIX,
    LABEL_COMPONENT,
    LABEL_CREATOR,
    LABEL_NAME,
    LABEL_ROLE,
    PORT_CLIENT,
    PORT_LEADER_ELECTION,
    PORT_SERVER,
    ZK_INIT_LIMIT,
    ZK_JVM_HEAP,
    ZK_MAX_CLIENT_CNXNS,
    ZK_PURGE_INTERVAL,
    ZK_SNAP_RETAIN_COUNT,
    ZK_SYNC_LIMIT,
    ZK_TICK_TIME,
)
from ..errors import TranslationInvalid
from ..models import ChildResourceSet, ClusterSpec

# Environment variable -> config map key
_CONFIG_ENV = [
    ("ZK_ENSEMBLE", "ensemble"),
    ("ZK_HEAP_SIZE", "jvm.heap"),
    ("ZK_TICK_TIME", "tick"),
    ("ZK_INIT_LIMIT", "init"),
    ("ZK_SYNC_LIMIT", "sync"),
    ("ZK_MAX_CLIENT_CNXNS", "client.cnxns"),
    ("ZK_SNAP_RETAIN_COUNT", "snap.retain"),
    ("ZK_PURGE_INTERVAL", "purge.interval"),
]


def headless_service_name(cluster: ClusterSpec) -> str:
    return f"{cluster.name}{HEADLESS_SERVICE_SUFFIX}"


def config_map_name(cluster: ClusterSpec) -> str:
    return f"{cluster.name}{CONFIG_MAP_SUFFIX}"


def stateful_set_name(cluster: ClusterSpec) -> str:
    return cluster.name


def build_labels(cluster: ClusterSpec) -> dict[str, str]:
    """Labels shared by every child resource and used as the pod selector."""
    return {
        LABEL_COMPONENT: "zookeeper",
        LABEL_CREATOR: CONTROLLER_NAME,
        LABEL_ROLE: "server",
        LABEL_NAME: cluster.name,
    }


def resolve_quantity(value: str | None, default: str) -> str:
    """Return ``value`` if it is a valid resource quantity, else ``default``."""
    if not value:
        return default
    try:
        parse_quantity(value)
    except (ValueError, ArithmeticError):
        # decimal.Overflow for huge exponents
        return default
    return value


def build_ensemble(cluster: ClusterSpec) -> str:
    """Server list for zkGenConfig.sh; stateful set pods are named <name>-<ordinal>."""
    return ";".join(f"{stateful_set_name(cluster)}-{i}" for i in range(cluster.replicas))


def build_headless_service(cluster: ClusterSpec) -> dict[str, Any]:
    """Create the headless service manifest exposing the member ports.

    Args:
        cluster: Cluster specification

    Returns:
        Service manifest
    """
    return {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": {
            "name": headless_service_name(cluster),
            "namespace": cluster.namespace,
            "labels": build_labels(cluster),
        },
        "spec": {
            "clusterIP": "None",
            "ports": [
                {"name": "server", "port": PORT_SERVER},
                {"name": "leader-election", "port": PORT_LEADER_ELECTION},
                {"name": "client", "port": PORT_CLIENT},
            ],
            "selector": build_labels(cluster),
        },
    }


def build_config_map(cluster: ClusterSpec) -> dict[str, Any]:
    """Create the config map manifest holding the ZooKeeper settings.

    Args:
        cluster: Cluster specification

    Returns:
        ConfigMap manifest
    """
    return {
        "apiVersion": "v1",
        "kind": "ConfigMap",
        "metadata": {
            "name": config_map_name(cluster),
            "namespace": cluster.namespace,
            "labels": build_labels(cluster),
        },
        "data": {
            "ensemble": build_ensemble(cluster),
            "jvm.heap": ZK_JVM_HEAP,
            "tick": ZK_TICK_TIME,
            "init": ZK_INIT_LIMIT,
            "sync": ZK_SYNC_LIMIT,
            "client.cnxns": ZK_MAX_CLIENT_CNXNS,
            "snap.retain": ZK_SNAP_RETAIN_COUNT,
            "purge.interval": ZK_PURGE_INTERVAL,
        },
    }


def _build_env(cluster: ClusterSpec) -> list[dict[str, Any]]:
    env: list[dict[str, Any]] = [
        {
            "name": env_name,
            "valueFrom": {
                "configMapKeyRef": {"name": config_map_name(cluster), "key": key},
            },
        }
        for env_name, key in _CONFIG_ENV
    ]
    env.extend([
        {"name": "ZK_CLIENT_PORT", "value": str(PORT_CLIENT)},
        {"name": "ZK_SERVER_PORT", "value": str(PORT_SERVER)},
        {"name": "ZK_ELECTION_PORT", "value": str(PORT_LEADER_ELECTION)},
    ])
    return env


def _build_probe() -> dict[str, Any]:
    return {
        "exec": {"command": ["zkOk.sh"]},
        "initialDelaySeconds": 10,
        "timeoutSeconds": 5,
    }


def build_stateful_set(cluster: ClusterSpec, image: str = DEFAULT_IMAGE) -> dict[str, Any]:
    """Create the stateful set manifest running the ZooKeeper servers.

    Args:
        cluster: Cluster specification
        image: Container image for the ZooKeeper servers

    Returns:
        StatefulSet manifest
    """
    labels = build_labels(cluster)
    cpu = resolve_quantity(cluster.cpu, DEFAULT_CPU)
    memory = resolve_quantity(cluster.memory, DEFAULT_MEMORY)

    container = {
        "name": CONTAINER_NAME,
        "image": image,
        "imagePullPolicy": "Always",
        "ports": [
            {"name": "client", "containerPort": PORT_CLIENT, "protocol": "TCP"},
            {"name": "server", "containerPort": PORT_SERVER, "protocol": "TCP"},
            {"name": "leader-election", "containerPort": PORT_LEADER_ELECTION, "protocol": "TCP"},
        ],
        "env": _build_env(cluster),
        "command": ["sh", "-c", "zkGenConfig.sh && zkServer.sh start-foreground"],
        "readinessProbe": _build_probe(),
        "livenessProbe": _build_probe(),
        "resources": {
            "limits": {"cpu": cpu, "memory": memory},
            "requests": {"cpu": cpu, "memory": memory},
        },
        "volumeMounts": [{"name": DATA_VOLUME_NAME, "mountPath": DATA_MOUNT_PATH}],
    }

    return {
        "apiVersion": "apps/v1",
        "kind": "StatefulSet",
        "metadata": {
            "name": stateful_set_name(cluster),
            "namespace": cluster.namespace,
            "labels": labels,
        },
        "spec": {
            "replicas": cluster.replicas,
            "serviceName": headless_service_name(cluster),
            "selector": {"matchLabels": build_labels(cluster)},
            "template": {
                "metadata": {
                    "labels": build_labels(cluster),
                    "annotations": {ANNOTATION_POD_INITIALIZED: "true"},
                },
                "spec": {
                    "affinity": {
                        "podAntiAffinity": {
                            "preferredDuringSchedulingIgnoredDuringExecution": [
                                {
                                    "weight": 100,
                                    "podAffinityTerm": {
                                        "namespaces": [cluster.namespace],
                                        "labelSelector": {"matchLabels": build_labels(cluster)},
                                        "topologyKey": "kubernetes.io/hostname",
                                    },
                                },
                            ],
                        },
                    },
                    "containers": [container],
                    "volumes": [{"name": DATA_VOLUME_NAME, "emptyDir": {}}],
                },
            },
        },
    }


def validate_cluster(cluster: ClusterSpec) -> None:
    """Reject specifications that cannot be translated.

    Raises:
        TranslationInvalid: If identity or replica count is malformed
    """
    if not cluster.name:
        raise TranslationInvalid("cluster name is required", cluster=cluster)
    if not cluster.namespace:
        raise TranslationInvalid("cluster namespace is required", cluster=cluster)
    replicas = cluster.replicas
    # bool is an int subclass
    if isinstance(replicas, bool) or not isinstance(replicas, int) or replicas < 0:
        raise TranslationInvalid(
            f"replicas must be a non-negative integer, got {replicas!r}",
            cluster=cluster,
        )


def translate(cluster: ClusterSpec, image: str = DEFAULT_IMAGE) -> ChildResourceSet:
    """Translate a cluster specification into its child resources.

    Pure: performs no I/O and does not mutate ``cluster``. Each call returns
    freshly built manifests.

    Args:
        cluster: Cluster specification
        image: Container image for the ZooKeeper servers

    Returns:
        The service, config map and stateful set manifests

    Raises:
        TranslationInvalid: If the specification is malformed
    """
    validate_cluster(cluster)
    return ChildResourceSet(
        service=build_headless_service(cluster),
        config_map=build_config_map(cluster),
        stateful_set=build_stateful_set(cluster, image),
    )
