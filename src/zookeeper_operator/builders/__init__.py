"""Builders for manifests derived from ZookeeperCluster resources."""

from .cluster import build_config_map, build_headless_service, build_labels, build_stateful_set, translate
from .crd import build_crd

__all__ = [
    "build_config_map",
    "build_crd",
    "build_headless_service",
    "build_labels",
    "build_stateful_set",
    "translate",
]
