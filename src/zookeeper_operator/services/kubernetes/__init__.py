"""Kubernetes API client used by the reconciler and registration."""

from .client import KubeClient, load_kube_config

__all__ = ["KubeClient", "load_kube_config"]
