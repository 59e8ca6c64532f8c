"""Environment-driven configuration for the ZooKeeper Operator."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .constants import (
    DEFAULT_IMAGE,
    PIPELINE_CAPACITY,
    REGISTRATION_POLL_INTERVAL_SECONDS,
    REGISTRATION_TIMEOUT_SECONDS,
)


@dataclass(frozen=True)
class OperatorConfig:
    """Settings read once at startup."""

    namespace: Optional[str] = None
    image: str = DEFAULT_IMAGE
    kubeconfig: Optional[str] = None
    metrics_port: int = 8080
    pipeline_capacity: int = PIPELINE_CAPACITY
    registration_timeout: float = REGISTRATION_TIMEOUT_SECONDS
    registration_poll_interval: float = REGISTRATION_POLL_INTERVAL_SECONDS
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "OperatorConfig":
        """Build the configuration from environment variables.

        Environment Variables:
            WATCH_NAMESPACE: Namespace to watch (default: all namespaces)
            ZOOKEEPER_IMAGE: ZooKeeper server image
            KUBECONFIG: Kubeconfig path used outside the cluster
            METRICS_PORT: Port for /metrics, /healthz and /readyz (default: 8080)
            PIPELINE_CAPACITY: Event pipeline capacity (default: 100)
            REGISTRATION_TIMEOUT_SECONDS: Establishment deadline (default: 60)
            REGISTRATION_POLL_INTERVAL_SECONDS: Establishment poll interval (default: 0.5)
            LOG_LEVEL: Log level (default: INFO)

        Raises:
            ValueError: If a numeric variable cannot be parsed
        """
        env = os.environ if environ is None else environ
        return cls(
            namespace=env.get("WATCH_NAMESPACE") or None,
            image=env.get("ZOOKEEPER_IMAGE") or DEFAULT_IMAGE,
            kubeconfig=env.get("KUBECONFIG") or None,
            metrics_port=int(env.get("METRICS_PORT", "8080")),
            pipeline_capacity=int(env.get("PIPELINE_CAPACITY", str(PIPELINE_CAPACITY))),
            registration_timeout=float(
                env.get("REGISTRATION_TIMEOUT_SECONDS", str(REGISTRATION_TIMEOUT_SECONDS))
            ),
            registration_poll_interval=float(
                env.get("REGISTRATION_POLL_INTERVAL_SECONDS", str(REGISTRATION_POLL_INTERVAL_SECONDS))
            ),
            log_level=env.get("LOG_LEVEL", "INFO"),
        )
