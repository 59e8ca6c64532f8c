"""Tests for operator configuration."""

from __future__ import annotations

import pytest

from zookeeper_operator.config import OperatorConfig
from zookeeper_operator.constants import DEFAULT_IMAGE, PIPELINE_CAPACITY


class TestOperatorConfig:
    """Test cases for OperatorConfig.from_env."""

    def test_defaults(self):
        """Test defaults with an empty environment."""
        config = OperatorConfig.from_env({})

        assert config.namespace is None
        assert config.image == DEFAULT_IMAGE
        assert config.kubeconfig is None
        assert config.metrics_port == 8080
        assert config.pipeline_capacity == PIPELINE_CAPACITY
        assert config.registration_timeout == 60.0
        assert config.registration_poll_interval == 0.5
        assert config.log_level == "INFO"

    def test_from_environment(self):
        """Test that every variable is read."""
        config = OperatorConfig.from_env(
            {
                "WATCH_NAMESPACE": "zk-system",
                "ZOOKEEPER_IMAGE": "zookeeper:3.8",
                "KUBECONFIG": "/tmp/config",
                "METRICS_PORT": "9000",
                "PIPELINE_CAPACITY": "5",
                "REGISTRATION_TIMEOUT_SECONDS": "10",
                "REGISTRATION_POLL_INTERVAL_SECONDS": "0.1",
                "LOG_LEVEL": "DEBUG",
            }
        )

        assert config == OperatorConfig(
            namespace="zk-system",
            image="zookeeper:3.8",
            kubeconfig="/tmp/config",
            metrics_port=9000,
            pipeline_capacity=5,
            registration_timeout=10.0,
            registration_poll_interval=0.1,
            log_level="DEBUG",
        )

    def test_empty_namespace_watches_all(self):
        """Test that an empty namespace means all namespaces."""
        assert OperatorConfig.from_env({"WATCH_NAMESPACE": ""}).namespace is None

    def test_invalid_number(self):
        """Test that an unparsable number is rejected."""
        with pytest.raises(ValueError):
            OperatorConfig.from_env({"METRICS_PORT": "http"})

    def test_reads_process_environment(self, monkeypatch):
        """Test that os.environ is used by default."""
        monkeypatch.setenv("WATCH_NAMESPACE", "team-a")
        assert OperatorConfig.from_env().namespace == "team-a"
