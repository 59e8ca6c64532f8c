"""Tests for the cluster child resource builder."""

from __future__ import annotations

import copy

import pytest

from zookeeper_operator.builders.cluster import (
    build_config_map,
    build_ensemble,
    build_headless_service,
    build_labels,
    build_stateful_set,
    resolve_quantity,
    translate,
)
from zookeeper_operator.constants import DEFAULT_CPU, DEFAULT_IMAGE, DEFAULT_MEMORY
from zookeeper_operator.errors import TranslationInvalid
from zookeeper_operator.models import ClusterSpec


def _container(stateful_set):
    return stateful_set["spec"]["template"]["spec"]["containers"][0]


class TestHeadlessService:
    """Test cases for the headless service."""

    def test_service_shape(self, cluster):
        """Test name, namespace, ports and clusterIP."""
        service = build_headless_service(cluster)

        assert service["metadata"]["name"] == "zk-headless"
        assert service["metadata"]["namespace"] == "default"
        assert service["spec"]["clusterIP"] == "None"
        ports = {p["name"]: p["port"] for p in service["spec"]["ports"]}
        assert ports == {"server": 2888, "leader-election": 3888, "client": 2181}
        assert service["spec"]["selector"] == build_labels(cluster)


class TestConfigMap:
    """Test cases for the configuration object."""

    def test_config_map_data(self, cluster):
        """Test the ZooKeeper settings in the config map."""
        config_map = build_config_map(cluster)

        assert config_map["metadata"]["name"] == "zk-config"
        data = config_map["data"]
        assert data["ensemble"] == "zk-0;zk-1;zk-2"
        assert data["jvm.heap"] == "512M"
        assert data["tick"] == "2000"
        assert data["client.cnxns"] == "60"
        assert all(isinstance(v, str) for v in data.values())

    def test_ensemble_follows_replicas(self):
        """Test that the ensemble lists one member per replica."""
        assert build_ensemble(ClusterSpec(name="a", namespace="ns", replicas=1)) == "a-0"
        assert build_ensemble(ClusterSpec(name="a", namespace="ns", replicas=0)) == ""


class TestStatefulSet:
    """Test cases for the stateful workload."""

    def test_references_service_and_config_map(self, cluster):
        """Test that the workload references the other children by name."""
        stateful_set = build_stateful_set(cluster)

        assert stateful_set["spec"]["serviceName"] == "zk-headless"
        refs = {
            env["valueFrom"]["configMapKeyRef"]["name"]
            for env in _container(stateful_set)["env"]
            if "valueFrom" in env
        }
        assert refs == {"zk-config"}

    def test_replicas_and_labels(self, cluster):
        """Test replica count, selector and pod labels."""
        stateful_set = build_stateful_set(cluster)
        labels = build_labels(cluster)

        assert stateful_set["spec"]["replicas"] == 3
        assert stateful_set["spec"]["selector"]["matchLabels"] == labels
        assert stateful_set["spec"]["template"]["metadata"]["labels"] == labels

    def test_default_resources(self, cluster):
        """Test that absent quantities fall back to defaults."""
        resources = _container(build_stateful_set(cluster))["resources"]

        assert resources["requests"] == {"cpu": DEFAULT_CPU, "memory": DEFAULT_MEMORY}
        assert resources["limits"] == resources["requests"]

    def test_custom_resources(self):
        """Test that valid quantities are used as given."""
        cluster = ClusterSpec(name="zk", namespace="default", cpu="2", memory="4Gi")
        resources = _container(build_stateful_set(cluster))["resources"]

        assert resources["requests"] == {"cpu": "2", "memory": "4Gi"}

    def test_invalid_quantity_falls_back(self):
        """Test that an unparsable quantity falls back to the default."""
        cluster = ClusterSpec(name="zk", namespace="default", cpu="lots", memory="1Gi")
        resources = _container(build_stateful_set(cluster))["resources"]

        assert resources["requests"]["cpu"] == DEFAULT_CPU
        assert resources["requests"]["memory"] == "1Gi"

    def test_image(self, cluster):
        """Test default and custom images."""
        assert _container(build_stateful_set(cluster))["image"] == DEFAULT_IMAGE
        assert _container(build_stateful_set(cluster, "zk:3.8"))["image"] == "zk:3.8"


class TestResolveQuantity:
    """Test cases for quantity resolution."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (None, "500m"),
            ("", "500m"),
            ("250m", "250m"),
            ("1.5", "1.5"),
            ("abc", "500m"),
            ("1e999999999Ki", "500m"),
        ],
    )
    def test_resolve(self, value, expected):
        """Test valid values pass through and others fall back."""
        assert resolve_quantity(value, "500m") == expected


class TestTranslate:
    """Test cases for translate()."""

    def test_translate_is_deterministic(self, cluster):
        """Test that translating twice yields identical child resources."""
        assert translate(cluster) == translate(cluster)

    def test_translate_does_not_share_state(self, cluster):
        """Test that mutating one result does not affect the next."""
        first = translate(cluster)
        first.stateful_set["spec"]["replicas"] = 99

        assert translate(cluster).stateful_set["spec"]["replicas"] == 3

    def test_translate_does_not_mutate_input(self, cluster):
        """Test that the input snapshot is unchanged."""
        before = copy.deepcopy(cluster)
        translate(cluster)
        assert cluster == before

    def test_children_share_namespace(self, cluster):
        """Test that every child lives in the cluster namespace."""
        children = translate(cluster)
        for _, manifest in children.apply_order():
            assert manifest["metadata"]["namespace"] == "default"

    def test_overflowing_quantity_falls_back(self):
        """Test that a quantity too large to represent falls back instead of raising."""
        cluster = ClusterSpec(name="zk", namespace="default", cpu="1e999999999Ki", memory="1e999999999Ki")

        resources = _container(translate(cluster).stateful_set)["resources"]

        assert resources["requests"] == {"cpu": DEFAULT_CPU, "memory": DEFAULT_MEMORY}

    @pytest.mark.parametrize(
        "cluster",
        [
            ClusterSpec(name="", namespace="default"),
            ClusterSpec(name="zk", namespace=""),
            ClusterSpec(name="zk", namespace="default", replicas=-1),
            ClusterSpec(name="zk", namespace="default", replicas="3"),  # type: ignore[arg-type]
            ClusterSpec(name="zk", namespace="default", replicas=True),
        ],
    )
    def test_translate_rejects_malformed(self, cluster):
        """Test that malformed specifications raise TranslationInvalid."""
        with pytest.raises(TranslationInvalid) as exc_info:
            translate(cluster)
        assert exc_info.value.cluster is cluster
