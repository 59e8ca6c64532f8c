"""Tests for the shared data model."""

from __future__ import annotations

import dataclasses

import pytest

from zookeeper_operator.constants import DEFAULT_REPLICAS
from zookeeper_operator.models import (
    Added,
    ChildKind,
    ChildResourceSet,
    ClusterSpec,
    Deleted,
    Updated,
)


class TestClusterSpec:
    """Test cases for ClusterSpec parsing."""

    def test_from_body(self):
        """Test building a snapshot from a full resource body."""
        body = {
            "metadata": {"name": "zk", "namespace": "prod"},
            "spec": {"replicas": 5, "resources": {"cpu": "1", "memory": "1Gi"}},
        }

        cluster = ClusterSpec.from_body(body)

        assert cluster == ClusterSpec(name="zk", namespace="prod", replicas=5, cpu="1", memory="1Gi")
        assert cluster.key == "prod/zk"

    def test_from_spec_defaults(self):
        """Test that missing fields fall back to defaults."""
        cluster = ClusterSpec.from_spec("zk", "default", None)

        assert cluster.replicas == DEFAULT_REPLICAS
        assert cluster.cpu is None
        assert cluster.memory is None

    def test_from_spec_keeps_zero_replicas(self):
        """Test that an explicit zero replica count is not replaced by the default."""
        cluster = ClusterSpec.from_spec("zk", "default", {"replicas": 0})
        assert cluster.replicas == 0

    def test_from_spec_does_not_validate(self):
        """Test that malformed values are carried through for translation to reject."""
        cluster = ClusterSpec.from_spec("zk", "default", {"replicas": -1})
        assert cluster.replicas == -1

    def test_snapshot_is_immutable(self):
        """Test that a snapshot cannot be mutated."""
        cluster = ClusterSpec(name="zk", namespace="default")
        with pytest.raises(dataclasses.FrozenInstanceError):
            cluster.replicas = 1  # type: ignore[misc]


class TestLifecycleEvents:
    """Test cases for the lifecycle event variants."""

    def test_added_cluster(self, cluster):
        """Test that Added acts on its object."""
        assert Added(cluster).cluster is cluster
        assert Added.type == "Added"

    def test_updated_acts_on_new_object(self, cluster):
        """Test that Updated keeps both snapshots and acts on the new one."""
        new = dataclasses.replace(cluster, replicas=5)
        event = Updated(cluster, new)

        assert event.old_object is cluster
        assert event.cluster is new
        assert event.type == "Updated"

    def test_deleted_cluster(self, cluster):
        """Test that Deleted acts on its object."""
        assert Deleted(cluster).cluster is cluster
        assert Deleted.type == "Deleted"


class TestChildResourceSet:
    """Test cases for child resource ordering."""

    def test_apply_and_teardown_order(self):
        """Test that teardown order is the reverse of apply order."""
        children = ChildResourceSet(service={"s": 1}, config_map={"c": 1}, stateful_set={"w": 1})

        apply_kinds = [kind for kind, _ in children.apply_order()]
        teardown_kinds = [kind for kind, _ in children.teardown_order()]

        assert apply_kinds == [ChildKind.SERVICE, ChildKind.CONFIG_MAP, ChildKind.STATEFUL_SET]
        assert teardown_kinds == [ChildKind.STATEFUL_SET, ChildKind.CONFIG_MAP, ChildKind.SERVICE]
