"""Shared fixtures for unit tests."""

from __future__ import annotations

import copy
from typing import Any

import pytest

from zookeeper_operator.constants import COND_ESTABLISHED
from zookeeper_operator.models import ChildKind, ClusterSpec


class FakePlatform:
    """In-memory stand-in for KubeClient that records every call."""

    def __init__(self) -> None:
        self.objects: dict[tuple[ChildKind, str, str], dict[str, Any]] = {}
        self.calls: list[tuple[str, ChildKind, str]] = []
        self.failures: dict[tuple[str, ChildKind], Exception] = {}
        self.crds: dict[str, dict[str, Any]] = {}
        self.crd_conditions: list[dict[str, Any]] = [{"type": COND_ESTABLISHED, "status": "True"}]

    def fail(self, operation: str, kind: ChildKind, error: Exception) -> None:
        self.failures[(operation, kind)] = error

    def _record(self, operation: str, kind: ChildKind, name: str) -> None:
        self.calls.append((operation, kind, name))
        error = self.failures.get((operation, kind))
        if error is not None:
            raise error

    def exists(self, kind: ChildKind, name: str, namespace: str) -> bool:
        self._record("exists", kind, name)
        return (kind, namespace, name) in self.objects

    def create(self, kind: ChildKind, manifest: dict[str, Any]) -> None:
        meta = manifest["metadata"]
        self._record("create", kind, meta["name"])
        key = (kind, meta["namespace"], meta["name"])
        if key in self.objects:
            raise AssertionError(f"duplicate create of {key}")
        self.objects[key] = copy.deepcopy(manifest)

    def update(self, kind: ChildKind, manifest: dict[str, Any]) -> None:
        meta = manifest["metadata"]
        self._record("update", kind, meta["name"])
        self.objects[(kind, meta["namespace"], meta["name"])] = copy.deepcopy(manifest)

    def delete(self, kind: ChildKind, name: str, namespace: str) -> None:
        self._record("delete", kind, name)
        self.objects.pop((kind, namespace, name), None)

    def scale_stateful_set(self, name: str, namespace: str, replicas: int) -> None:
        self._record("scale", ChildKind.STATEFUL_SET, name)
        self.objects[(ChildKind.STATEFUL_SET, namespace, name)]["spec"]["replicas"] = replicas

    def create_crd(self, body: dict[str, Any]) -> None:
        self.crds[body["metadata"]["name"]] = body

    def read_crd_conditions(self, name: str) -> list[dict[str, Any]]:
        return list(self.crd_conditions)

    def delete_crd(self, name: str) -> None:
        self.crds.pop(name, None)

    def operations(self, *names: str) -> list[tuple[str, ChildKind]]:
        """Recorded calls restricted to the given operation names."""
        return [(op, kind) for op, kind, _ in self.calls if op in names]


@pytest.fixture
def platform() -> FakePlatform:
    return FakePlatform()


@pytest.fixture
def cluster() -> ClusterSpec:
    return ClusterSpec(name="zk", namespace="default", replicas=3)
