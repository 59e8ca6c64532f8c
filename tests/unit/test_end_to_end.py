"""End-to-end flow from registration to teardown against an in-memory platform."""

from __future__ import annotations

import threading
import time

from zookeeper_operator.handlers.cluster import ClusterReconciler
from zookeeper_operator.models import ChildKind, RegistrationState
from zookeeper_operator.pipeline import EventPipeline
from zookeeper_operator.processor import Processor
from zookeeper_operator.registration import ensure_registered
from zookeeper_operator.watcher import ResourceWatcher


def _drain(processor, pipeline, timeout=2.0):
    thread = threading.Thread(target=processor.run, daemon=True)
    thread.start()
    deadline = time.monotonic() + timeout
    while not pipeline.empty() and time.monotonic() < deadline:
        time.sleep(0.01)
    # Let the last event finish before stopping
    time.sleep(0.05)
    processor.shutdown()
    thread.join(timeout)


class TestClusterLifecycle:
    """Test cases for a full cluster lifecycle."""

    def test_add_scale_delete(self, platform):
        """Test creating, scaling and deleting a cluster."""
        state = ensure_registered(platform, interval=0.01, timeout=1.0)
        assert state is RegistrationState.ESTABLISHED

        pipeline = EventPipeline()
        processor = Processor(pipeline, ClusterReconciler(platform), poll_interval=0.01)
        watcher = ResourceWatcher(state, pipeline, error_reporter=processor.report_error)

        watcher.on_added(name="zk", namespace="default", spec={"replicas": 3})
        _drain(processor, pipeline)

        stateful_set = platform.objects[(ChildKind.STATEFUL_SET, "default", "zk")]
        config_map = platform.objects[(ChildKind.CONFIG_MAP, "default", "zk-config")]
        assert stateful_set["spec"]["replicas"] == 3
        assert config_map["data"]["ensemble"] == "zk-0;zk-1;zk-2"
        assert (ChildKind.SERVICE, "default", "zk-headless") in platform.objects

        processor.control.clear()
        watcher.on_updated(
            name="zk", namespace="default", old={"spec": {"replicas": 3}}, new={"spec": {"replicas": 5}}
        )
        watcher.on_deleted(name="zk", namespace="default", spec={"replicas": 5})
        _drain(processor, pipeline)

        assert platform.objects == {}
        assert list(processor.reported_errors) == []
        assert platform.operations("scale") == [("scale", ChildKind.STATEFUL_SET)]

    def test_invalid_cluster_is_reported_and_skipped(self, platform):
        """Test that a malformed cluster does not block later events."""
        pipeline = EventPipeline()
        processor = Processor(pipeline, ClusterReconciler(platform), poll_interval=0.01)
        watcher = ResourceWatcher(RegistrationState.ESTABLISHED, pipeline)

        watcher.on_added(name="bad", namespace="default", spec={"replicas": -2})
        watcher.on_added(name="good", namespace="default", spec={"replicas": 1})
        _drain(processor, pipeline)

        assert len(processor.reported_errors) == 1
        assert (ChildKind.STATEFUL_SET, "default", "good") in platform.objects
        assert (ChildKind.STATEFUL_SET, "default", "bad") not in platform.objects
