"""Main entry point for the ZooKeeper Operator."""

from __future__ import annotations

import logging
import signal
import sys
from typing import Any, Optional

from . import __version__, health
from . import logging as structured_logging
from .config import OperatorConfig
from .errors import RegistrationError
from .handlers.cluster import ClusterReconciler
from .models import RegistrationState
from .pipeline import EventPipeline
from .processor import Processor
from .registration import RegistrationManager
from .services.kubernetes import KubeClient
from .watcher import ResourceWatcher

logger = logging.getLogger(__name__)


def run(config: OperatorConfig, client: Optional[KubeClient] = None) -> int:
    """Register the custom resource type, start watching and process events.

    Blocks until SIGINT/SIGTERM. Returns the process exit code.
    """
    logger.info(f"zookeeper-operator {__version__} starting up")
    logger.info(f"Using image {config.image}, namespace {config.namespace or '<all>'}")

    registration = RegistrationManager(
        client or KubeClient.from_config(config.kubeconfig),
        interval=config.registration_poll_interval,
        timeout=config.registration_timeout,
    )
    watcher: Optional[ResourceWatcher] = None
    server = health.start_http_server(
        config.metrics_port,
        liveness=lambda: watcher is None or watcher.is_alive(),
        readiness=lambda: registration.state is RegistrationState.ESTABLISHED,
    )

    try:
        state = registration.ensure_registered()
    except RegistrationError as e:
        logger.error(f"Error registering custom resource type: {e}")
        server.shutdown()
        return 1

    pipeline = EventPipeline(capacity=config.pipeline_capacity)
    reconciler = ClusterReconciler(registration.client, image=config.image)
    processor = Processor(pipeline, reconciler)
    watcher = ResourceWatcher(
        state,
        pipeline,
        namespace=config.namespace,
        error_reporter=processor.report_error,
    )
    _, stop_handle = watcher.observe()

    def _on_signal(signum: int, _frame: Any) -> None:
        logger.info(f"Got signal {signal.Signals(signum).name} from OS, shutting down")
        processor.shutdown()
        stop_handle.stop()

    signal.signal(signal.SIGINT, _on_signal)
    signal.signal(signal.SIGTERM, _on_signal)

    try:
        processor.run()
    finally:
        stop_handle.stop()
        server.shutdown()
    logger.info("Exiting now")
    return 0


def main() -> None:
    config = OperatorConfig.from_env()
    structured_logging.setup_structured_logging(config.log_level)
    sys.exit(run(config))


if __name__ == "__main__":
    main()
