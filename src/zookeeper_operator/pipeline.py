"""Bounded FIFO of lifecycle events between the watcher and the processor."""

from __future__ import annotations

import queue
from typing import Optional

from . import metrics
from .constants import PIPELINE_CAPACITY
from .models import LifecycleEvent


class EventPipeline:
    """Bounded, ordered queue of lifecycle events.

    Producers block while the pipeline is full; events are never dropped.
    The single consumer drains strictly in FIFO order.
    """

    def __init__(self, capacity: int = PIPELINE_CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError("pipeline capacity must be positive")
        self.capacity = capacity
        self._queue: "queue.Queue[LifecycleEvent]" = queue.Queue(maxsize=capacity)

    def put(self, event: LifecycleEvent, timeout: Optional[float] = None) -> None:
        """Append an event, blocking while the pipeline is full.

        Args:
            event: Lifecycle event to enqueue
            timeout: Seconds to wait for a free slot; None waits forever

        Raises:
            queue.Full: If ``timeout`` elapsed without a free slot
        """
        self._queue.put(event, block=True, timeout=timeout)
        metrics.events_total.labels(type=event.type).inc()
        metrics.pipeline_depth.set(self._queue.qsize())

    def get(self, timeout: Optional[float] = None) -> LifecycleEvent:
        """Remove and return the oldest event.

        Raises:
            queue.Empty: If no event arrived within ``timeout``
        """
        event = self._queue.get(block=True, timeout=timeout)
        metrics.pipeline_depth.set(self._queue.qsize())
        return event

    def qsize(self) -> int:
        return self._queue.qsize()

    def full(self) -> bool:
        return self._queue.full()

    def empty(self) -> bool:
        return self._queue.empty()
