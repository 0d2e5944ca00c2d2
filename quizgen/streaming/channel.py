"""Typed event channel between a generation run and its consumer."""

import logging
import queue
import threading
from collections.abc import Iterator

from quizgen.models.events import BaseEvent, Heartbeat

logger = logging.getLogger(__name__)

_END = object()


class EventChannel:
    """
    Thread-safe, ordered queue of progress events.

    The producer publishes events and calls ``finish()`` when the run is over.
    The consumer iterates ``events()``; calling ``close()`` from the consumer
    side tells the producer to stop before its next objective.
    """

    def __init__(self, maxsize: int = 0):
        self._queue: queue.Queue = queue.Queue(maxsize)
        self._closed = threading.Event()
        self._finished = threading.Event()

    @property
    def closed(self) -> bool:
        """True once the consumer has gone away."""
        return self._closed.is_set()

    @property
    def finished(self) -> bool:
        return self._finished.is_set()

    def publish(self, event: BaseEvent) -> bool:
        """Queue an event. Returns False when nobody will read it any more."""
        if self._closed.is_set() or self._finished.is_set():
            return False
        self._queue.put(event)
        return True

    def finish(self) -> None:
        """Mark the end of the stream (producer side)."""
        if not self._finished.is_set():
            self._finished.set()
            self._queue.put(_END)

    def close(self) -> None:
        """Stop listening (consumer side). Cooperative cancellation for the producer."""
        if not self._closed.is_set():
            logger.info("Event channel closed by consumer")
            self._closed.set()

    def events(self, heartbeat_interval: float | None = None) -> Iterator[BaseEvent]:
        """
        Yield events in publish order until the producer finishes.

        Args:
            heartbeat_interval: Seconds of silence before a heartbeat is
                yielded; None waits indefinitely

        Yields:
            Published events, interleaved with heartbeats while idle
        """
        while True:
            try:
                item = self._queue.get(timeout=heartbeat_interval)
            except queue.Empty:
                yield Heartbeat()
                continue
            if item is _END:
                return
            yield item

    def __iter__(self) -> Iterator[BaseEvent]:
        return self.events()

    def drain(self) -> list[BaseEvent]:
        """Everything published so far, without blocking."""
        drained = []
        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                return drained
            if item is _END:
                self._queue.put(_END)
                return drained
            drained.append(item)
