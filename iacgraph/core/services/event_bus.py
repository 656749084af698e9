"""
EventBus — thread-safe, in-process pub/sub with bounded replay.

The directory watcher publishes here from its background thread; the
``/events`` SSE endpoint subscribes and streams to the editor.  A
client that reconnects with ``Last-Event-Id`` gets the events it missed
from the ring buffer, or a ``state:snapshot`` if it was away too long.

Event shape::

    {
        "v": 1,
        "ts": 1739648400.123,
        "seq": 47,
        "type": "watch:synced",     # <domain>:<action>
        "key": "watcher",
        "data": {...},
    }
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from collections import deque
from typing import Any, Generator

logger = logging.getLogger(__name__)

_SCHEMA_VERSION = 1


class EventBus:
    """Broadcast events to every subscriber queue.

    Args:
        buffer_size: Events kept for replay on reconnect.
        subscriber_queue_size: Backlog per subscriber before it is dropped.
    """

    def __init__(
        self,
        *,
        buffer_size: int = 200,
        subscriber_queue_size: int = 100,
    ) -> None:
        self._lock = threading.Lock()
        self._seq = 0
        self._buffer: deque[dict] = deque(maxlen=buffer_size)
        self._subscribers: list[queue.Queue[dict]] = []
        self._subscriber_queue_size = subscriber_queue_size
        self._latest: dict[str, dict] = {}  # key → most recent event

    @property
    def seq(self) -> int:
        with self._lock:
            return self._seq

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def publish(
        self,
        event_type: str,
        *,
        key: str = "",
        data: dict[str, Any] | None = None,
    ) -> dict:
        """Broadcast an event and return it with its sequence number."""
        with self._lock:
            self._seq += 1
            event = self._make_event(event_type, key, data or {})
            self._buffer.append(event)
            if key:
                self._latest[key] = event

            dead: list[queue.Queue[dict]] = []
            for q in self._subscribers:
                try:
                    q.put_nowait(event)
                except queue.Full:
                    dead.append(q)
            for q in dead:
                self._subscribers.remove(q)
                logger.info("Dropped unresponsive subscriber (queue full)")

        if event_type != "sys:heartbeat":
            logger.debug("event %s key=%s", event_type, key or "-")
        return event

    def replay(self, since: int) -> list[dict] | None:
        """Buffered events after ``since``, or None if the buffer no longer reaches back."""
        with self._lock:
            if since <= 0 or not self._buffer or since < self._buffer[0]["seq"] - 1:
                return None
            return [e for e in self._buffer if e["seq"] > since]

    def snapshot(self) -> dict[str, dict]:
        """Latest event per key."""
        with self._lock:
            return dict(self._latest)

    def subscribe(
        self,
        *,
        since: int = 0,
        heartbeat_interval: float = 30.0,
    ) -> Generator[dict, None, None]:
        """Yield events for one subscriber, blocking between them."""
        q: queue.Queue[dict] = queue.Queue(maxsize=self._subscriber_queue_size)
        missed = self.replay(since)

        with self._lock:
            self._subscribers.append(q)

        try:
            if missed is None:
                with self._lock:
                    self._seq += 1
                    first = self._make_event("state:snapshot", "", dict(self._latest))
                yield first
            else:
                yield from missed

            while True:
                try:
                    yield q.get(timeout=heartbeat_interval)
                except queue.Empty:
                    yield self.publish("sys:heartbeat")
        finally:
            with self._lock:
                if q in self._subscribers:
                    self._subscribers.remove(q)

    def _make_event(self, event_type: str, key: str, data: dict[str, Any]) -> dict:
        # Caller holds the lock and has already bumped _seq
        return {
            "v": _SCHEMA_VERSION,
            "ts": time.time(),
            "seq": self._seq,
            "type": event_type,
            "key": key,
            "data": data,
        }


bus = EventBus()
"""Process-wide event bus.

    from iacgraph.core.services.event_bus import bus
    bus.publish("watch:ready", key="watcher", data={"working_dir": "..."})
"""
