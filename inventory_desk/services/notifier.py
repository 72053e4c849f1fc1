"""
In-process publish/subscribe for dashboard notifications.

Repositories only see the ``Notifier`` protocol. The ``Broker`` fans each
event out to every connected websocket, best effort: no replay, and a slow
subscriber loses events instead of slowing the publisher down.
"""

import asyncio
import logging
import threading
from datetime import datetime, timezone
from typing import Any, Protocol

logger = logging.getLogger(__name__)

QUEUE_SIZE = 100


class Notifier(Protocol):
    def publish(self, event: str, payload: dict[str, Any]) -> None: ...


class NullNotifier:
    def publish(self, event: str, payload: dict[str, Any]) -> None:
        logger.debug("Dropping %s, no broker attached", event)


def envelope(event: str, payload: dict[str, Any]) -> dict[str, Any]:
    return {
        "event": event,
        "data": payload,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


class Subscription:
    """One connected client. Must be created inside the client's event loop."""

    def __init__(self, broker: "Broker", maxsize: int = QUEUE_SIZE):
        self._broker = broker
        self._loop = asyncio.get_running_loop()
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self.dropped = 0

    def offer(self, message: dict[str, Any]) -> None:
        # runs on the subscriber's loop
        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull:
            self.dropped += 1
            logger.warning("Subscriber queue full, dropped %s", message["event"])

    def deliver(self, message: dict[str, Any]) -> bool:
        try:
            self._loop.call_soon_threadsafe(self.offer, message)
        except RuntimeError:
            # loop already closed
            return False
        return True

    async def get(self) -> dict[str, Any]:
        return await self._queue.get()

    def close(self) -> None:
        self._broker.unsubscribe(self)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class Broker:
    def __init__(self):
        self._subscribers: list[Subscription] = []
        self._lock = threading.Lock()

    def subscribe(self, maxsize: int = QUEUE_SIZE) -> Subscription:
        sub = Subscription(self, maxsize=maxsize)
        with self._lock:
            self._subscribers.append(sub)
        logger.info("Subscriber joined (%d connected)", self.subscriber_count)
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        with self._lock:
            if sub in self._subscribers:
                self._subscribers.remove(sub)
        logger.info("Subscriber left (%d connected)", self.subscriber_count)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def publish(self, event: str, payload: dict[str, Any]) -> None:
        """Fire and forget; safe to call from worker threads."""
        message = envelope(event, payload)
        with self._lock:
            subscribers = list(self._subscribers)

        dead = [sub for sub in subscribers if not sub.deliver(message)]
        for sub in dead:
            self.unsubscribe(sub)
        logger.debug("Published %s to %d subscriber(s)", event, len(subscribers) - len(dead))
