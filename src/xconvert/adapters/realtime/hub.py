# src/xconvert/adapters/realtime/hub.py
"""
Live Hub - In-process Publish/Subscribe for Live Subscribers

Subscribers join a topic (the service uses "conversions") with a callback;
publishing fans the event out to every callback on that topic. Delivery is
best-effort: a failing subscriber is logged and skipped. The WebSocket
endpoint registers a callback that hands events to its event loop.

Files that USE this module:
- xconvert.application.notifications (broadcasts conversion and rate events)
- xconvert.adapters.http.api (WebSocket endpoint subscribes per client)
- xconvert.app (composition root)

Files that this module USES:
- None (pure in-process implementation)
"""
from __future__ import annotations

import logging
import threading
from collections import defaultdict
from typing import Any, Callable, Dict, List

log = logging.getLogger(__name__)

CONVERSIONS_TOPIC = "conversions"

Subscriber = Callable[[Dict[str, Any]], None]


class LiveHub:
    def __init__(self):
        self._subscribers: Dict[str, List[Subscriber]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, topic: str, callback: Subscriber) -> Callable[[], None]:
        """
        Join a topic.

        Returns:
            A function that removes this subscription
        """
        with self._lock:
            self._subscribers[topic].append(callback)
            count = len(self._subscribers[topic])
        log.info("Subscriber joined %s (%d live)", topic, count)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers[topic]:
                    self._subscribers[topic].remove(callback)
            log.info("Subscriber left %s", topic)

        return unsubscribe

    def subscriber_count(self, topic: str) -> int:
        with self._lock:
            return len(self._subscribers[topic])

    def publish(self, topic: str, event: Dict[str, Any]) -> int:
        """
        Deliver an event to every subscriber of a topic.

        Returns:
            Number of subscribers that accepted the event
        """
        with self._lock:
            subscribers = list(self._subscribers[topic])

        delivered = 0
        for callback in subscribers:
            try:
                callback(event)
                delivered += 1
            except Exception as e:
                log.warning("Live subscriber on %s failed: %s", topic, e)
        log.debug("Broadcast %s event to %d/%d subscribers", event.get("type"), delivered, len(subscribers))
        return delivered
