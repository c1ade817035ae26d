# src/xconvert/adapters/messaging/rabbitmq.py
"""
RabbitMQ Client - Durable Event Queue

This module wraps a pika BlockingConnection to a single durable queue. The
connection is opened lazily on first use and reused afterwards; any failure
drops it so the next call reconnects. Publishing is best-effort: errors are
logged and reported as False, never raised.

Files that USE this module:
- xconvert.application.notifications (publishes conversion and rate events)
- xconvert.application.queue_service (depth, purge and connection checks)
- xconvert.app (composition root, close on shutdown)

Files that this module USES:
- xconvert.config (settings for URL, queue name and timeouts)
"""
from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, Optional

import pika
from pika.exceptions import AMQPError

from xconvert.config import settings

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class QueueInfo:
    queue_name: str
    message_count: int
    consumer_count: int


class RabbitMQClient:
    """Lazily-connected publisher for one durable RabbitMQ queue."""

    def __init__(self, url: Optional[str] = None, queue_name: Optional[str] = None,
                 timeout: Optional[int] = None):
        """
        Args:
            url: AMQP URL (defaults to settings.rabbitmq_url)
            queue_name: Queue to declare and publish to (defaults to settings.rabbitmq_queue)
            timeout: Socket/connection timeout in seconds (defaults to settings.rabbitmq_timeout_seconds)
        """
        self.url = url or settings.rabbitmq_url
        self.queue_name = queue_name or settings.rabbitmq_queue
        self.timeout = timeout or settings.rabbitmq_timeout_seconds
        self._connection: Optional[pika.BlockingConnection] = None
        self._channel = None
        # BlockingConnection is not thread-safe; request threads and jobs share it
        self._lock = threading.RLock()

    @property
    def connected(self) -> bool:
        return (
            self._connection is not None
            and self._connection.is_open
            and self._channel is not None
            and self._channel.is_open
        )

    def _parameters(self) -> pika.URLParameters:
        params = pika.URLParameters(self.url)
        params.socket_timeout = self.timeout
        params.stack_timeout = self.timeout
        params.blocked_connection_timeout = self.timeout
        params.connection_attempts = 1
        return params

    def connect(self) -> bool:
        """
        Open the connection and declare the durable queue.

        Returns:
            True if connected, False if the broker is unreachable
        """
        with self._lock:
            if self.connected:
                return True
            try:
                self._connection = pika.BlockingConnection(self._parameters())
                self._channel = self._connection.channel()
                self._channel.queue_declare(queue=self.queue_name, durable=True)
            except (AMQPError, OSError) as e:
                log.error("RabbitMQ connection error: %s", e)
                self._reset()
                return False
            log.info("Connected to RabbitMQ queue %s", self.queue_name)
            return True

    def _reset(self) -> None:
        connection = self._connection
        self._connection = None
        self._channel = None
        if connection is not None and connection.is_open:
            try:
                connection.close()
            except (AMQPError, OSError) as e:
                log.debug("Ignoring error while dropping RabbitMQ connection: %s", e)

    def publish(self, message: Dict[str, Any]) -> bool:
        """
        Send a JSON message as a persistent delivery.

        Returns:
            True if the broker accepted the message, False otherwise
        """
        body = json.dumps(message, default=str).encode("utf-8")
        with self._lock:
            if not self.connected and not self.connect():
                log.warning("RabbitMQ unavailable, dropping %s message", message.get("type"))
                return False
            try:
                self._channel.basic_publish(
                    exchange="",
                    routing_key=self.queue_name,
                    body=body,
                    properties=pika.BasicProperties(
                        content_type="application/json",
                        delivery_mode=pika.DeliveryMode.Persistent,
                    ),
                )
            except (AMQPError, OSError) as e:
                log.error("Error sending message to RabbitMQ: %s", e)
                self._reset()
                return False
        log.debug("Message sent to RabbitMQ queue %s", self.queue_name)
        return True

    def queue_info(self) -> QueueInfo:
        """
        Passive declare to read queue depth and consumer count.

        Raises:
            ConnectionError: If the broker cannot be reached
            RuntimeError: If the broker rejects the declare
        """
        with self._lock:
            if not self.connected and not self.connect():
                raise ConnectionError("Not connected to RabbitMQ")
            try:
                frame = self._channel.queue_declare(queue=self.queue_name, passive=True)
            except (AMQPError, OSError) as e:
                self._reset()
                raise RuntimeError(f"RabbitMQ queue check failed: {e}") from e
        return QueueInfo(
            queue_name=self.queue_name,
            message_count=frame.method.message_count,
            consumer_count=frame.method.consumer_count,
        )

    def purge(self) -> int:
        """
        Drop every ready message from the queue.

        Returns:
            Number of messages purged

        Raises:
            ConnectionError: If the broker cannot be reached
            RuntimeError: If the purge fails
        """
        with self._lock:
            if not self.connected and not self.connect():
                raise ConnectionError("Not connected to RabbitMQ")
            try:
                frame = self._channel.queue_purge(queue=self.queue_name)
            except (AMQPError, OSError) as e:
                self._reset()
                raise RuntimeError(f"RabbitMQ purge failed: {e}") from e
        log.info("Purged %d messages from %s", frame.method.message_count, self.queue_name)
        return frame.method.message_count

    def close(self) -> None:
        with self._lock:
            if self._connection is None:
                return
            self._reset()
        log.info("RabbitMQ connection closed")
