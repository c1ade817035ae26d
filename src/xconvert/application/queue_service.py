# src/xconvert/application/queue_service.py
"""
Queue Service - Inspection and Maintenance of the Event Queue

Files that USE this module:
- xconvert.adapters.http.api (queue routes)
- tests.test_queue_service (unit tests)

Files that this module USES:
- xconvert.adapters.messaging (RabbitMQClient)
- xconvert.application.contracts (QueueMessageRequest)
- xconvert.application.notifications (make_event)
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pika.exceptions import AMQPError

from xconvert.application.contracts import QueueMessageRequest, parse
from xconvert.application.notifications import make_event
from xconvert.domain.errors import QueueUnavailableError

log = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class QueueService:
    def __init__(self, client):
        """
        Args:
            client: RabbitMQClient
        """
        self.client = client

    def status(self) -> Dict[str, Any]:
        """Queue depth and consumers; never raises."""
        try:
            info = self.client.queue_info()
            state: Dict[str, Any] = {
                "connected": True,
                "queueName": info.queue_name,
                "messageCount": info.message_count,
                "consumerCount": info.consumer_count,
            }
        except (ConnectionError, RuntimeError, AMQPError) as e:
            log.warning("Queue status unavailable: %s", e)
            state = {"connected": False, "error": str(e)}
        return {"queueName": self.client.queue_name, "status": state, "timestamp": _now()}

    def send(self, data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Publish an arbitrary message wrapped in the event envelope.

        Args:
            data: {message, type?}

        Raises:
            ValidationError: If message is missing
            QueueUnavailableError: If the broker did not accept it
        """
        req = parse(QueueMessageRequest, data)
        event = make_event(req.type, req.message)
        if not self.client.publish(event):
            raise QueueUnavailableError("Failed to send message to queue")
        return {
            "message": "Message sent to queue successfully",
            "type": req.type,
            "timestamp": event["timestamp"],
        }

    def purge(self) -> Dict[str, Any]:
        try:
            purged = self.client.purge()
        except (ConnectionError, RuntimeError) as e:
            raise QueueUnavailableError(f"Error purging queue: {e}") from e
        return {"message": "Queue purged successfully", "purgedCount": purged, "timestamp": _now()}

    def test_connection(self) -> Dict[str, Any]:
        if self.client.connect():
            return {"message": "Queue connection test successful", "connected": True, "timestamp": _now()}
        return {
            "message": "Queue connection test failed",
            "connected": False,
            "error": "Failed to connect to RabbitMQ",
            "timestamp": _now(),
        }
