# src/xconvert/application/notifications.py
"""
Notification Service - Conversion and Rate Events

Builds the event envelope {type, timestamp, data} and delivers it to the
durable queue and to live subscribers on the "conversions" topic. Both
deliveries are best-effort; neither ever fails the calling operation.

Files that USE this module:
- xconvert.application.rates_service (rate_changed)
- xconvert.application.convert_service (conversion_performed)
- xconvert.app (composition root)
- tests.test_notifications (unit tests)

Files that this module USES:
- xconvert.adapters.messaging (RabbitMQClient)
- xconvert.adapters.realtime (LiveHub, CONVERSIONS_TOPIC)
- xconvert.domain.models (Rate, Conversion, isoformat)
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from xconvert.adapters.realtime.hub import CONVERSIONS_TOPIC
from xconvert.domain.models import Conversion, Rate, isoformat

log = logging.getLogger(__name__)

CONVERSION_EVENT = "conversion"
RATE_UPDATE_EVENT = "rate_update"


def make_event(event_type: str, data: Dict[str, Any],
               timestamp: Optional[datetime] = None) -> Dict[str, Any]:
    return {
        "type": event_type,
        "timestamp": isoformat(timestamp or datetime.now(timezone.utc)),
        "data": data,
    }


class NotificationService:
    def __init__(self, queue_client=None, hub=None):
        """
        Args:
            queue_client: RabbitMQClient (or None to skip queueing)
            hub: LiveHub (or None to skip live broadcast)
        """
        self.queue_client = queue_client
        self.hub = hub

    def _enqueue(self, event: Dict[str, Any]) -> bool:
        if self.queue_client is None:
            return False
        try:
            return bool(self.queue_client.publish(event))
        except Exception as e:
            log.error("Queue publish of %s event failed: %s", event["type"], e)
            return False

    def _broadcast(self, event: Dict[str, Any]) -> int:
        if self.hub is None:
            return 0
        try:
            return self.hub.publish(CONVERSIONS_TOPIC, event)
        except Exception as e:
            log.error("Live broadcast of %s event failed: %s", event["type"], e)
            return 0

    def rate_changed(self, rate: Rate, action: str) -> Dict[str, Any]:
        """
        Announce a rate create/update/delete.

        Args:
            rate: Rate after the change
            action: "create", "update" or "delete"

        Returns:
            The event that was sent
        """
        event = make_event(RATE_UPDATE_EVENT, {
            "action": action,
            "id": rate.id,
            "fromCurrency": rate.from_currency,
            "toCurrency": rate.to_currency,
            "rate": rate.rate,
            "source": rate.source,
        })
        self._enqueue(event)
        self._broadcast(event)
        log.info("Rate %s %s->%s = %s (%s)", action, rate.from_currency, rate.to_currency,
                 rate.rate, rate.source)
        return event

    def conversion_performed(self, conversion: Conversion, persisted: bool = True) -> Dict[str, Any]:
        """
        Announce a conversion.

        Unpersisted conversions are only broadcast live, with id "demo".

        Returns:
            The event that was sent
        """
        data = conversion.to_json()
        if not persisted or data["id"] is None:
            data["id"] = "demo"
        event = make_event(CONVERSION_EVENT, data, timestamp=conversion.conversion_date)
        if persisted:
            self._enqueue(event)
        delivered = self._broadcast(event)
        log.info("Conversion event %s->%s sent to %d live subscribers",
                 conversion.from_currency, conversion.to_currency, delivered)
        return event
