# src/xconvert/application/health.py
"""
Health Checker - Service Monitoring and Diagnostics

This module checks the status of the components the service depends on:
the store (demo mode when unreachable), the message queue and the job
scheduler. Only the store is critical; a missing queue or a stopped
scheduler degrades the report but not the status code.

Files that USE this module:
- xconvert.adapters.http.api (GET /health)
- tests.test_api (health endpoint)

Files that this module USES:
- xconvert.adapters.persistence.database (Database.available)
- xconvert.adapters.messaging.rabbitmq (RabbitMQClient.connected)
- xconvert.application.scheduler (JobScheduler.status)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass
class HealthStatus:
    """Represents the health status of a component."""
    is_healthy: bool
    message: str
    last_check: datetime
    details: Optional[Dict[str, Any]] = None


class HealthChecker:
    """Centralized health checking for store, queue and scheduler."""

    def __init__(self, db=None, queue_client=None, scheduler=None):
        self.db = db
        self.queue_client = queue_client
        self.scheduler = scheduler

    def check_store(self) -> HealthStatus:
        if self.db is None or not self.db.available:
            return HealthStatus(
                is_healthy=False,
                message="Store not connected, running in demo mode",
                last_check=datetime.now(timezone.utc),
                details={"demo": True},
            )
        return HealthStatus(
            is_healthy=True,
            message="Store connected",
            last_check=datetime.now(timezone.utc),
        )

    def check_queue(self) -> HealthStatus:
        if self.queue_client is None:
            return HealthStatus(False, "Queue not configured", datetime.now(timezone.utc))
        connected = bool(self.queue_client.connected)
        return HealthStatus(
            is_healthy=connected,
            message=f"Queue {self.queue_client.queue_name} " + ("connected" if connected else "not connected"),
            last_check=datetime.now(timezone.utc),
            details={"queueName": self.queue_client.queue_name},
        )

    def check_scheduler(self) -> HealthStatus:
        if self.scheduler is None:
            return HealthStatus(False, "Scheduler disabled", datetime.now(timezone.utc))
        try:
            jobs = self.scheduler.status()
        except Exception as e:
            logger.error("Scheduler health check failed: %s", e)
            return HealthStatus(False, f"Scheduler error: {e}", datetime.now(timezone.utc))
        running = [name for name, job in jobs.items() if job["running"]]
        return HealthStatus(
            is_healthy=bool(running),
            message=f"{len(running)}/{len(jobs)} jobs running",
            last_check=datetime.now(timezone.utc),
            details=jobs,
        )

    def get_overall_health(self) -> Dict[str, Any]:
        """
        Aggregate component checks.

        Status is "ok" when the store is connected, "degraded" otherwise.
        """
        checks = {
            "store": self.check_store(),
            "queue": self.check_queue(),
            "scheduler": self.check_scheduler(),
        }
        overall_healthy = checks["store"].is_healthy

        return {
            "status": "ok" if overall_healthy else "degraded",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "demo": not overall_healthy,
            "checks": {
                name: {
                    "healthy": check.is_healthy,
                    "message": check.message,
                    "lastCheck": check.last_check.isoformat(),
                    "details": check.details,
                }
                for name, check in checks.items()
            },
        }
