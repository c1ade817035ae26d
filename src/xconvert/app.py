# src/xconvert/app.py
"""
Application Entry Point - Service Wiring and Startup

This module serves as the composition root for the xConvert service.
It wires the store, providers, queue, live hub, services and scheduler,
ties their lifecycles to the FastAPI lifespan and serves the app with uvicorn.

Files that USE this module:
- python -m xconvert (module entry point)
- xconvert console script (pyproject.toml)
- tests.test_api (build_services / create_application)

Files that this module USES:
- xconvert.shared.logging_conf (setup_logging for logging configuration)
- xconvert.config (settings for configuration management)
- xconvert.adapters.* (store, providers, queue, hub, HTTP)
- xconvert.application.* (services and scheduler)
"""

from __future__ import annotations  # Enable postponed evaluation of annotations for forward references

import logging  # Standard library for logging messages and errors
import os  # Working directory for startup diagnostics
from contextlib import asynccontextmanager  # FastAPI lifespan
from typing import Optional  # Type hints for optional values

import uvicorn  # ASGI server
from fastapi import FastAPI  # Web application type

from xconvert.adapters.http.api import Services, create_app  # FastAPI application factory
from xconvert.adapters.messaging.rabbitmq import RabbitMQClient  # Durable event queue
from xconvert.adapters.persistence.database import Database  # Store lifecycle
from xconvert.adapters.providers.coingecko import CoinGeckoProvider  # Crypto rates
from xconvert.adapters.providers.openexchangerates import OpenExchangeRatesProvider  # Fiat rates
from xconvert.adapters.realtime.hub import LiveHub  # Live subscribers
from xconvert.application.convert_service import ConvertService
from xconvert.application.csv_import_service import CSVImportService
from xconvert.application.health import HealthChecker
from xconvert.application.notifications import NotificationService
from xconvert.application.queue_service import QueueService
from xconvert.application.rates_service import ProviderRouter, RatesService
from xconvert.application.report_service import ReportService
from xconvert.application.scheduler import JobScheduler
from xconvert.config import settings  # Application configuration and settings
from xconvert.shared.logging_conf import setup_logging  # Configure logging with file rotation

logger = logging.getLogger(__name__)


def build_services(db: Optional[Database] = None, queue_client: Optional[RabbitMQClient] = None,
                   hub: Optional[LiveHub] = None, router: Optional[ProviderRouter] = None,
                   scheduler=None) -> Services:
    """
    Wire every service; any collaborator can be swapped (tests pass fakes).

    Args:
        db: Store client (defaults to Database(settings.database_url))
        queue_client: Queue client (defaults to RabbitMQClient from settings)
        hub: Live hub (defaults to a new LiveHub)
        router: Provider router (defaults to CoinGecko + OpenExchangeRates)
        scheduler: APScheduler instance handed to JobScheduler

    Returns:
        Services bundle for the HTTP layer
    """
    db = db or Database()
    queue_client = queue_client or RabbitMQClient()
    hub = hub or LiveHub()
    router = router or ProviderRouter(crypto=CoinGeckoProvider(), fiat=OpenExchangeRatesProvider())

    notifier = NotificationService(queue_client=queue_client, hub=hub)
    rates = RatesService(db, router, notifier)
    reports = ReportService(db)
    jobs = JobScheduler(rates, reports, scheduler=scheduler)

    return Services(
        rates=rates,
        convert=ConvertService(db, rates, notifier),
        reports=reports,
        queue=QueueService(queue_client),
        csv_import=CSVImportService(rates),
        scheduler=jobs,
        hub=hub,
        health=HealthChecker(db=db, queue_client=queue_client, scheduler=jobs),
        db=db,
        queue_client=queue_client,
    )


def create_application(services: Optional[Services] = None,
                       scheduler_enabled: Optional[bool] = None) -> FastAPI:
    """
    Build the app with a lifespan that connects the store and queue and runs
    the scheduler while the server is up.
    """
    services = services or build_services()
    enabled = settings.scheduler_enabled if scheduler_enabled is None else scheduler_enabled

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db = services.db
        queue_client = services.queue_client
        if not db.connect():
            logger.warning("Continuing without a store: reads return demo data, writes fail with 503")
        if not queue_client.connect():
            logger.warning("Continuing without RabbitMQ: events are broadcast live only")
        if enabled:
            services.scheduler.start_all()
        else:
            logger.info("Scheduler disabled (SCHEDULER_ENABLED=false)")
        try:
            yield
        finally:
            services.scheduler.shutdown()
            queue_client.close()
            db.close()
            logger.info("Shutdown complete")

    return create_app(services, lifespan=lifespan)


def main() -> None:
    """
    Initialize and start the HTTP service.

    This function:
    1. Sets up logging
    2. Wires store, providers, queue and services
    3. Serves the FastAPI app with uvicorn until interrupted
    """
    setup_logging(
        level=logging.INFO,
        log_file=settings.log_file,
        log_dir=settings.log_dir,
        max_bytes=settings.log_max_bytes,
        backup_count=settings.log_backup_count,
        stdout=settings.log_stdout,
    )
    logger.info("Working directory: %s", os.getcwd())

    app = create_application()

    logger.info(
        "Starting xConvert on %s:%d (rate refresh every %d minutes, daily report at %02d:00 UTC)",
        settings.host,
        settings.port,
        settings.rate_refresh_minutes,
        settings.daily_report_hour,
    )
    try:
        uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)
    except KeyboardInterrupt:
        logger.info("Service stopped by user (KeyboardInterrupt)")


if __name__ == "__main__":
    main()
