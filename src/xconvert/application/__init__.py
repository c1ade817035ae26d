# src/xconvert/application/__init__.py
"""
Application Layer - Use Cases and Services

This package contains application services that orchestrate domain logic.
Adapters are injected; no service builds its own store or broker client.
"""

from xconvert.application.convert_service import ConvertService, convert_amount
from xconvert.application.csv_import_service import CSVImportService
from xconvert.application.health import HealthChecker
from xconvert.application.notifications import NotificationService
from xconvert.application.queue_service import QueueService
from xconvert.application.rates_service import ProviderRouter, RatesService
from xconvert.application.report_service import ReportService
from xconvert.application.scheduler import JobScheduler

__all__ = [
    "RatesService",
    "ProviderRouter",
    "ConvertService",
    "convert_amount",
    "ReportService",
    "CSVImportService",
    "QueueService",
    "NotificationService",
    "JobScheduler",
    "HealthChecker",
]
