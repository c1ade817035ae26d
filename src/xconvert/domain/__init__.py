# src/xconvert/domain/__init__.py
"""
Domain Layer - Pure Business Objects

This package contains domain models and business rules.
No dependencies on infrastructure or external systems.
"""

from xconvert.domain.models import (
    CONVERSION_SOURCES,
    RATE_SOURCES,
    Conversion,
    ConversionSource,
    ConversionStats,
    DailyReport,
    DailyVolume,
    MonthlyReport,
    Page,
    PairUsage,
    Rate,
    RateSource,
)
from xconvert.domain.errors import (
    DomainError,
    NotFoundError,
    QueueUnavailableError,
    RateUnavailableError,
    StoreUnavailableError,
    UnsupportedOperationError,
    ValidationError,
)

__all__ = [
    "Rate",
    "RateSource",
    "RATE_SOURCES",
    "Conversion",
    "ConversionSource",
    "CONVERSION_SOURCES",
    "ConversionStats",
    "PairUsage",
    "DailyReport",
    "DailyVolume",
    "MonthlyReport",
    "Page",
    "DomainError",
    "ValidationError",
    "NotFoundError",
    "UnsupportedOperationError",
    "RateUnavailableError",
    "StoreUnavailableError",
    "QueueUnavailableError",
]
