# src/xconvert/domain/models.py
"""
Domain Models - Pure Business Objects

This module contains domain models representing core business concepts:
- Exchange rates in the rate store
- Logged conversions
- Aggregated conversion statistics and pair usage
- Daily and monthly reports

Files that USE this module:
- xconvert.application.* (all services use domain models)
- xconvert.adapters.* (adapters create and use domain models)
- tests.* (tests use domain models for test data)

Files that this module USES:
- None (pure domain layer, no external dependencies)
"""

from __future__ import annotations  # Enable postponed evaluation of annotations

from dataclasses import dataclass, field  # Decorator for creating data classes
from datetime import date, datetime, timezone  # Date/time utilities for timestamps
from enum import Enum  # Closed sets of rate sources
from typing import Any, Dict, Generic, List, Optional, TypeVar  # Type hints

T = TypeVar("T")


class RateSource(str, Enum):
    """Where a stored rate came from."""
    COINGECKO = "coingecko"  # crypto provider
    OPENEXCHANGERATES = "openexchangerates"  # fiat provider
    MANUAL = "manual"


class ConversionSource(str, Enum):
    """Where the rate used by a conversion came from."""
    COINGECKO = "coingecko"
    OPENEXCHANGERATES = "openexchangerates"
    MANUAL = "manual"
    EXTERNAL = "external"  # fetched from providers without being stored
    DEMO = "demo"  # configured fallback rate in degraded mode


RATE_SOURCES = [s.value for s in RateSource]
CONVERSION_SOURCES = [s.value for s in ConversionSource]


def isoformat(ts: Optional[datetime]) -> Optional[str]:
    """
    Render a timestamp as ISO-8601 in UTC.

    Naive timestamps are taken to be UTC already.
    """
    if ts is None:
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc).isoformat()


@dataclass(frozen=True)
class Rate:
    """
    A stored exchange rate for one currency pair.

    Attributes:
        id: Store identity
        from_currency: Base currency code
        to_currency: Quote currency code
        rate: Units of to_currency per 1 from_currency
        source: One of RATE_SOURCES
        last_updated: When the rate was last written
        is_active: False once soft-deleted
    """
    id: Optional[int]
    from_currency: str
    to_currency: str
    rate: float
    source: str
    last_updated: Optional[datetime] = None
    is_active: bool = True

    def to_json(self) -> dict:
        return {
            "id": self.id,
            "fromCurrency": self.from_currency,
            "toCurrency": self.to_currency,
            "rate": self.rate,
            "source": self.source,
            "lastUpdated": isoformat(self.last_updated),
            "isActive": self.is_active,
        }


@dataclass(frozen=True)
class Conversion:
    """
    One performed conversion. The rate is copied, not referenced.

    Attributes:
        id: Store identity, None when the conversion was not persisted
        from_currency: Source currency code
        to_currency: Target currency code
        original_amount: Amount requested
        converted_amount: original_amount * rate rounded half-up to cents
        rate: Rate applied
        rate_source: One of CONVERSION_SOURCES
        conversion_date: When the conversion happened (UTC)
        user_ip: Requester IP or "unknown"
        user_agent: Requester user agent or "unknown"
    """
    id: Optional[int]
    from_currency: str
    to_currency: str
    original_amount: float
    converted_amount: float
    rate: float
    rate_source: str
    conversion_date: datetime
    user_ip: str = "unknown"
    user_agent: str = "unknown"

    def to_json(self) -> dict:
        return {
            "id": self.id,
            "fromCurrency": self.from_currency,
            "toCurrency": self.to_currency,
            "originalAmount": self.original_amount,
            "convertedAmount": self.converted_amount,
            "rate": self.rate,
            "rateSource": self.rate_source,
            "conversionDate": isoformat(self.conversion_date),
            "userIp": self.user_ip,
            "userAgent": self.user_agent,
        }


@dataclass(frozen=True)
class ConversionStats:
    """Aggregate over a set of conversions."""
    total_conversions: int = 0
    total_original_amount: float = 0.0
    total_converted_amount: float = 0.0
    average_rate: float = 0.0
    min_rate: float = 0.0
    max_rate: float = 0.0

    def to_json(self) -> dict:
        return {
            "totalConversions": self.total_conversions,
            "totalOriginalAmount": self.total_original_amount,
            "totalConvertedAmount": self.total_converted_amount,
            "averageRate": self.average_rate,
            "minRate": self.min_rate,
            "maxRate": self.max_rate,
        }


@dataclass(frozen=True)
class PairUsage:
    """How often a currency pair was converted and for how much."""
    from_currency: str
    to_currency: str
    conversion_count: int
    total_amount: float

    def to_json(self) -> dict:
        return {
            "fromCurrency": self.from_currency,
            "toCurrency": self.to_currency,
            "conversionCount": self.conversion_count,
            "totalAmount": self.total_amount,
        }


@dataclass(frozen=True)
class DailyReport:
    """
    Conversion activity for one UTC calendar day.

    Attributes:
        date: The day covered
        conversions: Number of conversions found for the day
        statistics: Aggregates over the day
        unique_pairs: Distinct (from, to) pairs seen
        popular_pairs: Top pairs by count (at most 5)
        demo: True when the store was unavailable and the report is synthesized
    """
    date: date
    conversions: int
    statistics: ConversionStats
    unique_pairs: List[Dict[str, str]] = field(default_factory=list)
    popular_pairs: List[PairUsage] = field(default_factory=list)
    demo: bool = False

    def to_json(self) -> dict:
        stats = self.statistics.to_json()
        stats["uniqueCurrencyPairs"] = list(self.unique_pairs)
        data: Dict[str, Any] = {
            "date": self.date.isoformat(),
            "conversions": self.conversions,
            "statistics": stats,
            "popularPairs": [p.to_json() for p in self.popular_pairs],
        }
        if self.demo:
            data["demo"] = True
        return data


@dataclass(frozen=True)
class DailyVolume:
    """Conversion count and original amount for a single day of a month."""
    day: int
    conversions: int
    amount: float

    def to_json(self) -> dict:
        return {"day": self.day, "dailyConversions": self.conversions, "dailyAmount": self.amount}


@dataclass(frozen=True)
class MonthlyReport:
    """Per-day volumes and top pairs for a calendar month."""
    year: int
    month: int
    month_name: str
    daily_stats: List[DailyVolume] = field(default_factory=list)
    top_pairs: List[PairUsage] = field(default_factory=list)
    demo: bool = False

    def to_json(self) -> dict:
        data: Dict[str, Any] = {
            "year": self.year,
            "month": self.month,
            "monthName": self.month_name,
            "dailyStats": [d.to_json() for d in self.daily_stats],
            "topPairs": [p.to_json() for p in self.top_pairs],
        }
        if self.demo:
            data["demo"] = True
        return data


@dataclass(frozen=True)
class Page(Generic[T]):
    """A slice of a listing plus the paging parameters that produced it."""
    data: List[T]
    limit: int
    skip: int
    message: Optional[str] = None

    @property
    def total(self) -> int:
        return len(self.data)

    def to_json(self) -> dict:
        body: Dict[str, Any] = {
            "data": [item.to_json() for item in self.data],
            "total": self.total,
            "limit": self.limit,
            "skip": self.skip,
        }
        if self.message:
            body["message"] = self.message
        return body
