# src/xconvert/application/convert_service.py
"""
Convert Service - Currency Conversion and the Conversion Log

This module performs conversions against the rate store, logs each one with
the requester's IP and user agent, and answers listing, statistics and
popular-pair queries over the log. When the store is unreachable a
conversion is still computed from the providers (or the configured demo
rate) and broadcast live, but nothing is persisted or queued.

Files that USE this module:
- xconvert.adapters.http.api (convert routes)
- xconvert.app (composition root)
- tests.test_convert_service (unit tests)

Files that this module USES:
- xconvert.adapters.persistence (ConversionRepository, ConversionFilter)
- xconvert.application.rates_service (resolve_rate_for_pair, ProviderRouter)
- xconvert.application.contracts (request validation)
- xconvert.application.notifications (conversion events)
- xconvert.config (settings.demo_rate)
- xconvert.shared.validators (requester IP / user agent)
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Mapping, Optional

from xconvert.adapters.persistence.repositories import ConversionFilter, ConversionRepository
from xconvert.application.contracts import (
    ConversionQuery,
    ConvertRequest,
    PopularPairsQuery,
    StatsQuery,
    parse,
)
from xconvert.config import settings
from xconvert.domain.errors import NotFoundError, StoreUnavailableError, UnsupportedOperationError
from xconvert.domain.models import Conversion, ConversionSource, ConversionStats, Page, PairUsage
from xconvert.shared.validators import extract_client_ip, extract_user_agent

log = logging.getLogger(__name__)

CENT = Decimal("0.01")


def convert_amount(amount: float, rate: float) -> float:
    """amount * rate rounded half-up to 2 decimal places."""
    converted = (Decimal(str(amount)) * Decimal(str(rate))).quantize(CENT, rounding=ROUND_HALF_UP)
    return float(converted)


def _filter(q) -> ConversionFilter:
    return ConversionFilter(
        from_currency=q.from_currency,
        to_currency=q.to_currency,
        start=q.start_date,
        end=q.end_date,
    )


class ConvertService:
    def __init__(self, db, rates_service, notifier=None, demo_rate: Optional[float] = None):
        """
        Args:
            db: Database client
            rates_service: RatesService used to resolve the rate for a pair
            notifier: NotificationService (optional)
            demo_rate: Rate used when store and providers are both unavailable
                (defaults to settings.demo_rate)
        """
        self.db = db
        self.rates_service = rates_service
        self.notifier = notifier
        self.demo_rate = demo_rate if demo_rate is not None else settings.demo_rate

    def _degraded_rate(self, from_currency: str, to_currency: str):
        value = self.rates_service.router.try_rate(from_currency, to_currency)
        if value is not None:
            return value, ConversionSource.EXTERNAL.value
        log.info("Using demo rate %s for %s->%s", self.demo_rate, from_currency, to_currency)
        return self.demo_rate, ConversionSource.DEMO.value

    def convert(self, data: Optional[Dict[str, Any]],
                headers: Optional[Mapping[str, str]] = None) -> Conversion:
        """
        Convert an amount and log the conversion.

        Args:
            data: {from, to, amount}
            headers: Request headers used for userIp / userAgent

        Returns:
            The conversion (id is None when the store is unavailable)

        Raises:
            ValidationError: If the payload is malformed
            RateUnavailableError: If the store is up but no rate can be found
        """
        req = parse(ConvertRequest, data)
        from_currency, to_currency = req.from_currency, req.to_currency

        try:
            rate = self.rates_service.resolve_rate_for_pair(from_currency, to_currency)
            rate_value, rate_source = rate.rate, rate.source
            persistable = True
        except StoreUnavailableError:
            log.warning("Store unavailable, converting %s->%s without persistence", from_currency, to_currency)
            rate_value, rate_source = self._degraded_rate(from_currency, to_currency)
            persistable = False

        conversion = Conversion(
            id=None,
            from_currency=from_currency,
            to_currency=to_currency,
            original_amount=req.amount,
            converted_amount=convert_amount(req.amount, rate_value),
            rate=rate_value,
            rate_source=rate_source,
            conversion_date=datetime.now(timezone.utc),
            user_ip=extract_client_ip(headers),
            user_agent=extract_user_agent(headers),
        )

        persisted = False
        if persistable:
            try:
                with self.db.session() as session:
                    conversion = ConversionRepository(session).add(conversion)
                persisted = True
            except StoreUnavailableError:
                log.warning("Store dropped while logging conversion %s->%s", from_currency, to_currency)

        log.info("Converted %s %s -> %s %s @ %s (%s)", req.amount, from_currency,
                 conversion.converted_amount, to_currency, rate_value, rate_source)

        if self.notifier is not None:
            self.notifier.conversion_performed(conversion, persisted=persisted)
        return conversion

    def find(self, query: Optional[Dict[str, Any]] = None) -> Page[Conversion]:
        """
        List logged conversions, newest first.

        Raises:
            ValidationError: If the filter is malformed (e.g. endDate before startDate)
        """
        q = parse(ConversionQuery, query)
        try:
            with self.db.session() as session:
                data = ConversionRepository(session).find(_filter(q), limit=q.limit, skip=q.skip)
        except StoreUnavailableError:
            log.warning("Listing conversions in demo mode")
            return Page(data=[], limit=q.limit, skip=q.skip, message="Store not connected - using demo data")
        return Page(data=data, limit=q.limit, skip=q.skip)

    def get(self, conversion_id: int) -> Conversion:
        with self.db.session() as session:
            record = ConversionRepository(session).get(conversion_id)
            if record is None:
                raise NotFoundError("Conversion not found")
            return record.to_domain()

    def patch(self, conversion_id: int, data: Optional[Dict[str, Any]] = None) -> Conversion:
        raise UnsupportedOperationError("PATCH method not allowed for conversions")

    def remove(self, conversion_id: int) -> Dict[str, str]:
        """Hard delete."""
        with self.db.session() as session:
            repo = ConversionRepository(session)
            record = repo.get(conversion_id)
            if record is None:
                raise NotFoundError("Conversion not found")
            repo.delete(record)
        log.info("Conversion %s deleted", conversion_id)
        return {"message": "Conversion deleted successfully"}

    def stats(self, query: Optional[Dict[str, Any]] = None) -> ConversionStats:
        q = parse(StatsQuery, query)
        try:
            with self.db.session() as session:
                return ConversionRepository(session).stats(_filter(q))
        except StoreUnavailableError:
            return ConversionStats()

    def popular_pairs(self, query: Optional[Dict[str, Any]] = None) -> List[PairUsage]:
        """Pairs by conversion count (default top 10), ties by first appearance."""
        q = parse(PopularPairsQuery, query)
        try:
            with self.db.session() as session:
                return ConversionRepository(session).popular_pairs(limit=q.limit)
        except StoreUnavailableError:
            return []
