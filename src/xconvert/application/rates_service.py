# src/xconvert/application/rates_service.py
"""
Rates Service - Business Logic for Exchange Rate Operations

This module contains the core business logic for the rate store: listing,
point lookups, pair upserts, patches and soft deletes, plus the resolver that
falls back to external providers when a pair has no active stored rate and
the bulk refresh used by the scheduler.

Files that USE this module:
- xconvert.application.convert_service (resolve_rate_for_pair)
- xconvert.application.csv_import_service (create per CSV row)
- xconvert.application.scheduler (refresh_all_from_providers)
- xconvert.adapters.http.api (rate routes)
- tests.test_rates_service (unit tests)

Files that this module USES:
- xconvert.adapters.persistence (Database, RateRepository)
- xconvert.adapters.providers (CoinGecko / OpenExchangeRates, is_crypto_currency)
- xconvert.application.contracts (request validation)
- xconvert.application.notifications (rate_update events)
- xconvert.domain (Rate, Page, errors)
"""
from __future__ import annotations  # Enable postponed evaluation of annotations

import logging
from typing import Any, Dict, List, Optional

from xconvert.adapters.persistence.repositories import RateRepository
from xconvert.adapters.providers.base import RateProvider
from xconvert.adapters.providers.coingecko import is_crypto_currency
from xconvert.application.contracts import CreateRateRequest, RateQuery, UpdateRateRequest, parse
from xconvert.domain.errors import NotFoundError, RateUnavailableError, StoreUnavailableError, ValidationError
from xconvert.domain.models import Page, Rate, RateSource

log = logging.getLogger(__name__)

BRIDGE_CURRENCY = "USD"
DEMO_MESSAGE = "Store not connected - using demo data"


class ProviderRouter:
    """
    Routes a pair to the provider that can price it.

    Crypto/crypto pairs go to the crypto provider, fiat/fiat pairs to the fiat
    provider and mixed pairs are bridged through USD by multiplying both legs.
    Tracks which provider answered last.
    """
    def __init__(self, crypto: RateProvider, fiat: RateProvider):
        """
        Args:
            crypto: Provider for crypto-denominated pairs (CoinGecko)
            fiat: Provider for fiat pairs (OpenExchangeRates)
        """
        self.crypto = crypto
        self.fiat = fiat
        self.last_used_provider: Optional[str] = None

    def _crypto_to_usd(self, code: str) -> float:
        return self.crypto.get_rate(code, BRIDGE_CURRENCY)

    def rate(self, from_currency: str, to_currency: str) -> float:
        """
        Price one unit of from_currency in to_currency.

        Raises:
            RuntimeError: If a provider call (or either bridge leg) fails
        """
        from_crypto = is_crypto_currency(from_currency)
        to_crypto = is_crypto_currency(to_currency)

        if from_crypto and to_crypto:
            rate = self.crypto.get_rate(from_currency, to_currency)
            self.last_used_provider = self.crypto.name
        elif not from_crypto and not to_crypto:
            rate = self.fiat.get_rate(from_currency, to_currency)
            self.last_used_provider = self.fiat.name
        elif from_crypto:
            # BTC -> EUR = (BTC -> USD) * (USD -> EUR)
            rate = self._crypto_to_usd(from_currency) * self.fiat.get_rate(BRIDGE_CURRENCY, to_currency)
            self.last_used_provider = "bridge"
        else:
            # EUR -> BTC = (EUR -> USD) * (USD -> BTC)
            usd_rate = self.fiat.get_rate(from_currency, BRIDGE_CURRENCY)
            rate = usd_rate * (1.0 / self._crypto_to_usd(to_currency))
            self.last_used_provider = "bridge"

        log.debug("Resolved %s->%s = %s via %s", from_currency, to_currency, rate, self.last_used_provider)
        return rate

    def try_rate(self, from_currency: str, to_currency: str) -> Optional[float]:
        """
        Same as rate() but returns None when the providers cannot price the pair.
        """
        try:
            return self.rate(from_currency, to_currency)
        except (RuntimeError, ZeroDivisionError) as e:
            log.warning("Providers could not price %s->%s: %s", from_currency, to_currency, e)
            return None

    def get_last_provider(self) -> Optional[str]:
        return self.last_used_provider


class RatesService:
    """
    Rate store operations.

    Every write emits a rate_update notification with action create, update
    or delete.
    """
    def __init__(self, db, router: ProviderRouter, notifier=None):
        """
        Args:
            db: Database client
            router: ProviderRouter used when a pair has no active stored rate
            notifier: NotificationService (optional)
        """
        self.db = db
        self.router = router
        self.notifier = notifier

    def _notify(self, rate: Rate, action: str) -> None:
        if self.notifier is not None:
            self.notifier.rate_changed(rate, action)

    def find(self, query: Optional[Dict[str, Any]] = None) -> Page[Rate]:
        """
        List active rates, most recently updated first.

        Raises:
            ValidationError: If the filter is malformed
        """
        q = parse(RateQuery, query)
        try:
            with self.db.session() as session:
                rates = RateRepository(session).find_active(
                    from_currency=q.from_currency,
                    to_currency=q.to_currency,
                    source=q.source,
                    limit=q.limit,
                    skip=q.skip,
                )
        except StoreUnavailableError:
            log.warning("Listing rates in demo mode")
            return Page(data=[], limit=q.limit, skip=q.skip, message=DEMO_MESSAGE)
        return Page(data=rates, limit=q.limit, skip=q.skip)

    def get(self, rate_id: int) -> Rate:
        with self.db.session() as session:
            record = RateRepository(session).get(rate_id)
            if record is None:
                raise NotFoundError("Rate not found")
            return record.to_domain()

    def create(self, data: Optional[Dict[str, Any]]) -> Rate:
        """
        Upsert the single stored row for a pair, active or not.

        Args:
            data: {fromCurrency, toCurrency, rate, source}

        Returns:
            The stored rate

        Raises:
            ValidationError: If the payload is malformed
            StoreUnavailableError: If the store cannot be reached
        """
        req = parse(CreateRateRequest, data)
        with self.db.session() as session:
            rate, created = RateRepository(session).upsert(
                req.from_currency, req.to_currency, req.rate, req.source
            )
        self._notify(rate, "create" if created else "update")
        return rate

    def patch(self, rate_id: int, data: Optional[Dict[str, Any]]) -> Rate:
        req = parse(UpdateRateRequest, data)
        with self.db.session() as session:
            repo = RateRepository(session)
            record = repo.get(rate_id)
            if record is None:
                raise NotFoundError("Rate not found")
            rate = repo.update(record, rate=req.rate, source=req.source, is_active=req.is_active)
        self._notify(rate, "update")
        return rate

    def remove(self, rate_id: int) -> Dict[str, str]:
        """Soft delete: the row stays with isActive=false."""
        with self.db.session() as session:
            repo = RateRepository(session)
            record = repo.get(rate_id)
            if record is None:
                raise NotFoundError("Rate not found")
            rate = repo.update(record, is_active=False)
        self._notify(rate, "delete")
        return {"message": "Rate deactivated successfully"}

    def resolve_rate_for_pair(self, from_currency: str, to_currency: str) -> Rate:
        """
        Active stored rate for a pair, or a freshly fetched and stored one.

        Raises:
            RateUnavailableError: If the pair is not stored and no provider can price it
            StoreUnavailableError: If the store cannot be reached
        """
        from_currency = from_currency.upper()
        to_currency = to_currency.upper()

        with self.db.session() as session:
            record = RateRepository(session).find_by_pair(from_currency, to_currency, active_only=True)
            if record is not None:
                return record.to_domain()

        value = self.router.try_rate(from_currency, to_currency)
        if value is None:
            raise RateUnavailableError(f"Rate not available for {from_currency} to {to_currency}")

        source = RateSource.COINGECKO if is_crypto_currency(from_currency) else RateSource.OPENEXCHANGERATES
        return self.create({
            "fromCurrency": from_currency,
            "toCurrency": to_currency,
            "rate": value,
            "source": source.value,
        })

    def refresh_all_from_providers(self) -> Dict[str, Any]:
        """
        Pull bulk snapshots from both providers and upsert every pair.

        A failing provider is logged and skipped; the other still applies.

        Returns:
            {message, updated, failedProviders}
        """
        log.info("Updating rates from external providers...")
        updated = 0
        failed: List[str] = []

        for provider, source in ((self.router.crypto, RateSource.COINGECKO),
                                 (self.router.fiat, RateSource.OPENEXCHANGERATES)):
            try:
                snapshot = provider.get_all_rates()
            except RuntimeError as e:
                log.error("Bulk refresh from %s failed: %s", provider.name, e)
                failed.append(provider.name)
                continue

            for (from_currency, to_currency), value in snapshot.items():
                try:
                    self.create({
                        "fromCurrency": from_currency,
                        "toCurrency": to_currency,
                        "rate": value,
                        "source": source.value,
                    })
                    updated += 1
                except ValidationError as e:
                    # Codes CoinGecko quotes in that are not 3-letter ISO codes (e.g. "bits")
                    log.debug("Skipping %s %s->%s: %s", provider.name, from_currency, to_currency, e)

        log.info("Rates refresh complete: %d pairs updated, failed providers: %s", updated, failed or "none")
        return {
            "message": "Rates updated successfully",
            "updated": updated,
            "failedProviders": failed,
        }
