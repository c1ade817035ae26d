# src/xconvert/adapters/providers/openexchangerates.py
"""
OpenExchangeRates API Provider for Fiat Exchange Rates

This module implements the OpenExchangeRates client for fiat pairs using the
/latest.json endpoint, both for single pairs and for the USD-based bulk
snapshot used by the hourly refresh.

Files that USE this module:
- xconvert.application.rates_service (ProviderRouter uses OpenExchangeRatesProvider)
- xconvert.app (composition root builds the provider)
- tests.test_providers (unit tests)

Files that this module USES:
- xconvert.adapters.providers.base (RateProvider interface)
- xconvert.config (settings for API configuration)
"""
import logging
from typing import Any, Dict, Optional

from xconvert.adapters.providers.base import Pair, RateProvider
from xconvert.config import settings

log = logging.getLogger(__name__)

SNAPSHOT_BASE = "USD"


class OpenExchangeRatesProvider(RateProvider):
    name = "openexchangerates"

    def __init__(self, base_url: Optional[str] = None, app_id: Optional[str] = None,
                 timeout: Optional[int] = None):
        """
        Initialize OpenExchangeRates API provider.

        Args:
            base_url: Optional custom API URL (defaults to settings.OPENEXCHANGERATES_URL)
            app_id: Optional app id (defaults to settings.openexchangerates_app_id)
            timeout: Optional HTTP timeout in seconds (defaults to settings.http_timeout_seconds)
        """
        self.url = (base_url or settings.OPENEXCHANGERATES_URL).rstrip("/")
        self.app_id = settings.openexchangerates_app_id if app_id is None else app_id
        self.timeout = timeout or settings.http_timeout_seconds

    def _latest(self, base: str) -> Dict[str, Any]:
        """
        Fetch the latest rates table for a base currency.

        Raises:
            RuntimeError: If the request fails or the response has no 'rates' object
        """
        data = self._get_json(f"{self.url}/latest.json", params={"app_id": self.app_id, "base": base})
        if not isinstance(data, dict) or not isinstance(data.get("rates"), dict):
            log.error("OpenExchangeRates unexpected response structure: %s", data)
            raise RuntimeError("OpenExchangeRates response missing 'rates' field")
        return data["rates"]

    def get_rate(self, from_currency: str, to_currency: str) -> float:
        rates = self._latest(from_currency.upper())
        value = rates.get(to_currency.upper())
        if value is None:
            log.warning("OpenExchangeRates has no rate for %s->%s", from_currency, to_currency)
            raise RuntimeError(f"OpenExchangeRates has no rate for {from_currency}->{to_currency}")
        rate = self._positive(value, "OpenExchangeRates")
        log.debug("OpenExchangeRates %s->%s = %s", from_currency, to_currency, rate)
        return rate

    def get_all_rates(self) -> Dict[Pair, float]:
        """USD against every currency in the latest table."""
        rates: Dict[Pair, float] = {}
        for quote, value in self._latest(SNAPSHOT_BASE).items():
            try:
                rates[(SNAPSHOT_BASE, quote.upper())] = self._positive(value, "OpenExchangeRates")
            except RuntimeError:
                log.debug("Skipping OpenExchangeRates %s/%s: %r", SNAPSHOT_BASE, quote, value)
        log.info("OpenExchangeRates snapshot: %d pairs", len(rates))
        return rates
