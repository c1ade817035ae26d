# src/xconvert/adapters/providers/base.py
"""
Base Provider Interface for Exchange Rate Providers

This module defines the abstract base class for all exchange rate providers.
It establishes the contract that all provider implementations must follow
and the shared HTTP fetch with timeout and error normalization.

Files that USE this module:
- xconvert.adapters.providers.coingecko (CoinGeckoProvider implements RateProvider)
- xconvert.adapters.providers.openexchangerates (OpenExchangeRatesProvider implements RateProvider)
- xconvert.application.rates_service (ProviderRouter composes providers)
- tests.test_providers (unit tests)

Files that this module USES:
- None (interface plus requests helper)
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Optional, Tuple

import requests

log = logging.getLogger(__name__)

Pair = Tuple[str, str]


class RateProvider(ABC):
    name: str = "provider"
    timeout: int = 10

    @abstractmethod
    def get_rate(self, from_currency: str, to_currency: str) -> float:
        """
        Return units of to_currency per 1 from_currency.

        Raises:
            RuntimeError: If the provider cannot price the pair
        """
        raise NotImplementedError

    @abstractmethod
    def get_all_rates(self) -> Dict[Pair, float]:
        """
        Return a bulk snapshot of every pair the provider publishes.

        Raises:
            RuntimeError: If the snapshot cannot be fetched
        """
        raise NotImplementedError

    def _get_json(self, url: str, params: Optional[Mapping[str, Any]] = None,
                  headers: Optional[Mapping[str, str]] = None) -> Any:
        """
        GET a JSON document with the provider timeout.

        Raises:
            RuntimeError: On timeout, HTTP error, network error or invalid JSON
        """
        label = self.name
        try:
            resp = requests.get(url, params=params, headers=headers, timeout=self.timeout)
            resp.raise_for_status()
            return resp.json()
        except requests.exceptions.Timeout:
            log.warning("%s API timeout after %d seconds", label, self.timeout)
            raise RuntimeError(f"{label} API timeout after {self.timeout}s")
        except requests.exceptions.HTTPError as e:
            log.error("%s API HTTP error: %s", label, e)
            raise RuntimeError(f"{label} API HTTP error: {e}") from e
        except requests.exceptions.RequestException as e:
            log.warning("%s API request failed: %s", label, e)
            raise RuntimeError(f"{label} API request failed: {e}") from e
        except ValueError as e:
            log.error("%s API returned invalid JSON: %s", label, e)
            raise RuntimeError(f"{label} API returned invalid JSON: {e}") from e

    @staticmethod
    def _positive(value: Any, what: str) -> float:
        """Coerce a provider value to a positive float or raise RuntimeError."""
        try:
            number = float(value)
        except (TypeError, ValueError) as e:
            raise RuntimeError(f"{what}: not a number ({value!r})") from e
        if number <= 0:
            raise RuntimeError(f"{what}: non-positive rate {number}")
        return number
