# src/xconvert/adapters/providers/__init__.py
"""
Provider Adapters - External API Clients

This package contains adapters for external exchange rate APIs.
All providers implement the RateProvider interface.
"""

from xconvert.adapters.providers.base import RateProvider
from xconvert.adapters.providers.coingecko import CoinGeckoProvider, is_crypto_currency
from xconvert.adapters.providers.openexchangerates import OpenExchangeRatesProvider

__all__ = [
    "RateProvider",
    "CoinGeckoProvider",
    "OpenExchangeRatesProvider",
    "is_crypto_currency",
]
