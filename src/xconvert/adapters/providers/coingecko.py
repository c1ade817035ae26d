# src/xconvert/adapters/providers/coingecko.py
"""
CoinGecko API Provider for Crypto Exchange Rates

This module implements the CoinGecko client used for crypto-denominated
pairs: single-pair lookups through /simple/price and a bulk snapshot of the
major coins against every supported quote currency.

Files that USE this module:
- xconvert.application.rates_service (ProviderRouter uses CoinGeckoProvider)
- xconvert.app (composition root builds the provider)
- tests.test_providers (unit tests)

Files that this module USES:
- xconvert.adapters.providers.base (RateProvider interface)
- xconvert.config (settings for API configuration)
"""
import logging
from typing import Dict, List, Optional

from xconvert.adapters.providers.base import Pair, RateProvider
from xconvert.config import settings

log = logging.getLogger(__name__)

# Currency code -> CoinGecko coin id
COIN_IDS: Dict[str, str] = {
    "BTC": "bitcoin",
    "ETH": "ethereum",
    "USDT": "tether",
    "BNB": "binancecoin",
    "ADA": "cardano",
    "XRP": "ripple",
    "SOL": "solana",
    "DOT": "polkadot",
    "DOGE": "dogecoin",
    "AVAX": "avalanche-2",
}
CODES_BY_COIN_ID: Dict[str, str] = {coin: code for code, coin in COIN_IDS.items()}

# Coins included in the hourly bulk snapshot
SNAPSHOT_COINS: List[str] = ["bitcoin", "ethereum", "tether", "binancecoin", "cardano"]


def is_crypto_currency(code: str) -> bool:
    """True if the code is one of the crypto assets priced through CoinGecko."""
    return code.upper() in COIN_IDS


def coin_id_for(code: str) -> str:
    return COIN_IDS.get(code.upper(), code.lower())


def code_for_coin_id(coin_id: str) -> str:
    return CODES_BY_COIN_ID.get(coin_id, coin_id.upper())


class CoinGeckoProvider(RateProvider):
    name = "coingecko"

    def __init__(self, base_url: Optional[str] = None, api_key: Optional[str] = None,
                 timeout: Optional[int] = None):
        """
        Initialize CoinGecko API provider.

        Args:
            base_url: Optional custom API URL (defaults to settings.COINGECKO_URL)
            api_key: Optional API key (defaults to settings.coingecko_api_key)
            timeout: Optional HTTP timeout in seconds (defaults to settings.http_timeout_seconds)
        """
        self.url = (base_url or settings.COINGECKO_URL).rstrip("/")
        self.api_key = settings.coingecko_api_key if api_key is None else api_key
        self.timeout = timeout or settings.http_timeout_seconds

    def _headers(self) -> Dict[str, str]:
        return {"X-CG-API-KEY": self.api_key} if self.api_key else {}

    def get_rate(self, from_currency: str, to_currency: str) -> float:
        """
        Get the price of one from_currency coin in to_currency.

        Returns:
            to_currency per 1 from_currency

        Raises:
            RuntimeError: If the request fails or the pair is missing from the response
        """
        coin_id = coin_id_for(from_currency)
        vs = to_currency.lower()
        data = self._get_json(
            f"{self.url}/simple/price",
            params={"ids": coin_id, "vs_currencies": vs},
            headers=self._headers(),
        )
        if not isinstance(data, dict) or vs not in (data.get(coin_id) or {}):
            log.warning("CoinGecko has no price for %s->%s", from_currency, to_currency)
            raise RuntimeError(f"CoinGecko has no price for {from_currency}->{to_currency}")

        rate = self._positive(data[coin_id][vs], "CoinGecko")
        log.debug("CoinGecko %s->%s = %s", from_currency, to_currency, rate)
        return rate

    def get_all_rates(self) -> Dict[Pair, float]:
        """
        Bulk snapshot: every snapshot coin against every supported quote currency.

        Returns:
            Mapping of (coin code, quote code) to rate

        Raises:
            RuntimeError: If the supported currency list or a price request fails
        """
        supported = self._get_json(f"{self.url}/simple/supported_vs_currencies", headers=self._headers())
        if not isinstance(supported, list) or not supported:
            raise RuntimeError("CoinGecko returned no supported quote currencies")

        rates: Dict[Pair, float] = {}
        for coin_id in SNAPSHOT_COINS:
            data = self._get_json(
                f"{self.url}/simple/price",
                params={"ids": coin_id, "vs_currencies": ",".join(supported)},
                headers=self._headers(),
            )
            prices = data.get(coin_id) if isinstance(data, dict) else None
            if not prices:
                log.warning("CoinGecko snapshot missing %s", coin_id)
                continue
            code = code_for_coin_id(coin_id)
            for quote, value in prices.items():
                try:
                    rates[(code, quote.upper())] = self._positive(value, "CoinGecko")
                except RuntimeError:
                    log.debug("Skipping CoinGecko %s/%s: %r", code, quote, value)

        log.info("CoinGecko snapshot: %d pairs", len(rates))
        return rates
