# tests/test_providers.py
"""
Provider Tests - Unit Tests for API Provider Classes

This module contains unit tests for the CoinGecko and OpenExchangeRates
providers and for the ProviderRouter that picks between them. HTTP calls
are patched at requests.get.

Files that USE this module:
- pytest (test runner executes these tests)

Files that this module USES:
- xconvert.adapters.providers (CoinGeckoProvider, OpenExchangeRatesProvider)
- xconvert.application.rates_service (ProviderRouter)
- unittest.mock (Mock for API mocking)
- pytest (testing framework)
"""
import pytest  # Testing framework for writing and running tests

from unittest.mock import Mock, patch  # Mock objects and patching for testing without real API calls
import requests  # HTTP library (used for mocking responses)

from xconvert.adapters.providers.coingecko import CoinGeckoProvider, is_crypto_currency
from xconvert.adapters.providers.openexchangerates import OpenExchangeRatesProvider
from xconvert.application.rates_service import ProviderRouter


def _response(payload):
    resp = Mock()
    resp.json.return_value = payload
    resp.raise_for_status.return_value = None
    return resp


class TestIsCryptoCurrency:
    def test_known_coins(self):
        assert is_crypto_currency("BTC")
        assert is_crypto_currency("eth")

    def test_fiat(self):
        assert not is_crypto_currency("USD")
        assert not is_crypto_currency("EUR")


class TestCoinGeckoProvider:
    def test_init(self):
        provider = CoinGeckoProvider(base_url="https://cg.example/api/v3/", api_key="k", timeout=3)
        assert provider.url == "https://cg.example/api/v3"
        assert provider.timeout == 3

    @patch('xconvert.adapters.providers.base.requests.get')
    def test_get_rate_success(self, mock_get):
        mock_get.return_value = _response({"bitcoin": {"usd": 45000.5}})

        provider = CoinGeckoProvider(base_url="https://cg.example", api_key="secret")
        assert provider.get_rate("BTC", "USD") == 45000.5

        args, kwargs = mock_get.call_args
        assert args[0] == "https://cg.example/simple/price"
        assert kwargs["params"] == {"ids": "bitcoin", "vs_currencies": "usd"}
        assert kwargs["headers"] == {"X-CG-API-KEY": "secret"}
        assert kwargs["timeout"] == provider.timeout

    @patch('xconvert.adapters.providers.base.requests.get')
    def test_get_rate_missing_pair(self, mock_get):
        mock_get.return_value = _response({"bitcoin": {}})

        provider = CoinGeckoProvider(base_url="https://cg.example")
        with pytest.raises(RuntimeError, match="no price"):
            provider.get_rate("BTC", "XYZ")

    @patch('xconvert.adapters.providers.base.requests.get')
    def test_get_rate_timeout(self, mock_get):
        mock_get.side_effect = requests.exceptions.Timeout()

        provider = CoinGeckoProvider(base_url="https://cg.example")
        with pytest.raises(RuntimeError, match="timeout"):
            provider.get_rate("BTC", "USD")

    @patch('xconvert.adapters.providers.base.requests.get')
    def test_get_all_rates(self, mock_get):
        def fake_get(url, params=None, headers=None, timeout=None):
            if url.endswith("supported_vs_currencies"):
                return _response(["usd", "eur"])
            coin = params["ids"]
            if coin == "bitcoin":
                return _response({"bitcoin": {"usd": 45000, "eur": 41000}})
            return _response({})
        mock_get.side_effect = fake_get

        rates = CoinGeckoProvider(base_url="https://cg.example").get_all_rates()

        assert rates == {("BTC", "USD"): 45000.0, ("BTC", "EUR"): 41000.0}


class TestOpenExchangeRatesProvider:
    @patch('xconvert.adapters.providers.base.requests.get')
    def test_get_rate_success(self, mock_get):
        mock_get.return_value = _response({"base": "USD", "rates": {"EUR": 0.85, "JPY": 150.25}})

        provider = OpenExchangeRatesProvider(base_url="https://oxr.example", app_id="app")
        assert provider.get_rate("USD", "EUR") == 0.85

        args, kwargs = mock_get.call_args
        assert args[0] == "https://oxr.example/latest.json"
        assert kwargs["params"] == {"app_id": "app", "base": "USD"}

    @patch('xconvert.adapters.providers.base.requests.get')
    def test_get_rate_missing_rates(self, mock_get):
        mock_get.return_value = _response({"error": True})

        provider = OpenExchangeRatesProvider(base_url="https://oxr.example", app_id="app")
        with pytest.raises(RuntimeError, match="missing 'rates'"):
            provider.get_rate("USD", "EUR")

    @patch('xconvert.adapters.providers.base.requests.get')
    def test_http_error(self, mock_get):
        resp = Mock()
        resp.raise_for_status.side_effect = requests.exceptions.HTTPError("401 Unauthorized")
        mock_get.return_value = resp

        provider = OpenExchangeRatesProvider(base_url="https://oxr.example", app_id="bad")
        with pytest.raises(RuntimeError, match="HTTP error"):
            provider.get_rate("USD", "EUR")

    @patch('xconvert.adapters.providers.base.requests.get')
    def test_get_all_rates_skips_bad_values(self, mock_get):
        mock_get.return_value = _response({"rates": {"EUR": 0.85, "GBP": 0.79, "BAD": None}})

        rates = OpenExchangeRatesProvider(base_url="https://oxr.example", app_id="app").get_all_rates()

        assert rates == {("USD", "EUR"): 0.85, ("USD", "GBP"): 0.79}


class TestProviderRouter:
    def _router(self):
        crypto = Mock()
        crypto.name = "coingecko"
        fiat = Mock()
        fiat.name = "openexchangerates"
        return ProviderRouter(crypto=crypto, fiat=fiat), crypto, fiat

    def test_fiat_pair_uses_fiat_provider(self):
        router, crypto, fiat = self._router()
        fiat.get_rate.return_value = 0.85

        assert router.rate("USD", "EUR") == 0.85
        fiat.get_rate.assert_called_once_with("USD", "EUR")
        crypto.get_rate.assert_not_called()
        assert router.get_last_provider() == "openexchangerates"

    def test_crypto_pair_uses_crypto_provider(self):
        router, crypto, fiat = self._router()
        crypto.get_rate.return_value = 15.5

        assert router.rate("ETH", "BTC") == 15.5
        fiat.get_rate.assert_not_called()

    def test_crypto_to_fiat_bridges_through_usd(self):
        router, crypto, fiat = self._router()
        crypto.get_rate.return_value = 40000.0
        fiat.get_rate.return_value = 0.9

        assert router.rate("BTC", "EUR") == pytest.approx(36000.0)
        crypto.get_rate.assert_called_once_with("BTC", "USD")
        fiat.get_rate.assert_called_once_with("USD", "EUR")

    def test_fiat_to_crypto_bridges_through_usd(self):
        router, crypto, fiat = self._router()
        fiat.get_rate.return_value = 1.1
        crypto.get_rate.return_value = 44000.0

        assert router.rate("EUR", "BTC") == pytest.approx(1.1 / 44000.0)
        assert router.get_last_provider() == "bridge"

    def test_try_rate_returns_none_on_failure(self):
        router, crypto, fiat = self._router()
        fiat.get_rate.side_effect = RuntimeError("down")

        assert router.try_rate("USD", "EUR") is None
